"""Configuration management for the bugcheck analyzer."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Debugger Configuration
    cdb_path: Path = Field(
        default=Path(r"C:\Program Files (x86)\Windows Kits\10\Debuggers\x64\cdb.exe"),
        description="Path to CDB executable"
    )
    symbol_path: str | None = Field(
        default=None,
        description="Symbol server path passed with -y (e.g. SRV*c:\\symbols*https://msdl.microsoft.com/download/symbols)"
    )
    invocation_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Seconds before a single debugger invocation is killed (corrupt dumps can hang cdb)"
    )

    # Batch Configuration
    max_concurrency: int = Field(
        default=4,
        ge=1,
        description="Maximum number of debugger processes running at once"
    )
    dump_extension: str = Field(
        default=".dmp",
        description="File extension of crash dumps picked up from a directory target"
    )
    failure_policy: Literal["isolate", "fail_fast"] = Field(
        default="isolate",
        description="isolate: a broken dump becomes an error record; fail_fast: a broken dump fails the whole batch"
    )

    # Post-processing
    post_processors_path: Path | None = Field(
        default=None,
        description="Extra directory of bugcheck post-processor modules (file name = bugcheck code)"
    )

    # Application Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Path | None = Field(default=None, description="Optional log file")


# Global settings instance
settings = Settings()
