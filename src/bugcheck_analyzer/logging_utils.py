"""Logging setup and per-request log handles."""

import logging
import uuid
from pathlib import Path
from typing import Any, MutableMapping

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "bugcheck_analyzer"

logger = logging.getLogger(LOGGER_NAME)

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", log_file: Path | None = None, console: Console | None = None) -> None:
    """Attach a rich console handler to the package logger.

    Safe to call more than once; the console handler is only added the first time.

    Args:
        level: Logging level name
        log_file: Also write plain-text logs to this file
        console: Console to render to (defaults to stderr)
    """
    logger.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        logger.addHandler(handler)
    if log_file is not None:
        enable_logging(log_file)


def enable_logging(log_path: Path) -> None:
    """Enable logging to a file in addition to the console."""
    log_path = Path(log_path)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_path.resolve():
            return
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(file_handler)
    logger.info("Logging output to %s", log_path.name)


def new_request_id() -> str:
    """Short identifier correlating every log line of one batch."""
    return uuid.uuid4().hex[:8]


class RequestLogger(logging.LoggerAdapter):
    """Logger adapter that tags messages with a request id and, optionally, a dump name.

    One instance is created per batch and handed explicitly to every stage;
    ``bind`` derives the per-dump handle.
    """

    def __init__(self, base: logging.Logger | None = None, request_id: str | None = None, artifact: str | None = None):
        extra = {"request_id": request_id or new_request_id(), "artifact": artifact}
        super().__init__(base or logger, extra)

    @property
    def request_id(self) -> str:
        return self.extra["request_id"]

    def bind(self, artifact: str | Path) -> "RequestLogger":
        """Return a handle for one dump within the same request."""
        name = artifact.name if isinstance(artifact, Path) else str(artifact)
        return RequestLogger(self.logger, self.request_id, name)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        prefix = f"[{self.extra['request_id']}]"
        if self.extra.get("artifact"):
            prefix += f" [{self.extra['artifact']}]"
        kwargs.setdefault("extra", {}).update(self.extra)
        return f"{prefix} {msg}", kwargs
