"""Records produced by the dump analysis pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union


class PostStatus(Enum):
    """Sentinel values for the ``post`` field of a record."""
    UNCONFIGURED = "no post-processing configured for this bugcheck"


@dataclass(frozen=True)
class ErrorDescription:
    """Serializable description of a failure attached to a record."""

    error_type: str
    message: str
    details: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException, error_type: str | None = None) -> "ErrorDescription":
        """Describe an exception.

        Args:
            exc: The exception to describe
            error_type: Override for the reported type name

        Returns:
            Error description (stderr is kept as details for invocation errors)
        """
        details = getattr(exc, "stderr", None) or None
        return cls(
            error_type=error_type or type(exc).__name__,
            message=str(exc),
            details=details,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.error_type,
            "message": self.message,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorDescription":
        return cls(
            error_type=data.get("type", "DumpAnalysisError"),
            message=data.get("message", ""),
            details=data.get("details"),
        )


PostResult = Union[str, ErrorDescription, PostStatus]


@dataclass(frozen=True)
class ParsedReport:
    """Structured fields extracted from one raw debugger report."""

    artifact_path: Path
    header_info: str
    analysis: str
    raw_report: str = field(repr=False)


@dataclass(frozen=True)
class ClassifiedReport(ParsedReport):
    """Parsed report plus its bugcheck code and arguments.

    ``bugcheck_args[0]`` is the report's ``Arg1``.
    """

    bugcheck: str | None = None
    bugcheck_args: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisRecord(ClassifiedReport):
    """Final record for one dump, including the post-processing result."""

    post: PostResult = PostStatus.UNCONFIGURED

    @classmethod
    def from_report(cls, report: ClassifiedReport, post: PostResult) -> "AnalysisRecord":
        """Build the final record; ``post`` is fixed from here on."""
        return cls(
            artifact_path=report.artifact_path,
            header_info=report.header_info,
            analysis=report.analysis,
            raw_report=report.raw_report,
            bugcheck=report.bugcheck,
            bugcheck_args=report.bugcheck_args,
            post=post,
        )

    @property
    def ok(self) -> bool:
        return True

    def post_to_dict(self) -> Dict[str, Any]:
        if isinstance(self.post, PostStatus):
            return {"status": "unconfigured", "message": self.post.value}
        if isinstance(self.post, ErrorDescription):
            return {"status": "failed", "error": self.post.to_dict()}
        return {"status": "completed", "output": self.post}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "status": "ok",
            "artifact": self.artifact_path.name,
            "artifact_path": str(self.artifact_path),
            "dump_info": self.header_info,
            "analysis": self.analysis,
            "bugcheck": self.bugcheck,
            "args": list(self.bugcheck_args),
            "raw_content": self.raw_report,
            "post": self.post_to_dict(),
        }


@dataclass(frozen=True)
class ErrorRecord:
    """Placeholder for a dump whose analysis failed (isolated failure policy)."""

    artifact_path: Path
    error: ErrorDescription

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "error",
            "artifact": self.artifact_path.name,
            "artifact_path": str(self.artifact_path),
            "error": self.error.to_dict(),
        }


BatchRecord = Union[AnalysisRecord, ErrorRecord]


def serialize_batch(records: List[BatchRecord]) -> List[Dict[str, Any]]:
    """Serialize a batch result into JSON-ready dictionaries, preserving order."""
    return [record.to_dict() for record in records]
