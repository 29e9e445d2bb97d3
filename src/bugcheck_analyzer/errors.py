"""Exception hierarchy for dump analysis."""

from pathlib import Path


class DumpAnalysisError(Exception):
    """Base exception for dump analysis errors."""
    pass


class InvocationError(DumpAnalysisError):
    """The debugger could not be run or exited with an error status."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class InvocationTimeoutError(InvocationError):
    """The debugger did not finish within the configured timeout and was killed."""
    pass


class ReportParseError(DumpAnalysisError):
    """Base class for failures to extract structure from a raw report."""
    pass


class MalformedOutputError(ReportParseError):
    """The report did not split into the expected number of sections."""
    pass


class ExtractionError(ReportParseError):
    """A literal anchor the parser relies on is missing from the report."""

    def __init__(self, message: str, anchor: str):
        super().__init__(message)
        self.anchor = anchor


class PostProcessExecutionError(DumpAnalysisError):
    """A bugcheck post-processing command failed.

    Never escapes a batch; it is recorded in the record's ``post`` field.
    """
    pass


class BatchAnalysisError(DumpAnalysisError):
    """A batch was aborted because one of its dumps failed (fail-fast policy)."""

    def __init__(self, message: str, artifact_path: Path):
        super().__init__(message)
        self.artifact_path = artifact_path
