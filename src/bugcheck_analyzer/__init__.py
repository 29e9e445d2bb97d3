"""Bugcheck Analyzer - structured crash dump analysis with CDB."""

from bugcheck_analyzer.core import DebuggerInvoker
from bugcheck_analyzer.errors import (
    BatchAnalysisError,
    DumpAnalysisError,
    ExtractionError,
    InvocationError,
    InvocationTimeoutError,
    MalformedOutputError,
    PostProcessExecutionError,
    ReportParseError,
)
from bugcheck_analyzer.parsing import classify, classify_report, parse_report
from bugcheck_analyzer.postprocess import PostProcessorRegistry, apply_post_processing, load_default_registry
from bugcheck_analyzer.records import (
    AnalysisRecord,
    ClassifiedReport,
    ErrorDescription,
    ErrorRecord,
    ParsedReport,
    PostStatus,
    serialize_batch,
)
from bugcheck_analyzer.workflows import BatchAnalyzer, FailurePolicy, analyze, resolve_target, run_analysis

__version__ = "0.1.0"

__all__ = [
    "AnalysisRecord",
    "BatchAnalysisError",
    "BatchAnalyzer",
    "ClassifiedReport",
    "DebuggerInvoker",
    "DumpAnalysisError",
    "ErrorDescription",
    "ErrorRecord",
    "ExtractionError",
    "FailurePolicy",
    "InvocationError",
    "InvocationTimeoutError",
    "MalformedOutputError",
    "ParsedReport",
    "PostProcessExecutionError",
    "PostProcessorRegistry",
    "PostStatus",
    "ReportParseError",
    "analyze",
    "apply_post_processing",
    "classify",
    "classify_report",
    "load_default_registry",
    "parse_report",
    "resolve_target",
    "run_analysis",
    "serialize_batch",
]
