"""Parsing of raw debugger reports."""

from bugcheck_analyzer.parsing.bugcheck import classify, classify_report, normalize_bugcheck_code
from bugcheck_analyzer.parsing.report import parse_report, split_sections

__all__ = [
    "classify",
    "classify_report",
    "normalize_bugcheck_code",
    "parse_report",
    "split_sections",
]
