"""Bugcheck code and argument extraction from the analysis section."""

import re
from typing import List

from bugcheck_analyzer.records import ClassifiedReport, ParsedReport

# e.g. "DRIVER_POWER_STATE_FAILURE (9f)" or "(0x0000009F, 0x...)"
BUGCHECK_PATTERN = re.compile(r"\(\s*([^()\s,]+)\s*[,)]")

# e.g. "Arg1: 0000000000000003" or "Arg2: ffffe001`2a3b4c50"
ARG_PATTERN = re.compile(r"\bArg(\d+):\s*((?:0x)?[0-9a-fA-F`]+)\b")


def _strip_hex_prefix(token: str) -> str:
    return token[2:] if token.lower().startswith("0x") else token


def extract_bugcheck_code(analysis: str) -> str | None:
    """Return the first parenthesized token, lower-cased, or None."""
    match = BUGCHECK_PATTERN.search(analysis)
    if not match:
        return None
    return _strip_hex_prefix(match.group(1)).lower()


def extract_bugcheck_args(analysis: str) -> List[str]:
    """Return argument values in order of first appearance.

    A repeated ``ArgN`` keeps the value it had the first time.
    """
    seen = set()
    args = []
    for match in ARG_PATTERN.finditer(analysis):
        index = match.group(1)
        if index in seen:
            continue
        seen.add(index)
        args.append(match.group(2))
    return args


def classify(analysis: str) -> tuple[str | None, List[str]]:
    """Extract the bugcheck code and its arguments (Arg1 at index 0)."""
    return extract_bugcheck_code(analysis), extract_bugcheck_args(analysis)


def normalize_bugcheck_code(code: str | None) -> str | None:
    """Normalize a bugcheck code into a dispatch key.

    ``0x0000009F``, ``0000009f`` and ``9F`` all become ``9f``.
    """
    if code is None:
        return None
    key = _strip_hex_prefix(code.strip().lower()).lstrip("0")
    return key or "0"


def classify_report(report: ParsedReport) -> ClassifiedReport:
    """Attach bugcheck classification to a parsed report."""
    code, args = classify(report.analysis)
    return ClassifiedReport(
        artifact_path=report.artifact_path,
        header_info=report.header_info,
        analysis=report.analysis,
        raw_report=report.raw_report,
        bugcheck=code,
        bugcheck_args=tuple(args),
    )
