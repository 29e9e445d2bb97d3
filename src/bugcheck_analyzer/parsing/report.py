"""Parser for the text report produced by ``k; !analyze -v ; q``.

The debugger output is terminal text meant for a human, so extraction relies
on a handful of literal anchors. Each anchor is looked up by its own helper
and a missing anchor raises an error that names it.
"""

from pathlib import Path
from typing import List

from bugcheck_analyzer.errors import ExtractionError, MalformedOutputError
from bugcheck_analyzer.records import ParsedReport

SECTION_RULE = "------------------"
STACK_MARKER = "STACK_TEXT:"
ANALYSIS_HEADING = "Bugcheck Analysis"
COPYRIGHT_BANNER = "Copyright (c) Microsoft Corporation. All rights reserved."
SYMBOLS_BANNER = "Loading Kernel Symbols"
DETAILS_LABEL = "Debugging Details:"

# 3 pieces when STACK_TEXT is closed by a trailing rule, 2 when the output stops inside it
VALID_SECTION_COUNTS = (2, 3)


def split_sections(raw: str) -> List[str]:
    """Split a report on the section rule, then on the stack-trace marker.

    Raises:
        MalformedOutputError: If the result is not 2 or 3 pieces
    """
    sections = [
        piece
        for rule_piece in raw.split(SECTION_RULE)
        for piece in rule_piece.split(STACK_MARKER)
    ]
    if len(sections) not in VALID_SECTION_COUNTS:
        raise MalformedOutputError("abnormal file cannot be post-processed")
    return sections


def _split_once(text: str, anchor: str, what: str) -> tuple[str, str]:
    """Split ``text`` at the first occurrence of ``anchor``."""
    before, found, after = text.partition(anchor)
    if not found:
        raise ExtractionError(f"{what} not found in debugger output: {anchor!r}", anchor=anchor)
    return before, after


def split_analysis_heading(section: str) -> tuple[str, str]:
    """Separate the preamble from the automated analysis section."""
    return _split_once(section, ANALYSIS_HEADING, "Analysis heading")


def extract_header_info(preamble: str) -> str:
    """Return the dump information between the copyright and symbol-loading banners."""
    _, after_copyright = _split_once(preamble, COPYRIGHT_BANNER, "Copyright banner")
    header, _ = _split_once(after_copyright, SYMBOLS_BANNER, "Symbol loading banner")
    header = header.strip()
    if not header:
        raise ExtractionError("Dump information is empty", anchor=SYMBOLS_BANNER)
    return header


def is_decorative(line: str) -> bool:
    """Check if a line is only part of the asterisk banner box."""
    stripped = line.strip()
    return bool(stripped) and set(stripped) <= {"*", " ", "\t"}


def extract_analysis(body: str) -> str:
    """Drop banner rules and the details label from the analysis section."""
    lines = [
        line
        for line in body.split("\n")
        if not is_decorative(line) and DETAILS_LABEL not in line
    ]
    analysis = "\n".join(lines).strip()
    if not analysis:
        raise ExtractionError("Analysis section is empty", anchor=ANALYSIS_HEADING)
    return analysis


def parse_report(raw: str, artifact_path: Path) -> ParsedReport:
    """Parse one raw debugger report.

    Args:
        raw: Unmodified debugger stdout
        artifact_path: Dump the report was produced from

    Returns:
        Parsed report; never partially populated

    Raises:
        MalformedOutputError: Unexpected number of sections
        ExtractionError: A required anchor is missing
    """
    sections = split_sections(raw)
    preamble, analysis_body = split_analysis_heading(sections[0])
    return ParsedReport(
        artifact_path=Path(artifact_path),
        header_info=extract_header_info(preamble),
        analysis=extract_analysis(analysis_body),
        raw_report=raw,
    )
