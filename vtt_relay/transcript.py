"""Plain-text extraction from WebVTT captions.

Header, timing and cue-identifier lines are dropped; everything else is
treated as dialogue, trimmed, and joined with single spaces.
"""

import enum
import re

HEADER_TOKEN = "WEBVTT"
CUE_ARROW = "-->"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
# Leading cue timestamp, e.g. "00:00:01.500" with or without "--> ..." after it
_TIMESTAMP_PATTERN = re.compile(r"^\d{2}:\d{2}:\d{2}\.\d{3}", re.ASCII)
_BOM = "\ufeff"


def _trim(line: str) -> str:
    # str.strip leaves a byte-order mark in place
    return line.strip().strip(_BOM).strip()


class LineKind(str, enum.Enum):
    """Classification of a single VTT line."""

    BLANK = "blank"
    HEADER = "header"
    TIMING_CUE = "timing_cue"
    CUE_IDENTIFIER = "cue_identifier"
    DIALOGUE = "dialogue"


def classify_line(line: str) -> LineKind:
    """Classify one line in isolation. Cue identifiers need context, see classify_lines."""
    stripped = _trim(line)
    if not stripped:
        return LineKind.BLANK
    if stripped.startswith(HEADER_TOKEN):
        return LineKind.HEADER
    if _TIMESTAMP_PATTERN.match(stripped):
        return LineKind.TIMING_CUE
    if CUE_ARROW in line:
        return LineKind.TIMING_CUE
    return LineKind.DIALOGUE


def classify_lines(lines: list[str], keep_cue_identifiers: bool = False) -> list[LineKind]:
    """Classify every line.

    A text line that opens a cue block (first line, or after a blank or header
    line) and is directly followed by a timing line is that cue's identifier.
    """
    kinds = [classify_line(line) for line in lines]
    if keep_cue_identifiers:
        return kinds
    for i in range(len(kinds) - 1):
        opens_block = i == 0 or kinds[i - 1] in (LineKind.BLANK, LineKind.HEADER)
        if (
            opens_block
            and kinds[i] is LineKind.DIALOGUE
            and kinds[i + 1] is LineKind.TIMING_CUE
        ):
            kinds[i] = LineKind.CUE_IDENTIFIER
    return kinds


def extract_transcript(raw_text: str, keep_cue_identifiers: bool = False) -> str:
    """Return the dialogue of a VTT document as one space-joined line.

    Never raises for str input; a document without dialogue yields "".
    Handles \\n, \\r\\n and bare \\r line endings.
    """
    lines = _LINE_BREAK.split(raw_text)
    kinds = classify_lines(lines, keep_cue_identifiers=keep_cue_identifiers)
    return " ".join(
        _trim(line) for line, kind in zip(lines, kinds) if kind is LineKind.DIALOGUE
    )
