from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

MARKER = "@SAR"
MARKER_RX = re.compile(re.escape(MARKER), re.IGNORECASE)

# Fixed offsets relative to the marker's "@": "@SAR:G:Label"
SEVERITY_OFFSET = 5
LABEL_OFFSET = 7

LINE_COMMENT = "//"


@dataclass(frozen=True)
class ParsedAnnotation:
    severity_code: str
    label: str


def find_marker(line: str) -> int:
    match = MARKER_RX.search(line)
    return match.start() if match else -1


def parse_annotation(line: str) -> Optional[ParsedAnnotation]:
    """Parse the first ``@SAR`` marker of a line.

    Returns ``None`` when the line carries no marker. A marker too short to
    hold a severity code yields empty fields; a marker without label
    text yields an empty label.
    """
    start = find_marker(line)
    if start < 0:
        return None
    text = line[start:]
    if len(text) <= SEVERITY_OFFSET:
        return ParsedAnnotation(severity_code="", label="")
    severity_code = text[SEVERITY_OFFSET]
    label = text[LABEL_OFFSET:].strip() if len(text) > LABEL_OFFSET else ""
    return ParsedAnnotation(severity_code=severity_code, label=label)


def strip_trailing_comment(line: str) -> str:
    """Drop a trailing ``//`` comment and trim.

    A line that is nothing but a comment keeps the comment body, so that an
    annotation written on its own line still has visible content.
    """
    idx = line.find(LINE_COMMENT)
    if idx < 0:
        return line.strip()
    code = line[:idx].strip()
    if code:
        return code
    return line[idx + len(LINE_COMMENT):].strip()
