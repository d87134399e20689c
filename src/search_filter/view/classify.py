"""Line classification for search-result listings."""

from __future__ import annotations

import re

from search_filter.view.models import LineKind

FILE_HEADER_PATTERN = re.compile(r"^(\S.*):$")
RESULT_LINE_PATTERN = re.compile(r"^(\s+)([0-9]+)(:| ) (.*)$")

LINE_RULES: tuple[tuple[LineKind, re.Pattern[str]], ...] = (
    (LineKind.FILE_HEADER, FILE_HEADER_PATTERN),
    (LineKind.RESULT_LINE, RESULT_LINE_PATTERN),
)


def classify(line: str) -> LineKind:
    """Classify one line as a file header, a result line, or other text."""
    for kind, pattern in LINE_RULES:
        if pattern.match(line) is not None:
            return kind
    return LineKind.OTHER


def is_file_header(line: str) -> bool:
    return FILE_HEADER_PATTERN.match(line) is not None


def find_file_header(lines: list[str] | tuple[str, ...], start_line: int = 0) -> int | None:
    """Return the index of the first file header at or after start_line."""
    for index in range(max(start_line, 0), len(lines)):
        if is_file_header(lines[index]):
            return index
    return None
