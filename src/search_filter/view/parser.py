"""Filter extraction from the header region above the first file header."""

from __future__ import annotations

from collections.abc import Iterable

from search_filter.view.classify import is_file_header
from search_filter.view.models import FilterPolarity, FilterScope, SearchFilter

DEFAULT_FILENAME_PREFIX = "file"

SIGILS: dict[str, FilterPolarity] = {
    "+": FilterPolarity.INCLUDE,
    "-": FilterPolarity.EXCLUDE,
}


def parse_filters(
    lines: Iterable[str],
    filename_prefix: str = DEFAULT_FILENAME_PREFIX,
) -> tuple[SearchFilter, ...]:
    """Parse filters in encounter order, stopping at the first file header.

    Lines that do not follow ``[prefix] sigil pattern`` are ignored.
    """
    filters: list[SearchFilter] = []
    for line_number, line in enumerate(lines):
        if is_file_header(line):
            break
        parsed = parse_filter_line(line, line_number, filename_prefix)
        if parsed is not None:
            filters.append(parsed)
    return tuple(filters)


def parse_filter_line(
    line: str,
    line_number: int,
    filename_prefix: str = DEFAULT_FILENAME_PREFIX,
) -> SearchFilter | None:
    """Parse one header line, returning None when it is not a filter."""
    scope = FilterScope.CONTENT
    text = line
    if filename_prefix and text.startswith(filename_prefix):
        scope = FilterScope.FILENAME
        text = text[len(filename_prefix) :]

    # sigil plus at least one pattern character
    if len(text) <= 1:
        return None
    polarity = SIGILS.get(text[0])
    if polarity is None:
        return None
    return SearchFilter(scope=scope, polarity=polarity, pattern=text[1:], line=line_number)


def split_filters(
    filters: Iterable[SearchFilter],
) -> tuple[tuple[SearchFilter, ...], tuple[SearchFilter, ...]]:
    """Partition filters into (filename filters, content filters)."""
    filename_filters: list[SearchFilter] = []
    content_filters: list[SearchFilter] = []
    for item in filters:
        if item.scope is FilterScope.FILENAME:
            filename_filters.append(item)
        else:
            content_filters.append(item)
    return tuple(filename_filters), tuple(content_filters)


def text_passes(text: str, filters: Iterable[SearchFilter]) -> bool:
    """Return True when text satisfies every filter (logical AND)."""
    return all(item.matches(text) for item in filters)
