"""Forward projection of result lines through the active filters."""

from __future__ import annotations

from collections.abc import Sequence

from search_filter.view.classify import classify
from search_filter.view.models import (
    LineKind,
    ProjectionResult,
    RemovedLine,
    SearchFilter,
)
from search_filter.view.parser import split_filters, text_passes

LINE_SEPARATOR = "\n"


def project(lines: Sequence[str], filters: Sequence[SearchFilter]) -> ProjectionResult:
    """Filter result lines, hiding failing results and file groups left empty.

    ``lines`` is the result region of a listing (starting at its first file header).
    Blank and context lines are never filtered on their own; a file header whose
    group keeps no result line is retracted together with the blank lines that
    trail it.
    """
    if not filters:
        return ProjectionResult(
            retained_lines=tuple(lines),
            retained_line_numbers=tuple(range(len(lines))),
            removed_lines=(),
        )

    filename_filters, content_filters = split_filters(filters)
    retained: list[str] = []
    retained_numbers: list[int] = []
    pending_remove_count = 0
    hide_until_next_header = False

    def retract() -> None:
        nonlocal pending_remove_count
        while pending_remove_count > 0 and retained:
            retained.pop()
            retained_numbers.pop()
            pending_remove_count -= 1
        pending_remove_count = 0

    for line_number, text in enumerate(lines):
        kind = classify(text)
        if kind is LineKind.FILE_HEADER:
            retract()
            hide_until_next_header = not text_passes(text, filename_filters)
            if not hide_until_next_header:
                retained.append(text)
                retained_numbers.append(line_number)
                pending_remove_count = 1
        elif kind is LineKind.RESULT_LINE:
            if hide_until_next_header or not text_passes(text, content_filters):
                continue
            retained.append(text)
            retained_numbers.append(line_number)
            pending_remove_count = 0
        else:
            retained.append(text)
            retained_numbers.append(line_number)
            if pending_remove_count > 0 or hide_until_next_header:
                if text == "":
                    pending_remove_count += 1
                else:
                    pending_remove_count = 0

    retract()

    return ProjectionResult(
        retained_lines=tuple(retained),
        retained_line_numbers=tuple(retained_numbers),
        removed_lines=build_removed_lines(lines, retained_numbers),
    )


def build_removed_lines(
    lines: Sequence[str], retained_line_numbers: Sequence[int]
) -> tuple[RemovedLine, ...]:
    """Build the ledger of lines absent from retained_line_numbers."""
    retained = set(retained_line_numbers)
    removed: list[RemovedLine] = []
    offset = 0
    for line_number, text in enumerate(lines):
        if line_number not in retained:
            removed.append(RemovedLine(line=line_number, offset=offset, length=len(text)))
        offset += len(text) + len(LINE_SEPARATOR)
    return tuple(removed)


def render(result: ProjectionResult) -> str:
    """Join retained lines into view text."""
    return LINE_SEPARATOR.join(result.retained_lines)
