"""Typed models for filters, projections and edits."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LineKind(Enum):
    """Classification of a single search-result line."""

    FILE_HEADER = "file_header"
    RESULT_LINE = "result_line"
    OTHER = "other"


class FilterScope(Enum):
    """Which lines a filter is evaluated against."""

    FILENAME = "filename"
    CONTENT = "content"


class FilterPolarity(Enum):
    """Whether a filter pattern must be present or absent."""

    INCLUDE = "include"
    EXCLUDE = "exclude"


@dataclass(slots=True, frozen=True)
class SearchFilter:
    """One include/exclude filter parsed from the header region."""

    scope: FilterScope
    polarity: FilterPolarity
    pattern: str
    line: int

    def matches(self, text: str) -> bool:
        """Return True when text satisfies this filter."""
        found = self.pattern in text
        if self.polarity is FilterPolarity.INCLUDE:
            return found
        return not found

    def to_dict(self) -> dict[str, object]:
        return {
            "scope": self.scope.value,
            "polarity": self.polarity.value,
            "pattern": self.pattern,
            "line": self.line,
        }


@dataclass(slots=True, frozen=True)
class RemovedLine:
    """A source line hidden from the current view."""

    line: int
    offset: int
    length: int


@dataclass(slots=True, frozen=True)
class ProjectionResult:
    """Retained view lines plus the ledger of hidden source lines."""

    retained_lines: tuple[str, ...]
    retained_line_numbers: tuple[int, ...]
    removed_lines: tuple[RemovedLine, ...]


@dataclass(slots=True, frozen=True)
class Ledger:
    """Hidden lines of one projection in whole-document coordinates.

    ``records`` are relative to the result region of the snapshot the projection
    was computed from; ``base_line`` is the snapshot line where that region starts,
    so ``record.line + base_line`` is a document line number.
    """

    records: tuple[RemovedLine, ...] = ()
    base_line: int = 0

    @classmethod
    def empty(cls) -> Ledger:
        return cls()

    def document_lines(self) -> tuple[int, ...]:
        """Return hidden line numbers in whole-document coordinates."""
        return tuple(record.line + self.base_line for record in self.records)

    def __len__(self) -> int:
        return len(self.records)


@dataclass(slots=True, frozen=True)
class TextEdit:
    """Replace ``range_length`` characters at ``range_offset`` with ``text``."""

    range_offset: int
    range_length: int
    text: str

    @property
    def range_end(self) -> int:
        return self.range_offset + self.range_length

    def to_dict(self) -> dict[str, object]:
        return {
            "range_offset": self.range_offset,
            "range_length": self.range_length,
            "text": self.text,
        }


EditBatch = tuple[TextEdit, ...]


@dataclass(slots=True, frozen=True)
class Materialization:
    """Edits the controller asks the host to apply as one batch."""

    edits: EditBatch
    filters: tuple[SearchFilter, ...]
    ledger: Ledger
    marker_inserted: bool
