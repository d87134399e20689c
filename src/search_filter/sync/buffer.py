"""In-memory host text buffer with line addressing and batch edits."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from search_filter.view.mapping import apply_edits
from search_filter.view.models import EditBatch, TextEdit


@dataclass(slots=True, frozen=True)
class EditRangeError(Exception):
    """Raised when an edit batch does not fit the current buffer text."""

    code: str
    message: str


class TextBuffer:
    """Mutable text addressed by character offset and ``\\n``-separated line."""

    def __init__(self, buffer_id: str, text: str = "") -> None:
        self._buffer_id = buffer_id
        self._text = text
        self._version = 0

    @property
    def buffer_id(self) -> str:
        return self._buffer_id

    @property
    def text(self) -> str:
        return self._text

    @property
    def version(self) -> int:
        """Return the number of batches applied so far."""
        return self._version

    @property
    def line_count(self) -> int:
        return self._text.count("\n") + 1

    def line(self, line_number: int) -> str:
        """Return one line without its separator."""
        lines = self._text.split("\n")
        if line_number < 0 or line_number >= len(lines):
            raise EditRangeError(
                code="EDIT_OUT_OF_RANGE",
                message=f"Line {line_number} is outside buffer {self._buffer_id}.",
            )
        return lines[line_number]

    def line_offset(self, line_number: int) -> int:
        """Return the offset where line_number starts, or the text length past the end."""
        if line_number <= 0:
            return 0
        offset = 0
        for _ in range(line_number):
            next_newline = self._text.find("\n", offset)
            if next_newline == -1:
                return len(self._text)
            offset = next_newline + 1
        return offset

    def apply(self, edits: Sequence[TextEdit]) -> EditBatch:
        """Validate and apply a batch, returning it as the change notification."""
        batch = tuple(edits)
        validate_batch(batch, len(self._text))
        if batch:
            self._text = apply_edits(self._text, batch)
            self._version += 1
        return batch


def validate_batch(batch: Sequence[TextEdit], text_length: int) -> None:
    """Raise EditRangeError for negative, out-of-bounds or overlapping ranges."""
    previous_end = -1
    for edit in sorted(batch, key=lambda item: (item.range_offset, item.range_end)):
        if edit.range_offset < 0 or edit.range_length < 0:
            raise EditRangeError(
                code="EDIT_OUT_OF_RANGE",
                message="Edit range offset and length must be non-negative.",
            )
        if edit.range_end > text_length:
            raise EditRangeError(
                code="EDIT_OUT_OF_RANGE",
                message=(
                    f"Edit range {edit.range_offset}+{edit.range_length} "
                    f"exceeds text length {text_length}."
                ),
            )
        if edit.range_offset < previous_end:
            raise EditRangeError(
                code="EDIT_OUT_OF_RANGE",
                message="Edit ranges within one batch must not overlap.",
            )
        previous_end = edit.range_end
