"""Reverse mapping of view edits onto the unfiltered source text."""

from __future__ import annotations

from collections.abc import Sequence

from search_filter.view.models import EditBatch, Ledger, TextEdit


def hidden_adjustment(ledger: Ledger, view_line: int) -> int:
    """Return the number of hidden source characters before view_line.

    Each hidden line contributes its length plus one separator. A hidden run that
    ends exactly where ``view_line`` begins is counted in full, so an edit typed at
    that boundary lands after the run, at the start of the following visible line.
    An out-of-order ledger stops the walk and leaves the rest unadjusted.
    """
    adjust = 0
    last_hidden_line = -1
    visible_line_count = 0
    at_boundary = False
    for record in ledger.records:
        line = record.line + ledger.base_line
        visible_between = line - (last_hidden_line + 1)
        if visible_between < 0:
            break
        if at_boundary and visible_between > 0:
            break
        visible_line_count += visible_between
        last_hidden_line = line
        if visible_line_count >= view_line:
            if visible_line_count > view_line:
                break
            at_boundary = True
        adjust += record.length + 1
    return adjust


def map_to_source(ledger: Ledger, view_offset: int, view_line: int) -> int:
    """Map a view character offset on view_line to a source offset."""
    return view_offset + hidden_adjustment(ledger, view_line)


def view_line_at(view_text: str, offset: int) -> int:
    """Return the zero-based line containing offset in view_text."""
    return view_text.count("\n", 0, max(offset, 0))


def map_batch(ledger: Ledger, view_text: str, batch: Sequence[TextEdit]) -> EditBatch:
    """Map every edit of a batch against the same pre-batch ledger."""
    mapped: list[TextEdit] = []
    for edit in batch:
        line = view_line_at(view_text, edit.range_offset)
        mapped.append(
            TextEdit(
                range_offset=map_to_source(ledger, edit.range_offset, line),
                range_length=edit.range_length,
                text=edit.text,
            )
        )
    return tuple(mapped)


def apply_edits(text: str, edits: Sequence[TextEdit]) -> str:
    """Apply edits expressed against the same pre-edit text.

    Edits are applied from the highest offset down so earlier offsets stay valid;
    equal offsets keep their batch order in the result.
    """
    ordered = sorted(enumerate(edits), key=lambda item: (item[1].range_offset, item[0]))
    output = text
    for _, edit in reversed(ordered):
        start = min(max(edit.range_offset, 0), len(output))
        end = min(start + max(edit.range_length, 0), len(output))
        output = output[:start] + edit.text + output[end:]
    return output
