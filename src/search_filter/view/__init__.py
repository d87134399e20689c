"""Search-result classification, filtering and reverse mapping."""

from .classify import classify, find_file_header, is_file_header
from .mapping import apply_edits, hidden_adjustment, map_batch, map_to_source, view_line_at
from .models import (
    EditBatch,
    FilterPolarity,
    FilterScope,
    Ledger,
    LineKind,
    Materialization,
    ProjectionResult,
    RemovedLine,
    SearchFilter,
    TextEdit,
)
from .parser import parse_filter_line, parse_filters, split_filters, text_passes
from .projection import build_removed_lines, project, render

__all__ = [
    "EditBatch",
    "FilterPolarity",
    "FilterScope",
    "Ledger",
    "LineKind",
    "Materialization",
    "ProjectionResult",
    "RemovedLine",
    "SearchFilter",
    "TextEdit",
    "apply_edits",
    "build_removed_lines",
    "classify",
    "find_file_header",
    "hidden_adjustment",
    "is_file_header",
    "map_batch",
    "map_to_source",
    "parse_filter_line",
    "parse_filters",
    "project",
    "render",
    "split_filters",
    "text_passes",
    "view_line_at",
]
