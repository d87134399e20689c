"""Buffer size and batch limits enforced by the host."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class BufferLimits:
    """Runtime limits for buffers handled by one host process."""

    max_buffer_bytes: int = 4 * 1024 * 1024
    max_batch_edits: int = 1_000
    max_open_buffers: int = 64


@dataclass(slots=True, frozen=True)
class LimitBlockedError(Exception):
    """Raised when a request would exceed configured buffer limits."""

    reason: str
    hint: str


def enforce_buffer_size(text: str, limits: BufferLimits) -> None:
    """Raise LimitBlockedError when text exceeds max_buffer_bytes."""
    if len(text.encode("utf-8")) > limits.max_buffer_bytes:
        raise LimitBlockedError(
            reason="Buffer exceeds max_buffer_bytes limit.",
            hint="Open a smaller search listing or increase the limit via configuration.",
        )


def enforce_batch_size(edit_count: int, limits: BufferLimits) -> None:
    """Raise LimitBlockedError when a batch carries too many edits."""
    if edit_count > limits.max_batch_edits:
        raise LimitBlockedError(
            reason="Edit batch exceeds max_batch_edits limit.",
            hint="Split the batch into smaller batches.",
        )


def enforce_open_buffers(open_count: int, limits: BufferLimits) -> None:
    """Raise LimitBlockedError when another buffer would exceed max_open_buffers."""
    if open_count >= limits.max_open_buffers:
        raise LimitBlockedError(
            reason="Open buffer count reached max_open_buffers limit.",
            hint="Close an open buffer before opening another.",
        )
