"""Open-buffer bookkeeping that drives the controller for each buffer."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from search_filter.limits import (
    BufferLimits,
    enforce_batch_size,
    enforce_buffer_size,
    enforce_open_buffers,
)
from search_filter.sync.buffer import EditRangeError, TextBuffer, validate_batch
from search_filter.sync.controller import Session, SessionState, SyncController
from search_filter.view.mapping import apply_edits
from search_filter.view.models import SearchFilter, TextEdit


@dataclass(slots=True, frozen=True)
class UnknownBufferError(Exception):
    """Raised when a request names a buffer that is not open."""

    buffer_id: str


@dataclass(slots=True, frozen=True)
class BufferExistsError(Exception):
    """Raised when opening a buffer id that is already open."""

    buffer_id: str


@dataclass(slots=True)
class OpenBuffer:
    """A host buffer together with the session it owns."""

    buffer: TextBuffer
    session: Session


@dataclass(slots=True, frozen=True)
class EditOutcome:
    """Buffer state after one user batch and its reconciliation."""

    buffer_id: str
    text: str
    filters: tuple[SearchFilter, ...]
    rewritten: bool
    state: SessionState


class BufferHost:
    """Holds open buffers and feeds their change notifications to the controller."""

    def __init__(self, controller: SyncController, limits: BufferLimits) -> None:
        self._controller = controller
        self._limits = limits
        self._buffers: dict[str, OpenBuffer] = {}

    @property
    def limits(self) -> BufferLimits:
        return self._limits

    def buffer_ids(self) -> tuple[str, ...]:
        return tuple(sorted(self._buffers.keys()))

    def get(self, buffer_id: str) -> OpenBuffer:
        entry = self._buffers.get(buffer_id)
        if entry is None:
            raise UnknownBufferError(buffer_id=buffer_id)
        return entry

    def open(self, buffer_id: str, text: str) -> EditOutcome:
        """Open a buffer and let the controller observe its initial text."""
        if buffer_id in self._buffers:
            raise BufferExistsError(buffer_id=buffer_id)
        enforce_open_buffers(len(self._buffers), self._limits)
        enforce_buffer_size(text, self._limits)
        entry = OpenBuffer(buffer=TextBuffer(buffer_id, text), session=Session(buffer_id))
        self._buffers[buffer_id] = entry
        return self._reconcile(entry, ())

    def edit(self, buffer_id: str, edits: Sequence[TextEdit]) -> EditOutcome:
        """Apply a user batch, then reconcile and materialize the view."""
        entry = self.get(buffer_id)
        batch = tuple(edits)
        enforce_batch_size(len(batch), self._limits)
        validate_batch(batch, len(entry.buffer.text))
        enforce_buffer_size(apply_edits(entry.buffer.text, batch), self._limits)
        notification = entry.buffer.apply(batch)
        return self._reconcile(entry, notification)

    def close(self, buffer_id: str) -> None:
        """Close a buffer and discard its session."""
        entry = self._buffers.pop(buffer_id, None)
        if entry is None:
            raise UnknownBufferError(buffer_id=buffer_id)
        self._controller.close(entry.session)

    def _reconcile(self, entry: OpenBuffer, notification: tuple[TextEdit, ...]) -> EditOutcome:
        session = entry.session
        materialization = self._controller.handle_edit_batch(
            session, notification, entry.buffer.text
        )
        rewritten = False
        if materialization is not None:
            try:
                applied = entry.buffer.apply(materialization.edits)
            except EditRangeError:
                self._controller.materialization_failed(session)
            else:
                rewritten = True
                # a settled view needs no further rewrite; never leave one pending
                unsettled = self._controller.handle_edit_batch(
                    session, applied, entry.buffer.text
                )
                if unsettled is not None:
                    self._controller.materialization_failed(session)
        return EditOutcome(
            buffer_id=entry.buffer.buffer_id,
            text=entry.buffer.text,
            filters=session.filters,
            rewritten=rewritten,
            state=session.state,
        )
