"""Buffer sessions and view/source synchronization."""

from .buffer import EditRangeError, TextBuffer, validate_batch
from .controller import (
    DEFAULT_MARKER_SUFFIX,
    CycleOutcome,
    ReentrantCycleError,
    Session,
    SessionState,
    SyncController,
    SyncEventSink,
)
from .host import BufferExistsError, BufferHost, EditOutcome, OpenBuffer, UnknownBufferError

__all__ = [
    "BufferExistsError",
    "BufferHost",
    "CycleOutcome",
    "DEFAULT_MARKER_SUFFIX",
    "EditOutcome",
    "EditRangeError",
    "OpenBuffer",
    "ReentrantCycleError",
    "Session",
    "SessionState",
    "SyncController",
    "SyncEventSink",
    "TextBuffer",
    "UnknownBufferError",
    "validate_batch",
]
