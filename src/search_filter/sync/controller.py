"""Per-buffer synchronization between the filtered view and its source text."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from search_filter.logging.audit import SyncEvent, utc_timestamp
from search_filter.view.classify import find_file_header
from search_filter.view.mapping import apply_edits, map_batch
from search_filter.view.models import Ledger, Materialization, SearchFilter, TextEdit
from search_filter.view.parser import DEFAULT_FILENAME_PREFIX, parse_filters
from search_filter.view.projection import project, render

DEFAULT_MARKER_SUFFIX = " (Filtered)"

SyncEventSink = Callable[[SyncEvent], None]


class SessionState(Enum):
    """Lifecycle of a buffer session."""

    UNFILTERED = "unfiltered"
    FILTERING_ACTIVE = "filtering_active"
    CLOSED = "closed"


@dataclass(slots=True, frozen=True)
class ReentrantCycleError(Exception):
    """Raised when a buffer's cycle is re-entered before it completes."""

    buffer_id: str


@dataclass(slots=True)
class Session:
    """Synchronization state owned by one open buffer."""

    buffer_id: str
    source_text: str = ""
    ledger: Ledger = field(default_factory=Ledger.empty)
    filters: tuple[SearchFilter, ...] = ()
    filtering_active: bool = False
    view_text: str | None = None
    pending: Materialization | None = None
    in_cycle: bool = False
    cycle_count: int = 0
    closed: bool = False

    @property
    def state(self) -> SessionState:
        if self.closed:
            return SessionState.CLOSED
        if self.filtering_active:
            return SessionState.FILTERING_ACTIVE
        return SessionState.UNFILTERED

    def take_pending(self) -> Materialization | None:
        """Return and clear the outstanding materialization."""
        pending = self.pending
        self.pending = None
        return pending

    def discard_pending(self) -> None:
        """Forget a materialization the host did not apply."""
        pending = self.take_pending()
        if pending is not None and pending.marker_inserted:
            self.filtering_active = False


@dataclass(slots=True, frozen=True)
class CycleOutcome:
    """Result of reconciling one edit batch."""

    action: str
    filters: tuple[SearchFilter, ...]
    materialization: Materialization | None


class SyncController:
    """Reverse-maps view edits onto the source and re-projects the view."""

    def __init__(
        self,
        marker_suffix: str = DEFAULT_MARKER_SUFFIX,
        filename_prefix: str = DEFAULT_FILENAME_PREFIX,
        event_sink: SyncEventSink | None = None,
    ) -> None:
        self._marker_suffix = marker_suffix
        self._filename_prefix = filename_prefix
        self._event_sink = event_sink

    @property
    def marker_suffix(self) -> str:
        return self._marker_suffix

    def has_marker(self, text: str) -> bool:
        """Return True when the first line carries the filtering marker."""
        first_line, _, _ = text.partition("\n")
        return first_line.endswith(self._marker_suffix)

    def handle_edit_batch(
        self,
        session: Session,
        batch: Sequence[TextEdit],
        text: str,
    ) -> Materialization | None:
        """Reconcile one edit batch and return the edits that refresh the view.

        ``batch`` is expressed against the buffer text the session last observed and
        ``text`` is the buffer text after the batch. The caller applies the returned
        materialization, if any, and reports the resulting batch back.
        """
        if session.closed:
            return None
        if session.in_cycle:
            raise ReentrantCycleError(buffer_id=session.buffer_id)
        session.in_cycle = True
        try:
            outcome = self._run_cycle(session, tuple(batch), text)
        finally:
            session.in_cycle = False
        self._emit(session, outcome, len(batch))
        return outcome.materialization

    def materialization_failed(self, session: Session) -> None:
        """Drop the outstanding materialization after the host rejected it."""
        session.discard_pending()

    def close(self, session: Session) -> None:
        """Discard all state held for a closing buffer."""
        session.closed = True
        session.pending = None
        session.source_text = ""
        session.view_text = None
        session.filters = ()
        session.ledger = Ledger.empty()
        session.filtering_active = False
        self._emit(session, CycleOutcome(action="closed", filters=(), materialization=None), 0)

    def _run_cycle(
        self, session: Session, batch: tuple[TextEdit, ...], text: str
    ) -> CycleOutcome:
        first_observation = session.view_text is None
        previous_view = text if session.view_text is None else session.view_text
        session.cycle_count += 1

        pending = session.take_pending()
        feedback = pending is not None and batch == pending.edits
        if feedback:
            session.ledger = pending.ledger
        elif pending is not None and pending.marker_inserted:
            session.filtering_active = False

        if first_observation and self.has_marker(text):
            session.filtering_active = True
            session.source_text = text
            session.ledger = Ledger.empty()
            action = "baseline"
        elif not session.filtering_active:
            session.source_text = text
            session.ledger = Ledger.empty()
            action = "baseline"
        elif feedback:
            action = "feedback"
        else:
            mapped = map_batch(session.ledger, previous_view, batch)
            session.source_text = apply_edits(session.source_text, mapped)
            action = "reverse_mapped"

        session.view_text = text
        filters, materialization = self._materialize(session)
        if materialization is not None:
            action = "materialized"
        return CycleOutcome(action=action, filters=filters, materialization=materialization)

    def _materialize(
        self, session: Session
    ) -> tuple[tuple[SearchFilter, ...], Materialization | None]:
        view_text = session.view_text or ""
        view_lines = view_text.split("\n")
        filters = parse_filters(view_lines, self._filename_prefix)
        session.filters = filters

        edits: list[TextEdit] = []
        marker_inserted = False
        if not session.filtering_active:
            if not filters:
                return filters, None
            if not self.has_marker(view_text):
                edits.append(TextEdit(len(view_lines[0]), 0, self._marker_suffix))
                source_first_line = session.source_text.partition("\n")[0]
                session.source_text = apply_edits(
                    session.source_text,
                    [TextEdit(len(source_first_line), 0, self._marker_suffix)],
                )
                marker_inserted = True
            session.filtering_active = True

        source_lines = session.source_text.split("\n")
        source_start = find_file_header(source_lines)
        if source_start is None:
            source_start = len(source_lines)
        result = project(source_lines[source_start:], filters)
        ledger = Ledger(records=result.removed_lines, base_line=source_start)

        new_region = render(result)
        # the header region has the same lines in view and snapshot
        region_offset = min(
            sum(len(line) + 1 for line in view_lines[:source_start]), len(view_text)
        )
        if view_text[region_offset:] != new_region:
            edits.append(TextEdit(region_offset, len(view_text) - region_offset, new_region))

        if not edits:
            session.ledger = ledger
            return filters, None
        materialization = Materialization(
            edits=tuple(edits),
            filters=filters,
            ledger=ledger,
            marker_inserted=marker_inserted,
        )
        session.pending = materialization
        return filters, materialization

    def _emit(self, session: Session, outcome: CycleOutcome, edit_count: int) -> None:
        if self._event_sink is None:
            return
        materialization = outcome.materialization
        ledger = materialization.ledger if materialization is not None else session.ledger
        self._event_sink(
            SyncEvent(
                timestamp=utc_timestamp(),
                buffer_id=session.buffer_id,
                cycle=session.cycle_count,
                state=session.state.value,
                action=outcome.action,
                filters=len(outcome.filters),
                edits=edit_count,
                hidden_lines=len(ledger),
            )
        )
