"""Built-in buffer methods exposed by the host."""

from __future__ import annotations

from collections.abc import Callable

from search_filter.config import ServerConfig
from search_filter.sync.host import BufferHost, EditOutcome
from search_filter.tools.registry import MethodDispatchError, MethodHandler, MethodRegistry
from search_filter.view.models import TextEdit


def register_builtin_methods(
    registry: MethodRegistry,
    host: BufferHost,
    config: ServerConfig,
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> None:
    """Register the buffer method set in a stable order."""
    registry.register("buffer.open", _open_handler(host))
    registry.register("buffer.edit", _edit_handler(host))
    registry.register("buffer.read", _read_handler(host))
    registry.register("buffer.source", _source_handler(host))
    registry.register("buffer.close", _close_handler(host))
    registry.register("buffer.status", _status_handler(host, config))
    registry.register("buffer.audit_log", _audit_log_handler(read_audit_entries))


def _require_buffer_id(arguments: dict[str, object], method: str) -> str:
    value = arguments.get("buffer_id")
    if not isinstance(value, str) or not value:
        raise MethodDispatchError(
            code="INVALID_PARAMS",
            message=f"{method} buffer_id must be a non-empty string.",
        )
    return value


def _parse_edits(value: object) -> tuple[TextEdit, ...]:
    if not isinstance(value, list):
        raise MethodDispatchError(
            code="INVALID_PARAMS",
            message="buffer.edit edits must be a list of objects.",
        )
    edits: list[TextEdit] = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            raise MethodDispatchError(
                code="INVALID_PARAMS",
                message=f"buffer.edit edits[{index}] must be an object.",
            )
        range_offset = item.get("range_offset")
        range_length = item.get("range_length", 0)
        text = item.get("text", "")
        if not _is_int(range_offset) or not _is_int(range_length):
            raise MethodDispatchError(
                code="INVALID_PARAMS",
                message=(
                    f"buffer.edit edits[{index}] range_offset and range_length "
                    "must be integers."
                ),
            )
        if not isinstance(text, str):
            raise MethodDispatchError(
                code="INVALID_PARAMS",
                message=f"buffer.edit edits[{index}] text must be a string.",
            )
        edits.append(TextEdit(range_offset=range_offset, range_length=range_length, text=text))
    return tuple(edits)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _outcome_payload(outcome: EditOutcome) -> dict[str, object]:
    return {
        "buffer_id": outcome.buffer_id,
        "text": outcome.text,
        "filters": [item.to_dict() for item in outcome.filters],
        "rewritten": outcome.rewritten,
        "state": outcome.state.value,
    }


def _open_handler(host: BufferHost) -> MethodHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        buffer_id = _require_buffer_id(arguments, "buffer.open")
        text = arguments.get("text", "")
        if not isinstance(text, str):
            raise MethodDispatchError(
                code="INVALID_PARAMS",
                message="buffer.open text must be a string.",
            )
        return _outcome_payload(host.open(buffer_id, text))

    return handler


def _edit_handler(host: BufferHost) -> MethodHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        buffer_id = _require_buffer_id(arguments, "buffer.edit")
        edits = _parse_edits(arguments.get("edits"))
        return _outcome_payload(host.edit(buffer_id, edits))

    return handler


def _read_handler(host: BufferHost) -> MethodHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        entry = host.get(_require_buffer_id(arguments, "buffer.read"))
        return {
            "buffer_id": entry.buffer.buffer_id,
            "text": entry.buffer.text,
            "line_count": entry.buffer.line_count,
            "version": entry.buffer.version,
            "state": entry.session.state.value,
            "filters": [item.to_dict() for item in entry.session.filters],
        }

    return handler


def _source_handler(host: BufferHost) -> MethodHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        entry = host.get(_require_buffer_id(arguments, "buffer.source"))
        session = entry.session
        return {
            "buffer_id": session.buffer_id,
            "source_text": session.source_text,
            "hidden_lines": list(session.ledger.document_lines()),
            "state": session.state.value,
        }

    return handler


def _close_handler(host: BufferHost) -> MethodHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        buffer_id = _require_buffer_id(arguments, "buffer.close")
        host.close(buffer_id)
        return {"buffer_id": buffer_id, "closed": True}

    return handler


def _status_handler(host: BufferHost, config: ServerConfig) -> MethodHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        buffers: list[dict[str, object]] = []
        for buffer_id in host.buffer_ids():
            entry = host.get(buffer_id)
            buffers.append(
                {
                    "buffer_id": buffer_id,
                    "state": entry.session.state.value,
                    "line_count": entry.buffer.line_count,
                    "hidden_line_count": len(entry.session.ledger),
                    "filter_count": len(entry.session.filters),
                }
            )
        return {
            "open_buffers": buffers,
            "limits_summary": {
                "max_buffer_bytes": host.limits.max_buffer_bytes,
                "max_batch_edits": host.limits.max_batch_edits,
                "max_open_buffers": host.limits.max_open_buffers,
            },
            "effective_config": config.to_public_dict(),
        }

    return handler


def _audit_log_handler(
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> MethodHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        since_value = arguments.get("since")
        since = since_value if isinstance(since_value, str) else None
        limit_value = arguments.get("limit", 50)
        if not _is_int(limit_value) or limit_value < 1:
            raise MethodDispatchError(
                code="INVALID_PARAMS",
                message="buffer.audit_log limit must be a positive integer.",
            )
        return {"entries": read_audit_entries(since, limit_value)}

    return handler
