"""STDIO JSON-line host for filtered search-result buffers."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from search_filter.config import CliOverrides, ServerConfig, load_effective_config
from search_filter.limits import LimitBlockedError
from search_filter.logging import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from search_filter.sync import (
    BufferExistsError,
    BufferHost,
    EditRangeError,
    ReentrantCycleError,
    SyncController,
    UnknownBufferError,
)
from search_filter.tools.builtin import register_builtin_methods
from search_filter.tools.registry import MethodDispatchError, MethodRegistry


@dataclass(slots=True, frozen=True)
class Request:
    """Normalized incoming request."""

    request_id: str
    method: str
    params: dict[str, object]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for host startup configuration."""
    parser = argparse.ArgumentParser(prog="search-filter")
    parser.add_argument("--root", required=False, default=".")
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--max-buffer-bytes", type=int, required=False, default=None)
    parser.add_argument("--max-batch-edits", type=int, required=False, default=None)
    parser.add_argument("--max-open-buffers", type=int, required=False, default=None)
    parser.add_argument("--audit-enabled", choices=("true", "false"), required=False, default=None)
    return parser


class StdioServer:
    """Deterministic STDIO host routing buffer methods to the sync engine."""

    def __init__(self, config: ServerConfig) -> None:
        self._config = config
        self._data_dir = config.data_dir
        self._audit_logger: JsonlAuditLogger | None = None
        self._sync_logger: JsonlAuditLogger | None = None
        if config.audit.enabled:
            self._audit_logger = JsonlAuditLogger(path=self._data_dir / "audit.jsonl")
            self._sync_logger = JsonlAuditLogger(path=self._data_dir / "sync.jsonl")
        self._controller = SyncController(
            marker_suffix=config.view.marker_suffix,
            filename_prefix=config.view.filename_prefix,
            event_sink=self._sync_logger.append if self._sync_logger is not None else None,
        )
        self._host = BufferHost(controller=self._controller, limits=config.limits)
        self._registry = MethodRegistry()
        register_builtin_methods(
            self._registry,
            host=self._host,
            config=config,
            read_audit_entries=self._read_audit_entries,
        )
        self._fallback_request_counter = 0

    @property
    def host(self) -> BufferHost:
        return self._host

    @property
    def config(self) -> ServerConfig:
        return self._config

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Process JSON-line requests and write JSON-line responses."""
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = self.handle_json_line(line)
            out_stream.write(f"{json.dumps(response, sort_keys=True)}\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        """Handle a single JSON-line request."""
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            request_id = self.next_request_id()
            response = self.error_response(
                request_id=request_id,
                code="INVALID_JSON",
                message="Request must be valid JSON.",
            )
            self.log_request(
                request_id=request_id,
                method="invalid_json",
                arguments={"raw_line_length": len(raw_line)},
                response=response,
            )
            return response
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Validate and dispatch a parsed payload."""
        parsed = self.parse_request(payload)
        if isinstance(parsed, dict):
            request_id_value = parsed.get("request_id")
            request_id = (
                request_id_value if isinstance(request_id_value, str) else self.next_request_id()
            )
            self.log_request(
                request_id=request_id,
                method="invalid_request",
                arguments={},
                response=parsed,
            )
            return parsed

        request = parsed
        method: str
        arguments: dict[str, object]
        if request.method == "tools/call":
            name_value = request.params.get("name")
            arguments_value = request.params.get("arguments", {})
            if not isinstance(name_value, str) or not name_value:
                return self.error_response(
                    request_id=request.request_id,
                    code="INVALID_PARAMS",
                    message="tools/call params.name must be a non-empty string.",
                )
            if not isinstance(arguments_value, dict):
                return self.error_response(
                    request_id=request.request_id,
                    code="INVALID_PARAMS",
                    message="tools/call params.arguments must be an object.",
                )
            method = name_value
            arguments = arguments_value
        else:
            method = request.method
            arguments = request.params

        response = self._dispatch(request.request_id, method, arguments)
        self.log_request(
            request_id=request.request_id,
            method=method,
            arguments=arguments,
            response=response,
        )
        return response

    def _dispatch(
        self, request_id: str, method: str, arguments: dict[str, object]
    ) -> dict[str, object]:
        try:
            result = self._registry.dispatch(name=method, arguments=arguments)
        except LimitBlockedError as error:
            return self.blocked_response(
                request_id=request_id, reason=error.reason, hint=error.hint
            )
        except (MethodDispatchError, EditRangeError) as error:
            return self.error_response(
                request_id=request_id, code=error.code, message=error.message
            )
        except UnknownBufferError as error:
            return self.error_response(
                request_id=request_id,
                code="UNKNOWN_BUFFER",
                message=f"Buffer is not open: {error.buffer_id}",
            )
        except BufferExistsError as error:
            return self.error_response(
                request_id=request_id,
                code="BUFFER_EXISTS",
                message=f"Buffer is already open: {error.buffer_id}",
            )
        except ReentrantCycleError as error:
            return self.error_response(
                request_id=request_id,
                code="REENTRANT_CYCLE",
                message=f"Buffer {error.buffer_id} is already reconciling an edit batch.",
            )
        except Exception:
            return self.error_response(
                request_id=request_id,
                code="INTERNAL_ERROR",
                message="Unhandled host error while executing method.",
            )
        return self.success_response(request_id=request_id, result=result)

    def parse_request(self, payload: object) -> Request | dict[str, object]:
        """Validate request payload and return normalized Request."""
        if not isinstance(payload, dict):
            return self.error_response(
                request_id=self.next_request_id(),
                code="INVALID_REQUEST",
                message="Request must be an object.",
            )

        request_id = self.extract_request_id(payload.get("id"))
        method = payload.get("method")
        params = payload.get("params", {})

        if not isinstance(method, str) or not method:
            return self.error_response(
                request_id=request_id,
                code="INVALID_REQUEST",
                message="Request method must be a non-empty string.",
            )
        if not isinstance(params, dict):
            return self.error_response(
                request_id=request_id,
                code="INVALID_PARAMS",
                message="Request params must be an object.",
            )

        return Request(request_id=request_id, method=method, params=params)

    def extract_request_id(self, request_id: object) -> str:
        """Extract request ID from payload or synthesize a sequential fallback."""
        if isinstance(request_id, str) and request_id:
            return request_id
        if isinstance(request_id, int):
            return str(request_id)
        return self.next_request_id()

    def next_request_id(self) -> str:
        self._fallback_request_counter += 1
        return f"req-{self._fallback_request_counter:06d}"

    @staticmethod
    def success_response(request_id: str, result: dict[str, object]) -> dict[str, object]:
        """Build success envelope."""
        return {
            "request_id": request_id,
            "ok": True,
            "result": result,
            "warnings": [],
            "blocked": False,
        }

    @staticmethod
    def error_response(request_id: str, code: str, message: str) -> dict[str, object]:
        """Build explicit error envelope."""
        return {
            "request_id": request_id,
            "ok": False,
            "result": {},
            "warnings": [],
            "blocked": False,
            "error": {"code": code, "message": message},
        }

    @staticmethod
    def blocked_response(request_id: str, reason: str, hint: str) -> dict[str, object]:
        """Build explicit blocked response envelope."""
        return {
            "request_id": request_id,
            "ok": False,
            "result": {"reason": reason, "hint": hint},
            "warnings": [],
            "blocked": True,
            "error": {"code": "LIMIT_BLOCKED", "message": reason},
        }

    def log_request(
        self,
        request_id: str,
        method: str,
        arguments: dict[str, object],
        response: dict[str, object],
    ) -> None:
        """Log one sanitized request event."""
        if self._audit_logger is None:
            return
        error_payload = response.get("error")
        error_code: str | None = None
        if isinstance(error_payload, dict):
            code_value = error_payload.get("code")
            if isinstance(code_value, str):
                error_code = code_value
        event = AuditEvent(
            timestamp=utc_timestamp(),
            request_id=request_id,
            method=method,
            ok=bool(response.get("ok", False)),
            blocked=bool(response.get("blocked", False)),
            error_code=error_code,
            metadata=sanitize_arguments(arguments),
        )
        self._audit_logger.append(event)

    def _read_audit_entries(self, since: str | None, limit: int) -> list[dict[str, object]]:
        if self._audit_logger is None:
            return []
        return self._audit_logger.read(since=since, limit=limit)


def create_server(
    root: str,
    data_dir: str | None = None,
    cli_overrides: CliOverrides | None = None,
) -> StdioServer:
    """Create a configured STDIO host instance."""
    overrides = cli_overrides or CliOverrides()
    if data_dir is not None and overrides.data_dir is None:
        overrides = CliOverrides(
            data_dir=Path(data_dir).resolve(),
            max_buffer_bytes=overrides.max_buffer_bytes,
            max_batch_edits=overrides.max_batch_edits,
            max_open_buffers=overrides.max_open_buffers,
            audit_enabled=overrides.audit_enabled,
        )
    config = load_effective_config(root=Path(root), overrides=overrides)
    return StdioServer(config=config)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the search-filter host process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    audit_enabled: bool | None = None
    if args.audit_enabled == "true":
        audit_enabled = True
    if args.audit_enabled == "false":
        audit_enabled = False
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        max_buffer_bytes=args.max_buffer_bytes,
        max_batch_edits=args.max_batch_edits,
        max_open_buffers=args.max_open_buffers,
        audit_enabled=audit_enabled,
    )
    server = create_server(root=args.root, cli_overrides=overrides)
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
