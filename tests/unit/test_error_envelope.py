from __future__ import annotations

import json
from pathlib import Path

from search_filter.server import create_server


def test_malformed_json_returns_invalid_json_error(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))

    response = server.handle_json_line("{not-json")

    assert response["ok"] is False
    assert response["error"] == {
        "code": "INVALID_JSON",
        "message": "Request must be valid JSON.",
    }
    assert str(response["request_id"]).startswith("req-")


def test_unknown_method_returns_explicit_error(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))

    response = server.handle_payload(
        {"id": "abc-123", "method": "buffer.unknown", "params": {"k": "v"}}
    )

    assert response["ok"] is False
    assert response["request_id"] == "abc-123"
    assert response["error"] == {
        "code": "UNKNOWN_METHOD",
        "message": "Unknown method: buffer.unknown",
    }


def test_invalid_tools_call_params_returns_invalid_params_error(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    payload = {
        "id": 7,
        "method": "tools/call",
        "params": {"name": "buffer.status", "arguments": []},
    }

    response = server.handle_payload(json.loads(json.dumps(payload)))

    assert response["ok"] is False
    assert response["request_id"] == "7"
    assert response["error"] == {
        "code": "INVALID_PARAMS",
        "message": "tools/call params.arguments must be an object.",
    }


def test_non_object_request_returns_invalid_request(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))

    response = server.handle_payload(["buffer.status"])

    assert response["ok"] is False
    assert response["error"]["code"] == "INVALID_REQUEST"


def test_unknown_buffer_returns_explicit_error(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))

    response = server.handle_payload(
        {"id": "req-1", "method": "buffer.read", "params": {"buffer_id": "missing"}}
    )

    assert response["error"] == {
        "code": "UNKNOWN_BUFFER",
        "message": "Buffer is not open: missing",
    }


def test_duplicate_open_returns_buffer_exists(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    params = {"buffer_id": "doc", "text": "listing"}
    server.handle_payload({"id": "req-1", "method": "buffer.open", "params": params})

    response = server.handle_payload({"id": "req-2", "method": "buffer.open", "params": params})

    assert response["ok"] is False
    assert response["error"]["code"] == "BUFFER_EXISTS"


def test_out_of_range_edit_returns_explicit_error(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    server.handle_payload(
        {"id": "req-1", "method": "buffer.open", "params": {"buffer_id": "doc", "text": "abc"}}
    )

    response = server.handle_payload(
        {
            "id": "req-2",
            "method": "buffer.edit",
            "params": {
                "buffer_id": "doc",
                "edits": [{"range_offset": 2, "range_length": 5, "text": ""}],
            },
        }
    )

    assert response["ok"] is False
    assert response["blocked"] is False
    assert response["error"]["code"] == "EDIT_OUT_OF_RANGE"
    assert server.host.get("doc").buffer.text == "abc"


def test_malformed_edit_payload_returns_invalid_params(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    server.handle_payload(
        {"id": "req-1", "method": "buffer.open", "params": {"buffer_id": "doc", "text": "abc"}}
    )

    response = server.handle_payload(
        {
            "id": "req-2",
            "method": "buffer.edit",
            "params": {"buffer_id": "doc", "edits": [{"range_offset": "0", "text": "x"}]},
        }
    )

    assert response["error"] == {
        "code": "INVALID_PARAMS",
        "message": "buffer.edit edits[0] range_offset and range_length must be integers.",
    }
