from __future__ import annotations

import json
from pathlib import Path

from search_filter.logging import JsonlAuditLogger, SyncEvent
from search_filter.server import create_server


def test_audit_log_writes_jsonl_schema(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    server.handle_payload({"id": "req-100", "method": "buffer.status", "params": {}})

    audit_path = tmp_path / ".search_filter" / "audit.jsonl"
    assert audit_path.exists()

    lines = audit_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) >= 1
    event = json.loads(lines[-1])

    assert set(event.keys()) == {
        "blocked",
        "error_code",
        "metadata",
        "method",
        "ok",
        "request_id",
        "timestamp",
    }
    assert event["request_id"] == "req-100"
    assert event["method"] == "buffer.status"
    assert event["ok"] is True
    assert event["blocked"] is False
    assert event["error_code"] is None
    assert isinstance(event["timestamp"], str)
    assert isinstance(event["metadata"], dict)


def test_sync_log_records_each_cycle(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    server.handle_payload(
        {
            "id": "req-open",
            "method": "buffer.open",
            "params": {"buffer_id": "doc", "text": "1 result\n+a\nx.txt:\n  1: a\n  2: b"},
        }
    )
    server.handle_payload(
        {"id": "req-close", "method": "buffer.close", "params": {"buffer_id": "doc"}}
    )

    sync_path = tmp_path / ".search_filter" / "sync.jsonl"
    events = [json.loads(line) for line in sync_path.read_text(encoding="utf-8").splitlines()]

    assert [event["action"] for event in events] == ["materialized", "feedback", "closed"]
    assert all(event["buffer_id"] == "doc" for event in events)
    assert events[0]["hidden_lines"] == 1
    assert events[1]["state"] == "filtering_active"


def test_disabled_audit_writes_nothing(tmp_path: Path) -> None:
    (tmp_path / "search_filter.toml").write_text("[audit]\nenabled = false\n", encoding="utf-8")
    server = create_server(root=str(tmp_path))
    server.handle_payload({"id": "req-1", "method": "buffer.status", "params": {}})
    response = server.handle_payload({"id": "req-2", "method": "buffer.audit_log", "params": {}})

    assert response["result"]["entries"] == []
    assert not (tmp_path / ".search_filter").exists()


def test_reader_skips_corrupt_lines_and_honors_limit(tmp_path: Path) -> None:
    logger = JsonlAuditLogger(tmp_path / "logs" / "sync.jsonl")
    for cycle in range(1, 4):
        logger.append(
            SyncEvent(
                timestamp=f"2026-01-01T00:00:0{cycle}.000Z",
                buffer_id="doc",
                cycle=cycle,
                state="unfiltered",
                action="baseline",
                filters=0,
                edits=0,
                hidden_lines=0,
            )
        )
    with logger.path.open("a", encoding="utf-8") as handle:
        handle.write("{not json\n\n")

    assert [entry["cycle"] for entry in logger.read(limit=2)] == [2, 3]
    assert [entry["cycle"] for entry in logger.read(since="2026-01-01T00:00:02.000Z")] == [2, 3]
    assert logger.read(limit=0) == []
