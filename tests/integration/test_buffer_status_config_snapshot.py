from __future__ import annotations

from pathlib import Path

from search_filter.server import create_server


def test_buffer_status_includes_effective_config_snapshot(tmp_path: Path) -> None:
    (tmp_path / "search_filter.toml").write_text(
        "\n".join(
            [
                "[limits]",
                "max_buffer_bytes = 2048",
                "max_batch_edits = 33",
                "",
                "[view]",
                'marker_suffix = " [filtered]"',
                'filename_prefix = "path"',
            ]
        ),
        encoding="utf-8",
    )

    server = create_server(root=str(tmp_path))
    server.handle_payload(
        {
            "id": "req-open",
            "method": "buffer.open",
            "params": {
                "buffer_id": "doc",
                "text": "2 results\npath-b.txt\na.txt:\n  1: x\nb.txt:\n  1: y",
            },
        }
    )
    response = server.handle_payload(
        {"id": "req-status-1", "method": "buffer.status", "params": {}}
    )

    assert response["ok"] is True
    result = response["result"]
    assert result["limits_summary"] == {
        "max_buffer_bytes": 2048,
        "max_batch_edits": 33,
        "max_open_buffers": 64,
    }
    assert result["open_buffers"] == [
        {
            "buffer_id": "doc",
            "state": "filtering_active",
            "line_count": 4,
            "hidden_line_count": 2,
            "filter_count": 1,
        }
    ]

    effective = result["effective_config"]
    assert effective["root"] == str(tmp_path.resolve())
    assert effective["data_dir"] == str((tmp_path / ".search_filter").resolve())
    assert effective["limits"] == result["limits_summary"]
    assert effective["view"] == {"marker_suffix": " [filtered]", "filename_prefix": "path"}
    assert effective["audit"] == {"enabled": True}

    read = server.handle_payload(
        {"id": "req-read", "method": "buffer.read", "params": {"buffer_id": "doc"}}
    )
    assert read["result"]["text"] == "2 results [filtered]\npath-b.txt\na.txt:\n  1: x"
