from __future__ import annotations

from pathlib import Path

import pytest

from search_filter.server import create_server
from search_filter.tools import MethodDispatchError, MethodRegistry


def test_registry_keeps_deterministic_registration_order() -> None:
    registry = MethodRegistry()
    registry.register("buffer.alpha", lambda _: {"method": "alpha"})
    registry.register("buffer.beta", lambda _: {"method": "beta"})

    assert registry.names() == ("buffer.alpha", "buffer.beta")


def test_registry_dispatches_registered_method() -> None:
    registry = MethodRegistry()
    registry.register("buffer.echo", lambda payload: {"payload": payload})

    result = registry.dispatch("buffer.echo", {"k": "v"})

    assert result == {"payload": {"k": "v"}}


def test_registry_rejects_duplicate_names() -> None:
    registry = MethodRegistry()
    registry.register("buffer.echo", lambda payload: payload)

    with pytest.raises(ValueError, match="already registered"):
        registry.register("buffer.echo", lambda payload: payload)


def test_registry_unknown_method_raises_dispatch_error() -> None:
    registry = MethodRegistry()

    with pytest.raises(MethodDispatchError) as caught:
        registry.dispatch("buffer.missing", {})

    assert caught.value.code == "UNKNOWN_METHOD"
    assert caught.value.message == "Unknown method: buffer.missing"


def test_server_registers_buffer_methods_in_stable_order(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))

    assert server._registry.names() == (
        "buffer.open",
        "buffer.edit",
        "buffer.read",
        "buffer.source",
        "buffer.close",
        "buffer.status",
        "buffer.audit_log",
    )
