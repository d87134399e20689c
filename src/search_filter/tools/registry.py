"""Method registration and dispatch for the buffer host."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

MethodHandler = Callable[[dict[str, object]], dict[str, object]]


@dataclass(slots=True, frozen=True)
class MethodDispatchError(Exception):
    """Deterministic method dispatch or parameter failure."""

    code: str
    message: str


@dataclass(slots=True)
class MethodRegistry:
    """In-memory method table preserving registration order."""

    _handlers: dict[str, MethodHandler] = field(default_factory=dict)

    def register(self, name: str, handler: MethodHandler) -> None:
        """Register a named handler; names are unique."""
        if name in self._handlers:
            raise ValueError(f"Method already registered: {name}")
        self._handlers[name] = handler

    def get(self, name: str) -> MethodHandler | None:
        return self._handlers.get(name)

    def names(self) -> tuple[str, ...]:
        """Return registered method names in registration order."""
        return tuple(self._handlers.keys())

    def dispatch(self, name: str, arguments: dict[str, object]) -> dict[str, object]:
        """Dispatch to a registered method by name."""
        handler = self.get(name)
        if handler is None:
            raise MethodDispatchError(code="UNKNOWN_METHOD", message=f"Unknown method: {name}")
        return handler(arguments)
