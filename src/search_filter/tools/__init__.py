"""Host method interfaces and registrations."""

from .registry import MethodDispatchError, MethodHandler, MethodRegistry

__all__ = ["MethodDispatchError", "MethodHandler", "MethodRegistry"]
