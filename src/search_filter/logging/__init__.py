"""Structured logging utilities."""

from .audit import AuditEvent, JsonlAuditLogger, SyncEvent, sanitize_arguments, utc_timestamp

__all__ = ["AuditEvent", "JsonlAuditLogger", "SyncEvent", "sanitize_arguments", "utc_timestamp"]
