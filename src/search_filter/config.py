"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from search_filter.limits import BufferLimits
from search_filter.sync.controller import DEFAULT_MARKER_SUFFIX
from search_filter.view.parser import DEFAULT_FILENAME_PREFIX

CONFIG_FILE_NAME = "search_filter.toml"

MAX_BUFFER_BYTES_CAP = 64 * 1024 * 1024
MAX_BATCH_EDITS_CAP = 10_000
MAX_OPEN_BUFFERS_CAP = 1_024


@dataclass(slots=True, frozen=True)
class ViewConfig:
    """Textual conventions of the filtered view."""

    marker_suffix: str
    filename_prefix: str


@dataclass(slots=True, frozen=True)
class AuditConfig:
    """Audit log toggles."""

    enabled: bool


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Fully merged host configuration."""

    root: Path
    data_dir: Path
    limits: BufferLimits
    view: ViewConfig
    audit: AuditConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for status responses."""
        return {
            "root": str(self.root),
            "data_dir": str(self.data_dir),
            "limits": {
                "max_buffer_bytes": self.limits.max_buffer_bytes,
                "max_batch_edits": self.limits.max_batch_edits,
                "max_open_buffers": self.limits.max_open_buffers,
            },
            "view": {
                "marker_suffix": self.view.marker_suffix,
                "filename_prefix": self.view.filename_prefix,
            },
            "audit": {
                "enabled": self.audit.enabled,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    max_buffer_bytes: int | None = None
    max_batch_edits: int | None = None
    max_open_buffers: int | None = None
    audit_enabled: bool | None = None


def default_config(root: Path) -> ServerConfig:
    """Build default config for a given working root."""
    resolved_root = root.resolve()
    return ServerConfig(
        root=resolved_root,
        data_dir=resolved_root / ".search_filter",
        limits=BufferLimits(),
        view=ViewConfig(
            marker_suffix=DEFAULT_MARKER_SUFFIX,
            filename_prefix=DEFAULT_FILENAME_PREFIX,
        ),
        audit=AuditConfig(enabled=True),
    )


def load_config_file(root: Path) -> dict[str, object]:
    """Load optional search_filter.toml from the working root."""
    config_path = root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _non_empty_string(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not value:
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    return value


def merge_config(
    base: ServerConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> ServerConfig:
    """Merge defaults, config file, then CLI/startup overrides."""
    limits_payload = _get_table(file_payload, "limits")
    view_payload = _get_table(file_payload, "view")
    audit_payload = _get_table(file_payload, "audit")

    max_buffer_bytes = _optional_positive_int_with_cap(
        limits_payload.get("max_buffer_bytes"),
        "limits.max_buffer_bytes",
        base.limits.max_buffer_bytes,
        MAX_BUFFER_BYTES_CAP,
    )
    max_batch_edits = _optional_positive_int_with_cap(
        limits_payload.get("max_batch_edits"),
        "limits.max_batch_edits",
        base.limits.max_batch_edits,
        MAX_BATCH_EDITS_CAP,
    )
    max_open_buffers = _optional_positive_int_with_cap(
        limits_payload.get("max_open_buffers"),
        "limits.max_open_buffers",
        base.limits.max_open_buffers,
        MAX_OPEN_BUFFERS_CAP,
    )

    view = ViewConfig(
        marker_suffix=_non_empty_string(
            view_payload.get("marker_suffix"), "view.marker_suffix", base.view.marker_suffix
        ),
        filename_prefix=_non_empty_string(
            view_payload.get("filename_prefix"),
            "view.filename_prefix",
            base.view.filename_prefix,
        ),
    )

    audit_enabled = base.audit.enabled
    if "enabled" in audit_payload:
        raw_enabled = audit_payload["enabled"]
        if not isinstance(raw_enabled, bool):
            raise ValueError("Config field 'audit.enabled' must be a boolean.")
        audit_enabled = raw_enabled

    merged = ServerConfig(
        root=base.root,
        data_dir=base.data_dir,
        limits=BufferLimits(
            max_buffer_bytes=max_buffer_bytes,
            max_batch_edits=max_batch_edits,
            max_open_buffers=max_open_buffers,
        ),
        view=view,
        audit=AuditConfig(enabled=audit_enabled),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ServerConfig, overrides: CliOverrides) -> ServerConfig:
    """Apply startup overrides at highest precedence."""
    limits = BufferLimits(
        max_buffer_bytes=_optional_positive_int_with_cap(
            overrides.max_buffer_bytes,
            "overrides.max_buffer_bytes",
            config.limits.max_buffer_bytes,
            MAX_BUFFER_BYTES_CAP,
        ),
        max_batch_edits=_optional_positive_int_with_cap(
            overrides.max_batch_edits,
            "overrides.max_batch_edits",
            config.limits.max_batch_edits,
            MAX_BATCH_EDITS_CAP,
        ),
        max_open_buffers=_optional_positive_int_with_cap(
            overrides.max_open_buffers,
            "overrides.max_open_buffers",
            config.limits.max_open_buffers,
            MAX_OPEN_BUFFERS_CAP,
        ),
    )
    audit = AuditConfig(
        enabled=(
            overrides.audit_enabled
            if overrides.audit_enabled is not None
            else config.audit.enabled
        )
    )
    data_dir = overrides.data_dir or config.data_dir
    return ServerConfig(
        root=config.root,
        data_dir=data_dir.resolve(),
        limits=limits,
        view=config.view,
        audit=audit,
    )


def load_effective_config(root: Path, overrides: CliOverrides | None = None) -> ServerConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    resolved_root = root.resolve()
    base = default_config(resolved_root)
    payload = load_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
