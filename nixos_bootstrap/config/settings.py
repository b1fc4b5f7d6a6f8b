"""Settings storage for preset bootstrap values.

Any non-empty value here (or passed on the command line) suppresses the
matching interactive prompt.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional


SETTINGS_PATH = Path(
    os.environ.get(
        "NIXOS_BOOTSTRAP_SETTINGS_PATH",
        Path.home() / ".config" / "nixos-bootstrap" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_SWAP_SIZE = "16G"
DEFAULT_TIMEZONE = "America/Detroit"
DEFAULT_MOUNT_ROOT = "/mnt"
DEFAULT_BTRFS_MOUNT_OPTIONS = "compress=zstd:3,noatime,space_cache=v2"
DEFAULT_DEVICE_TIMEOUT_SECONDS = 10.0

DEFAULT_SETTINGS: dict[str, Any] = {
    "disk": "",
    "hostname": "",
    "username": "",
    "swap_size": DEFAULT_SWAP_SIZE,
    "timezone": DEFAULT_TIMEZONE,
    # Leave empty to render the starter configuration.nix instead.
    "config_url": "",
    "mount_root": DEFAULT_MOUNT_ROOT,
    "btrfs_mount_options": DEFAULT_BTRFS_MOUNT_OPTIONS,
    "device_timeout_seconds": DEFAULT_DEVICE_TIMEOUT_SECONDS,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


def load_settings(path: Optional[Path] = None) -> None:
    settings_store.values = dict(DEFAULT_SETTINGS)
    path = path or SETTINGS_PATH
    if not path.exists():
        return
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return
    if isinstance(data, dict):
        settings_store.values.update(data)


def apply_overrides(overrides: Mapping[str, Any]) -> None:
    """Merge command-line values over the loaded settings, skipping unset ones."""
    for key, value in overrides.items():
        if value is not None:
            settings_store.values[key] = value


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def get_str(key: str, default: str = "") -> str:
    value = get_setting(key, default)
    if value is None:
        return default
    return str(value).strip()


def get_float(key: str, default: float = 0.0) -> float:
    try:
        return float(get_setting(key, default))
    except (TypeError, ValueError):
        return default


load_settings()
