"""Domain models for a NixOS bootstrap run."""

from __future__ import annotations

from .models import (
    BootstrapConfig,
    MountEntry,
    Partition,
    build_mount_plan,
    build_partition_layout,
)


__all__ = [
    "BootstrapConfig",
    "MountEntry",
    "Partition",
    "build_mount_plan",
    "build_partition_layout",
]
