"""Mount planning and mount-table inspection.

Mount Plan:
    1. "@" subvolume at the mount root
    2. home, nix, var/log, .snapshots and boot directories created under it
    3. "@home", "@nix", "@log", "@snapshots" at their subpaths
    4. EFI partition at boot (default options)
    5. swapon on the swap partition

    A child is only mounted once its parent is mounted and its directory
    exists. Directories are created after the root subvolume mount so they
    land inside "@" rather than on the live ISO's filesystem.

Inspection:
    active_mounts_under() and active_swaps() read /proc/mounts and /proc/swaps
    for the stale-mount cleanup guard.
"""

import os
from pathlib import Path
from typing import Iterable, Optional

from nixos_bootstrap.domain.models import (
    BootstrapConfig,
    MountEntry,
    build_mount_plan,
    mount_directories,
)
from nixos_bootstrap.logging import LoggerFactory, operation_context
from nixos_bootstrap.storage.commands import run_command
from nixos_bootstrap.storage.devices import describe_layout
from nixos_bootstrap.storage.exceptions import MountTargetMissingError


log = LoggerFactory.for_mount()

PROC_MOUNTS = Path("/proc/mounts")
PROC_SWAPS = Path("/proc/swaps")


def _unescape_mount_field(value: str) -> str:
    # /proc/mounts escapes space, tab, newline and backslash as \ooo
    if "\\" not in value:
        return value
    out = []
    i = 0
    while i < len(value):
        chunk = value[i : i + 4]
        if len(chunk) == 4 and chunk[0] == "\\" and chunk[1:].isdigit():
            out.append(chr(int(chunk[1:], 8)))
            i += 4
        else:
            out.append(value[i])
            i += 1
    return "".join(out)


def read_mountpoints(mounts_file: Optional[Path] = None) -> list[str]:
    mountpoints: list[str] = []
    with open(mounts_file or PROC_MOUNTS, "r", encoding="utf-8") as handle:
        for line in handle:
            parts = line.split()
            if len(parts) > 1:
                mountpoints.append(_unescape_mount_field(parts[1]))
    return mountpoints


def _is_under(path: str, root: str) -> bool:
    root = root.rstrip("/") or "/"
    if path == root:
        return True
    prefix = root if root.endswith("/") else root + "/"
    return path.startswith(prefix)


def mount_depth_key(path: str) -> tuple[int, str]:
    return (len(Path(path).parts), path)


def sort_for_unmount(mountpoints: Iterable[str]) -> list[str]:
    """Deepest paths first, so every child is released before its parent."""
    return sorted(set(mountpoints), key=mount_depth_key, reverse=True)


def active_mounts_under(
    root: Path, mounts_file: Optional[Path] = None
) -> list[str]:
    """Mountpoints at or below ``root``, in unmount order."""
    # /proc/mounts lists absolute, symlink-free paths
    root_str = str(Path(root).resolve())
    found = [mp for mp in read_mountpoints(mounts_file) if _is_under(mp, root_str)]
    return sort_for_unmount(found)


def active_swaps(swaps_file: Optional[Path] = None) -> list[str]:
    try:
        with open(swaps_file or PROC_SWAPS, "r", encoding="utf-8") as handle:
            lines = handle.readlines()[1:]  # skip header
    except FileNotFoundError:
        return []
    return [
        _unescape_mount_field(line.split()[0]) for line in lines if line.strip()
    ]


def is_swap_active(device: str, swaps_file: Optional[Path] = None) -> bool:
    resolved = os.path.realpath(device)
    for active in active_swaps(swaps_file):
        if active == device or os.path.realpath(active) == resolved:
            return True
    return False


def unmount_path(mountpoint: str) -> None:
    run_command(["umount", mountpoint])
    log.debug(f"Unmounted {mountpoint}")


def deactivate_swap(device: str) -> None:
    run_command(["swapoff", device])
    log.debug(f"Swap deactivated on {device}")


def _mount_entry(entry: MountEntry, parent: Optional[Path]) -> None:
    if parent is not None and not entry.target.is_dir():
        raise MountTargetMissingError(str(entry.target))
    run_command(entry.mount_command())
    log.debug(f"Mounted {entry.subvolume or entry.source} at {entry.target}")


def create_mount_directories(config: BootstrapConfig) -> list[Path]:
    directories = mount_directories(config)
    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
    return directories


def mount_target(config: BootstrapConfig) -> tuple[MountEntry, ...]:
    """Apply the mount plan and activate swap.

    Raises:
        CommandFailedError: If mount or swapon fails
        MountTargetMissingError: If a child mount directory is missing
    """
    plan = build_mount_plan(config)
    root_entry, children = plan[0], plan[1:]

    with operation_context("mount", root=str(config.mount_root)) as op_log:
        _mount_entry(root_entry, parent=None)
        create_mount_directories(config)
        for entry in children:
            _mount_entry(entry, parent=root_entry.target)

        run_command(["swapon", config.swap_partition])
        op_log.debug(f"Swap active on {config.swap_partition}")

        layout = describe_layout(config.disk)
        if layout:
            op_log.info(f"Current mount layout:\n{layout}")
    return plan
