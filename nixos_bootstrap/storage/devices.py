"""Block device naming, detection and readiness polling.

Partition Naming:
    Kernel partition nodes are the disk path plus the partition number, except
    for device families whose disk name already ends in a digit (NVMe and
    MMC), which insert a "p" separator:

        /dev/sda      + 3 -> /dev/sda3
        /dev/vdb      + 1 -> /dev/vdb1
        /dev/nvme0n1  + 3 -> /dev/nvme0n1p3
        /dev/mmcblk0  + 2 -> /dev/mmcblk0p2

    partition_path() is the only place this rule lives; every step that needs
    a partition node derives it from here.

Readiness:
    After the partition table is re-read, the new nodes show up asynchronously
    once udev processes the change. wait_for_device_node() polls for the node
    with a timeout instead of sleeping a fixed duration.

Disk Listing:
    list_disks() uses lsblk JSON output to show the operator what can be
    installed to. Loop devices (the live ISO squashfs) are left out.
"""
import json
import os
import re
import stat
import time
from typing import Callable, Optional

from nixos_bootstrap.logging import LoggerFactory
from nixos_bootstrap.storage.commands import run_command
from nixos_bootstrap.storage.exceptions import CommandFailedError, DeviceTimeoutError


log = LoggerFactory.for_partition()

PARTITION_SEPARATOR_FAMILIES = ("nvme", "mmcblk")
POLL_INTERVAL_SECONDS = 0.25


def partition_path(disk: str, index: int) -> str:
    """Return the device node for partition ``index`` (1-based) of ``disk``."""
    if index < 1:
        raise ValueError(f"Partition index must be >= 1, got {index}")
    if any(family in disk for family in PARTITION_SEPARATOR_FAMILIES):
        return f"{disk}p{index}"
    return f"{disk}{index}"


def is_block_device(path: str) -> bool:
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except (OSError, ValueError):
        return False


def wait_for_device_node(
    path: str,
    timeout: float = 10.0,
    interval: float = POLL_INTERVAL_SECONDS,
    exists: Callable[[str], bool] = is_block_device,
) -> None:
    """Poll until ``path`` is a block device.

    Raises:
        DeviceTimeoutError: If the node is still missing after ``timeout``
    """
    deadline = time.monotonic() + timeout
    while True:
        if exists(path):
            log.debug(f"Device node ready: {path}")
            return
        if time.monotonic() >= deadline:
            raise DeviceTimeoutError(path, timeout)
        time.sleep(interval)


def human_size(size_bytes):
    if size_bytes is None:
        return "0B"
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024.0:
            return f"{size:.1f}{unit}"
        size /= 1024.0
    return f"{size:.1f}PB"


def format_disk_label(device: dict) -> str:
    """e.g. "/dev/nvme0n1  931.5GB  Samsung SSD 980"."""
    path = device.get("path") or f"/dev/{device.get('name', '')}"
    size_label = re.sub(r"\.0([A-Z])", r"\1", human_size(device.get("size")))
    model = (device.get("model") or "").strip()
    return "  ".join(part for part in (path, size_label, model) if part)


def get_block_devices() -> list[dict]:
    """Return top-level block devices from lsblk.

    lsblk is in the required tool set, so a failure here is a real failure
    and propagates.
    """
    result = run_command(
        ["lsblk", "-J", "-b", "-d", "-o", "NAME,PATH,TYPE,SIZE,MODEL"],
        log_output=False,
        log_command=False,
    )
    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as error:
        raise CommandFailedError(
            ["lsblk", "-J"], 0, stderr=f"unparseable output: {error}"
        ) from error
    return data.get("blockdevices", []) or []


def list_disks() -> list[dict]:
    return [
        device
        for device in get_block_devices()
        if device.get("type") == "disk" and not (device.get("name") or "").startswith("loop")
    ]


def describe_layout(disk: str) -> Optional[str]:
    """lsblk tree of ``disk`` for the operator, or None if lsblk fails."""
    result = run_command(
        ["lsblk", disk], check=False, log_output=False, log_command=False
    )
    if result.returncode != 0:
        return None
    return result.stdout.rstrip()
