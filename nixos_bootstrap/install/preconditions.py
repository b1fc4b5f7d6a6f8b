"""Sanity checks that must pass before anything is asked or touched."""

import os
from typing import Callable, Iterable, Optional

from nixos_bootstrap.logging import LoggerFactory
from nixos_bootstrap.storage.commands import command_exists
from nixos_bootstrap.storage.exceptions import (
    InstallerNotFoundError,
    MissingToolsError,
    NotRootError,
)


log = LoggerFactory.for_system()

INSTALLER = "nixos-install"

REQUIRED_TOOLS: tuple[str, ...] = (
    "sgdisk",
    "partprobe",
    "mkfs.fat",
    "mkswap",
    "mkfs.btrfs",
    "btrfs",
    "mount",
    "umount",
    "swapon",
    "swapoff",
    "lsblk",
    "nixos-generate-config",
)


def check_root(geteuid: Callable[[], int] = os.geteuid) -> None:
    euid = geteuid()
    if euid != 0:
        raise NotRootError(euid)


def check_installer_environment(
    exists: Callable[[str], bool] = command_exists,
) -> None:
    if not exists(INSTALLER):
        raise InstallerNotFoundError(INSTALLER)


def check_required_tools(
    tools: Iterable[str] = REQUIRED_TOOLS,
    exists: Callable[[str], bool] = command_exists,
) -> None:
    missing = [tool for tool in tools if not exists(tool)]
    if missing:
        raise MissingToolsError(missing)


def run_preconditions(
    geteuid: Callable[[], int] = os.geteuid,
    exists: Optional[Callable[[str], bool]] = None,
) -> None:
    """Privilege, installer and tool checks, in that order."""
    exists = exists or command_exists
    check_root(geteuid)
    check_installer_environment(exists)
    check_required_tools(REQUIRED_TOOLS, exists)
    log.debug("Preconditions satisfied")
