"""Resolve disk, hostname and username, then gate on explicit confirmation.

Preset values (settings file or command line) always win and skip their
prompt. Validation failures are raised before anything on disk changes.
"""

import re
from pathlib import Path
from typing import Callable, Optional

from nixos_bootstrap.config import settings
from nixos_bootstrap.domain.models import BootstrapConfig
from nixos_bootstrap.install.prompts import Prompter, is_confirmed
from nixos_bootstrap.logging import LoggerFactory
from nixos_bootstrap.storage.devices import format_disk_label, is_block_device, list_disks
from nixos_bootstrap.storage.exceptions import (
    DiskNotFoundError,
    InvalidHostnameError,
    InvalidSwapSizeError,
    InvalidUsernameError,
    UserDeclinedError,
)


log = LoggerFactory.for_prompt()

HOSTNAME_RE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")
USERNAME_RE = re.compile(r"^[a-z_][a-z0-9_-]{0,31}$")
# sgdisk reads a bare number as sectors, so a unit is required
SWAP_SIZE_RE = re.compile(r"^[1-9][0-9]*[KMGTkmgt]$")

BANNER = (
    "",
    "══════════════════════════════════════════",
    "       NixOS Bootstrap Installer          ",
    "══════════════════════════════════════════",
    "",
)


def validate_disk(disk: str, exists: Optional[Callable[[str], bool]] = None) -> str:
    exists = exists or is_block_device
    if not disk or not exists(disk):
        raise DiskNotFoundError(disk)
    return disk


def validate_hostname(hostname: str) -> str:
    if not HOSTNAME_RE.match(hostname or ""):
        raise InvalidHostnameError(hostname)
    return hostname


def validate_username(username: str) -> str:
    if not USERNAME_RE.match(username or ""):
        raise InvalidUsernameError(username)
    return username


def validate_swap_size(swap_size: str) -> str:
    if not SWAP_SIZE_RE.match(swap_size or ""):
        raise InvalidSwapSizeError(swap_size)
    return swap_size


def _show_available_disks(prompter: Prompter) -> None:
    disks = list_disks()
    prompter.show("Available disks:")
    if not disks:
        prompter.show("  (none detected)")
    for device in disks:
        prompter.show(f"  {format_disk_label(device)}")
    prompter.show("")


def _preset_or_prompt(key: str, prompter: Prompter, message: str) -> str:
    value = settings.get_str(key)
    if value:
        log.debug(f"Using preset {key}: {value}")
        return value
    return prompter.ask(message)


def collect_inputs(
    prompter: Prompter,
    disk_exists: Optional[Callable[[str], bool]] = None,
) -> BootstrapConfig:
    """Build the run configuration from settings, prompting for what is unset."""
    prompter.show(*BANNER)

    swap_size = validate_swap_size(settings.get_str("swap_size", settings.DEFAULT_SWAP_SIZE))

    disk = settings.get_str("disk")
    if not disk:
        _show_available_disks(prompter)
        disk = prompter.ask("Enter disk to install to (e.g. /dev/nvme0n1 or /dev/sda):")
    validate_disk(disk, disk_exists)

    hostname = validate_hostname(
        _preset_or_prompt("hostname", prompter, "Enter hostname for this machine:")
    )
    username = validate_username(
        _preset_or_prompt("username", prompter, "Enter your username:")
    )

    config = BootstrapConfig(
        disk=disk,
        hostname=hostname,
        username=username,
        swap_size=swap_size,
        timezone=settings.get_str("timezone", settings.DEFAULT_TIMEZONE),
        config_url=settings.get_str("config_url") or None,
        mount_root=Path(settings.get_str("mount_root", settings.DEFAULT_MOUNT_ROOT)).resolve(),
        mount_options=settings.get_str(
            "btrfs_mount_options", settings.DEFAULT_BTRFS_MOUNT_OPTIONS
        ),
        device_timeout=settings.get_float(
            "device_timeout_seconds", settings.DEFAULT_DEVICE_TIMEOUT_SECONDS
        ),
    )
    log.info(f"Target {config.disk}, host {config.hostname}, user {config.username}")
    return config


def destruction_summary(config: BootstrapConfig) -> list[str]:
    return [
        f"This will COMPLETELY WIPE: {config.disk}",
        f"Hostname: {config.hostname} | User: {config.username} | Swap: {config.swap_size}",
    ]


def confirm_destruction(config: BootstrapConfig, prompter: Prompter) -> None:
    """Require the literal token before the disk is touched.

    Raises:
        UserDeclinedError: On any other answer (clean, non-error exit)
    """
    prompter.show("")
    prompter.warn(*destruction_summary(config))
    prompter.show("")
    answer = prompter.ask("Type 'yes' to continue, anything else to abort:")
    if not is_confirmed(answer):
        log.info("Destructive action declined by operator")
        raise UserDeclinedError(answer)
    log.debug("Destructive action confirmed")
