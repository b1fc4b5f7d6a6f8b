"""Filesystem creation on the freshly partitioned disk.

Order:
    EFI partition   mkfs.fat -F 32 -n EFI
    swap partition  mkswap -L swap
    root partition  mkfs.btrfs -L nixos -f   (overwrites any old signature)
"""

from nixos_bootstrap.domain.models import (
    EFI_LABEL,
    ROOT_FS_LABEL,
    SWAP_LABEL,
    BootstrapConfig,
)
from nixos_bootstrap.logging import operation_context
from nixos_bootstrap.storage.commands import run_command


def format_commands(config: BootstrapConfig) -> list[list[str]]:
    return [
        ["mkfs.fat", "-F", "32", "-n", EFI_LABEL, config.efi_partition],
        ["mkswap", "-L", SWAP_LABEL, config.swap_partition],
        ["mkfs.btrfs", "-L", ROOT_FS_LABEL, "-f", config.root_partition],
    ]


def format_partitions(config: BootstrapConfig) -> None:
    """Format all three partitions. The first failure aborts."""
    with operation_context("format", disk=config.disk) as log:
        for command in format_commands(config):
            log.info(f"Formatting {command[-1]} ({command[0]})")
            run_command(command)
