"""Domain model for a bootstrap run.

The resolved configuration, the fixed partition layout and the mount plan
are plain frozen dataclasses built once and handed to every step.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from nixos_bootstrap.storage.devices import partition_path


# ==============================================================================
# Layout Constants
# ==============================================================================

EFI_SIZE = "+1G"
EFI_LABEL = "EFI"
SWAP_LABEL = "swap"
ROOT_PARTITION_LABEL = "root"
ROOT_FS_LABEL = "nixos"

EFI_PARTITION = 1
SWAP_PARTITION = 2
ROOT_PARTITION = 3

# Creation order matters, "@" must come first.
SUBVOLUMES: tuple[str, ...] = ("@", "@home", "@nix", "@log", "@snapshots")

# Subvolume -> path relative to the mount root. "@" is the root itself.
SUBVOLUME_MOUNTS: tuple[tuple[str, str], ...] = (
    ("@home", "home"),
    ("@nix", "nix"),
    ("@log", "var/log"),
    ("@snapshots", ".snapshots"),
)
BOOT_MOUNT = "boot"

CONFIG_DIR = Path("etc") / "nixos"
CONFIG_FILENAME = "configuration.nix"
HARDWARE_CONFIG_FILENAME = "hardware-configuration.nix"


# ==============================================================================
# Resolved Configuration
# ==============================================================================


@dataclass(frozen=True)
class BootstrapConfig:
    """Values resolved once at startup (preset or prompted)."""

    disk: str  # e.g., "/dev/nvme0n1"
    hostname: str
    username: str
    swap_size: str = "16G"  # sgdisk size suffix, e.g. "8G"
    timezone: str = "America/Detroit"
    config_url: Optional[str] = None  # fetch instead of rendering the template
    mount_root: Path = Path("/mnt")
    mount_options: str = "compress=zstd:3,noatime,space_cache=v2"
    device_timeout: float = 10.0

    def partition(self, number: int) -> str:
        """Device path of partition ``number`` on the target disk."""
        return partition_path(self.disk, number)

    @property
    def efi_partition(self) -> str:
        return self.partition(EFI_PARTITION)

    @property
    def swap_partition(self) -> str:
        return self.partition(SWAP_PARTITION)

    @property
    def root_partition(self) -> str:
        return self.partition(ROOT_PARTITION)

    @property
    def config_dir(self) -> Path:
        return self.mount_root / CONFIG_DIR

    @property
    def config_path(self) -> Path:
        return self.config_dir / CONFIG_FILENAME

    @property
    def hardware_config_path(self) -> Path:
        return self.config_dir / HARDWARE_CONFIG_FILENAME


# ==============================================================================
# Partition Layout
# ==============================================================================


@dataclass(frozen=True)
class Partition:
    """One GPT partition as sgdisk creates it."""

    number: int
    label: str
    type_code: str  # sgdisk type code, e.g. "ef00"
    size: str  # sgdisk end value: "+1G", or "0" for the rest of the disk

    def sgdisk_args(self) -> list[str]:
        n = self.number
        return [
            "-n", f"{n}:0:{self.size}",
            "-t", f"{n}:{self.type_code}",
            "-c", f"{n}:{self.label}",
        ]


def build_partition_layout(swap_size: str) -> tuple[Partition, ...]:
    """EFI, swap and root, in that order. EFI is always 1 GiB."""
    return (
        Partition(EFI_PARTITION, EFI_LABEL, "ef00", EFI_SIZE),
        Partition(SWAP_PARTITION, SWAP_LABEL, "8200", f"+{swap_size}"),
        Partition(ROOT_PARTITION, ROOT_PARTITION_LABEL, "8300", "0"),
    )


# ==============================================================================
# Mount Plan
# ==============================================================================


@dataclass(frozen=True)
class MountEntry:
    source: str  # device node
    target: Path
    options: Optional[str] = None  # None means default mount options
    subvolume: Optional[str] = None

    def mount_command(self) -> list[str]:
        command = ["mount"]
        if self.options:
            command.extend(["-o", self.options])
        command.extend([self.source, str(self.target)])
        return command


def subvolume_options(subvolume: str, mount_options: str) -> str:
    return f"subvol={subvolume},{mount_options}"


def build_mount_plan(config: BootstrapConfig) -> tuple[MountEntry, ...]:
    """Ordered mounts: root subvolume first, children next, EFI last."""
    root = config.root_partition
    entries = [
        MountEntry(
            source=root,
            target=config.mount_root,
            options=subvolume_options("@", config.mount_options),
            subvolume="@",
        )
    ]
    for subvolume, relative in SUBVOLUME_MOUNTS:
        entries.append(
            MountEntry(
                source=root,
                target=config.mount_root / relative,
                options=subvolume_options(subvolume, config.mount_options),
                subvolume=subvolume,
            )
        )
    entries.append(
        MountEntry(source=config.efi_partition, target=config.mount_root / BOOT_MOUNT)
    )
    return tuple(entries)


def mount_directories(config: BootstrapConfig) -> list[Path]:
    """Directories that must exist under the mounted root subvolume."""
    relatives = [relative for _, relative in SUBVOLUME_MOUNTS] + [BOOT_MOUNT]
    return [config.mount_root / relative for relative in relatives]
