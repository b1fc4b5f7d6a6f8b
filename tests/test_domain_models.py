"""Tests for domain models: partition layout and mount plan."""

from pathlib import Path

import pytest

from nixos_bootstrap.domain.models import (
    SUBVOLUMES,
    BootstrapConfig,
    MountEntry,
    build_mount_plan,
    build_partition_layout,
    mount_directories,
)


class TestBootstrapConfig:
    def test_is_immutable(self, bootstrap_config):
        with pytest.raises(AttributeError):
            bootstrap_config.disk = "/dev/sda"

    def test_partition_paths_use_resolver(self, nvme_config):
        assert nvme_config.efi_partition == "/dev/nvme0n1p1"
        assert nvme_config.swap_partition == "/dev/nvme0n1p2"
        assert nvme_config.root_partition == "/dev/nvme0n1p3"

    def test_config_paths(self, bootstrap_config, mount_root):
        assert bootstrap_config.config_path == mount_root / "etc/nixos/configuration.nix"
        assert (
            bootstrap_config.hardware_config_path
            == mount_root / "etc/nixos/hardware-configuration.nix"
        )


class TestPartitionLayout:
    """Tests for build_partition_layout()."""

    def test_three_partitions_in_order(self):
        layout = build_partition_layout("8G")

        assert [p.number for p in layout] == [1, 2, 3]
        assert [p.type_code for p in layout] == ["ef00", "8200", "8300"]
        assert [p.label for p in layout] == ["EFI", "swap", "root"]

    @pytest.mark.parametrize("swap_size", ["512M", "4G", "8G", "64G"])
    def test_efi_fixed_at_one_gib(self, swap_size):
        efi = build_partition_layout(swap_size)[0]
        assert efi.size == "+1G"

    def test_swap_uses_requested_size_and_root_takes_rest(self):
        layout = build_partition_layout("8G")
        assert layout[1].size == "+8G"
        assert layout[2].size == "0"

    def test_sgdisk_args(self):
        swap = build_partition_layout("8G")[1]
        assert swap.sgdisk_args() == ["-n", "2:0:+8G", "-t", "2:8200", "-c", "2:swap"]


class TestMountPlan:
    """Tests for build_mount_plan()."""

    def test_root_subvolume_first_boot_last(self, bootstrap_config, mount_root):
        plan = build_mount_plan(bootstrap_config)

        assert plan[0].subvolume == "@"
        assert plan[0].target == mount_root
        assert plan[-1].source == "/dev/vdb1"
        assert plan[-1].target == mount_root / "boot"
        assert plan[-1].options is None

    def test_children_share_options(self, bootstrap_config, mount_root):
        plan = build_mount_plan(bootstrap_config)
        children = plan[1:-1]

        assert [(e.subvolume, e.target) for e in children] == [
            ("@home", mount_root / "home"),
            ("@nix", mount_root / "nix"),
            ("@log", mount_root / "var/log"),
            ("@snapshots", mount_root / ".snapshots"),
        ]
        for entry in children:
            assert entry.source == "/dev/vdb3"
            assert entry.options == (
                f"subvol={entry.subvolume},compress=zstd:3,noatime,space_cache=v2"
            )

    def test_plan_covers_every_subvolume(self, bootstrap_config):
        mounted = [e.subvolume for e in build_mount_plan(bootstrap_config) if e.subvolume]
        assert mounted == list(SUBVOLUMES)

    def test_mount_command(self):
        entry = MountEntry(source="/dev/sda3", target=Path("/mnt/nix"), options="subvol=@nix")
        assert entry.mount_command() == ["mount", "-o", "subvol=@nix", "/dev/sda3", "/mnt/nix"]

    def test_mount_command_default_options(self):
        entry = MountEntry(source="/dev/sda1", target=Path("/mnt/boot"))
        assert entry.mount_command() == ["mount", "/dev/sda1", "/mnt/boot"]

    def test_mount_directories(self, bootstrap_config, mount_root):
        assert mount_directories(bootstrap_config) == [
            mount_root / "home",
            mount_root / "nix",
            mount_root / "var/log",
            mount_root / ".snapshots",
            mount_root / "boot",
        ]

    def test_custom_mount_options(self, mount_root):
        config = BootstrapConfig(
            disk="/dev/sda",
            hostname="h",
            username="u",
            mount_root=mount_root,
            mount_options="noatime",
        )
        assert build_mount_plan(config)[1].options == "subvol=@home,noatime"
