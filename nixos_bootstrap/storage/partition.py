"""GPT partitioning of the target disk with sgdisk.

Layout (fixed order, never resized afterwards):
    1: EFI  +1G        type ef00
    2: swap +SWAP_SIZE type 8200
    3: root rest       type 8300

The existing table is destroyed first. Any failing sub-step aborts the run;
the disk is left as it is. No partial-state recovery is attempted.
"""

from nixos_bootstrap.domain.models import BootstrapConfig, build_partition_layout
from nixos_bootstrap.logging import operation_context
from nixos_bootstrap.storage.commands import run_command, settle_devices
from nixos_bootstrap.storage.devices import wait_for_device_node


def zap_partition_table(disk: str) -> None:
    run_command(["sgdisk", "--zap-all", disk])
    run_command(["partprobe", disk])
    settle_devices()


def create_partitions(config: BootstrapConfig) -> None:
    for partition in build_partition_layout(config.swap_size):
        run_command(["sgdisk", *partition.sgdisk_args(), config.disk])


def partition_disk(config: BootstrapConfig) -> list[str]:
    """Wipe ``config.disk`` and create the three-partition layout.

    Returns:
        The partition device nodes, in layout order, once all of them exist.

    Raises:
        CommandFailedError: If sgdisk or partprobe fails
        DeviceTimeoutError: If a partition node never appears
    """
    with operation_context("partition", disk=config.disk) as log:
        log.info(f"Wiping and partitioning {config.disk}")
        zap_partition_table(config.disk)
        create_partitions(config)

        run_command(["partprobe", config.disk])
        settle_devices()

        nodes = [
            config.partition(partition.number)
            for partition in build_partition_layout(config.swap_size)
        ]
        for node in nodes:
            wait_for_device_node(node, timeout=config.device_timeout)
        log.debug(f"Partition nodes: {', '.join(nodes)}")
        return nodes
