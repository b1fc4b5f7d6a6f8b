"""Recovery from an aborted earlier run.

If anything is still mounted under the scratch mount root, or the target swap
partition is still active, the operator is shown what was found and asked to
confirm before it is released. Unmounting goes deepest path first and ends
with the mount root itself. With nothing active this is a no-op.
"""

from pathlib import Path
from typing import Optional

from nixos_bootstrap.domain.models import BootstrapConfig
from nixos_bootstrap.install.prompts import Prompter, is_confirmed
from nixos_bootstrap.logging import LoggerFactory
from nixos_bootstrap.storage import mount
from nixos_bootstrap.storage.exceptions import StaleMountsError


log = LoggerFactory.for_mount()


def cleanup_stale_mounts(
    config: BootstrapConfig,
    prompter: Prompter,
    mounts_file: Optional[Path] = None,
    swaps_file: Optional[Path] = None,
) -> list[str]:
    """Release leftovers under ``config.mount_root``.

    Returns:
        The mountpoints that were unmounted, in unmount order.

    Raises:
        StaleMountsError: If the operator declines the cleanup
        CommandFailedError: If swapoff or umount fails
    """
    mountpoints = mount.active_mounts_under(config.mount_root, mounts_file)
    swap_active = mount.is_swap_active(config.swap_partition, swaps_file)
    if not mountpoints and not swap_active:
        log.debug(f"No stale mounts under {config.mount_root}")
        return []

    prompter.warn(f"Found active mounts from a previous run under {config.mount_root}:")
    for mountpoint in mountpoints:
        prompter.show(f"  {mountpoint}")
    if swap_active:
        prompter.show(f"  swap on {config.swap_partition}")
    answer = prompter.ask("Type 'yes' to unmount them and continue, anything else to abort:")
    if not is_confirmed(answer):
        raise StaleMountsError(str(config.mount_root), mountpoints)

    if swap_active:
        mount.deactivate_swap(config.swap_partition)
    for mountpoint in mountpoints:
        mount.unmount_path(mountpoint)
    log.info(f"Released {len(mountpoints)} stale mount(s) under {config.mount_root}")
    return mountpoints
