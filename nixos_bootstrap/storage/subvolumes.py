"""btrfs subvolume creation.

Subvolumes are created at the top level of the btrfs filesystem, which means
mounting the raw root partition (no subvol= option) at the scratch mount
root, creating them, and unmounting again before the real mount plan runs.
"""

from nixos_bootstrap.domain.models import SUBVOLUMES, BootstrapConfig
from nixos_bootstrap.logging import operation_context
from nixos_bootstrap.storage.commands import run_command


def create_subvolumes(config: BootstrapConfig) -> list[str]:
    """Create the fixed subvolume set on the root partition.

    The scratch mount is released on every exit path. When creation fails
    and the unmount fails too, the unmount is logged and the creation error
    propagates. If the process dies before that, the stale-mount cleanup on
    the next run handles it.
    """
    mount_root = str(config.mount_root)
    with operation_context("subvolumes", device=config.root_partition) as log:
        config.mount_root.mkdir(parents=True, exist_ok=True)
        run_command(["mount", config.root_partition, mount_root])
        try:
            for name in SUBVOLUMES:
                run_command(["btrfs", "subvolume", "create", f"{mount_root}/{name}"])
                log.debug(f"Created subvolume {name}")
        except BaseException:
            # Keep the original failure; a busy scratch mount only gets logged
            released = run_command(["umount", mount_root], check=False)
            if released.returncode != 0:
                log.error(
                    f"Could not release scratch mount {mount_root} "
                    f"(rc={released.returncode}): {released.stderr.strip()}"
                )
            raise
        run_command(["umount", mount_root])
        log.info(f"Subvolumes created: {', '.join(SUBVOLUMES)}")
        return list(SUBVOLUMES)
