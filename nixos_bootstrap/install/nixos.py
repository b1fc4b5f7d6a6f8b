"""Delegation to the NixOS installer tooling.

Both collaborators are opaque: nixos-generate-config inspects the mounted
target and writes hardware-configuration.nix; nixos-install builds and
installs the system. Failures surface as-is, with no retry and no cleanup.
"""

from nixos_bootstrap.domain.models import BootstrapConfig
from nixos_bootstrap.logging import operation_context
from nixos_bootstrap.storage.commands import run_command, run_streaming
from nixos_bootstrap.storage.exceptions import InstallerFailedError


def hardware_config_command(config: BootstrapConfig) -> list[str]:
    return ["nixos-generate-config", "--root", str(config.mount_root)]


def install_command(config: BootstrapConfig) -> list[str]:
    # No root password here; the user sets theirs with passwd after first boot.
    return ["nixos-install", "--root", str(config.mount_root), "--no-root-passwd"]


def generate_hardware_config(config: BootstrapConfig) -> None:
    """Always generated, never fetched. Leaves an existing configuration.nix alone."""
    with operation_context("hardware", root=str(config.mount_root)) as log:
        run_command(hardware_config_command(config))
        log.debug(f"Wrote {config.hardware_config_path}")


def run_install(config: BootstrapConfig) -> None:
    """Run nixos-install against the mounted target, output on the terminal.

    Raises:
        InstallerFailedError: On any non-zero exit
    """
    command = install_command(config)
    with operation_context("install", root=str(config.mount_root)) as log:
        log.info("Running nixos-install (this will take a while on first run)")
        returncode = run_streaming(command)
        if returncode != 0:
            raise InstallerFailedError(command, returncode)
