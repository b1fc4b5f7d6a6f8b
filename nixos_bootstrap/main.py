import argparse
import sys
from pathlib import Path
from typing import Optional

from nixos_bootstrap.__version__ import __version__
from nixos_bootstrap.config import settings
from nixos_bootstrap.domain.models import BootstrapConfig
from nixos_bootstrap.install import cleanup, configuration, inputs, nixos, summary
from nixos_bootstrap.install.preconditions import run_preconditions
from nixos_bootstrap.install.prompts import Prompter, TerminalPrompter
from nixos_bootstrap.logging import LoggerFactory, setup_logging
from nixos_bootstrap.storage import format as fs_format
from nixos_bootstrap.storage import mount, partition, subvolumes
from nixos_bootstrap.storage.exceptions import BootstrapError, ErrorCategory


log = LoggerFactory.for_system()

UNEXPECTED_ERROR_EXIT_CODE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nixos-bootstrap",
        description="Partition a disk with btrfs, mount subvolumes and install NixOS.",
    )
    parser.add_argument("--disk", help="Target disk, e.g. /dev/nvme0n1 (prompted if unset)")
    parser.add_argument("--hostname", help="Hostname for the new system (prompted if unset)")
    parser.add_argument("--username", help="Primary user name (prompted if unset)")
    parser.add_argument("--swap-size", dest="swap_size", help="Swap partition size, e.g. 16G")
    parser.add_argument("--timezone", help="Timezone for the starter configuration")
    parser.add_argument(
        "--config-url",
        dest="config_url",
        help="Fetch configuration.nix from this URL instead of writing the starter config",
    )
    parser.add_argument(
        "--mount-root", dest="mount_root", help="Scratch mount root (default /mnt)"
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help=f"Settings file (default {settings.SETTINGS_PATH})",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_settings(args: argparse.Namespace) -> None:
    """Defaults, then the settings file, then command-line flags."""
    settings.load_settings(args.settings)
    settings.apply_overrides(
        {
            "disk": args.disk,
            "hostname": args.hostname,
            "username": args.username,
            "swap_size": args.swap_size,
            "timezone": args.timezone,
            "config_url": args.config_url,
            "mount_root": args.mount_root,
        }
    )


def provision(config: BootstrapConfig, prompter: Prompter) -> None:
    """Everything after the destructive confirmation, strictly in order."""
    cleanup.cleanup_stale_mounts(config, prompter)
    partition.partition_disk(config)
    fs_format.format_partitions(config)
    subvolumes.create_subvolumes(config)
    mount.mount_target(config)
    configuration.write_configuration(config)
    nixos.generate_hardware_config(config)
    nixos.run_install(config)


def run(prompter: Optional[Prompter] = None) -> BootstrapConfig:
    """Run the whole bootstrap flow. Raises BootstrapError subclasses on abort."""
    run_preconditions()

    owned = None
    if prompter is None:
        owned = prompter = TerminalPrompter.open()
    try:
        config = inputs.collect_inputs(prompter)
        inputs.confirm_destruction(config, prompter)
        provision(config, prompter)
    finally:
        if owned is not None:
            owned.close()

    summary.print_summary(config)
    return config


def main(argv=None, prompter: Optional[Prompter] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(debug=args.debug)
    resolve_settings(args)

    try:
        run(prompter)
    except BootstrapError as error:
        if error.category is ErrorCategory.USER_DECLINED:
            print(str(error))
        else:
            log.error(f"[{error.category.name}] {error}")
        return error.exit_code
    except KeyboardInterrupt:
        log.error("Interrupted. Re-run to clean up any leftover mounts.")
        return 130
    except Exception:
        log.exception("Unexpected failure")
        return UNEXPECTED_ERROR_EXIT_CODE
    return 0


if __name__ == "__main__":
    sys.exit(main())
