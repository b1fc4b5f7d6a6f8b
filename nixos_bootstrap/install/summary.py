"""Post-install summary."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import IO, Optional

from nixos_bootstrap.domain.models import CONFIG_DIR, SUBVOLUMES, BootstrapConfig


def format_summary(config: BootstrapConfig) -> list[str]:
    installed_config_dir = Path("/") / CONFIG_DIR
    return [
        "",
        "══════════════════════════════════════════",
        "         Installation Complete!           ",
        "══════════════════════════════════════════",
        "",
        f"  Hostname : {config.hostname}",
        f"  User     : {config.username}",
        f"  Disk     : {config.disk}",
        f"  FS       : btrfs (subvols: {', '.join(SUBVOLUMES)})",
        "",
        "  Next steps:",
        "  1. reboot and remove the USB",
        f"  2. Log in as root, then run: passwd {config.username} to set your password",
        f"  3. Log in as {config.username}, Sway should start via greetd",
        "  4. Set up your dotfiles repo and set config_url in the settings file",
        "",
        f"  Config is at: {config.config_dir}/ (pre-reboot)",
        f"  After reboot:  {installed_config_dir}/",
        "",
    ]


def print_summary(config: BootstrapConfig, stream: Optional[IO[str]] = None) -> None:
    stream = stream or sys.stdout
    for line in format_summary(config):
        print(line, file=stream)
