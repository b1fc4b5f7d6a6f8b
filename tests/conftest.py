"""
Pytest configuration and shared fixtures for nixos-bootstrap tests.

Nothing here touches a real disk: every external command goes through a
recording fake of subprocess.run, and mount roots live under tmp_path.
"""

import json
from pathlib import Path
from typing import Callable, List, Optional
from unittest.mock import Mock

import pytest

from nixos_bootstrap import logging as logging_module
from nixos_bootstrap.config import settings
from nixos_bootstrap.domain.models import BootstrapConfig


# ==============================================================================
# Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Start every test from DEFAULT_SETTINGS, never the user's settings file."""
    settings_file = tmp_path / "no-settings.json"
    monkeypatch.setattr(settings, "SETTINGS_PATH", settings_file)
    settings.load_settings(settings_file)
    yield
    settings.load_settings(settings_file)


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(logging_module, "DEFAULT_LOG_DIR", tmp_path / "logs")


@pytest.fixture
def proc_files(tmp_path, monkeypatch):
    """Point /proc/mounts and /proc/swaps at writable fakes (empty by default)."""
    from nixos_bootstrap.storage import mount

    mounts_file = tmp_path / "proc_mounts"
    swaps_file = tmp_path / "proc_swaps"
    mounts_file.write_text("proc /proc proc rw 0 0\n")
    swaps_file.write_text("Filename\tType\tSize\tUsed\tPriority\n")
    monkeypatch.setattr(mount, "PROC_MOUNTS", mounts_file)
    monkeypatch.setattr(mount, "PROC_SWAPS", swaps_file)
    return mounts_file, swaps_file


# ==============================================================================
# Configuration Fixtures
# ==============================================================================


@pytest.fixture
def mount_root(tmp_path) -> Path:
    return tmp_path / "mnt"


@pytest.fixture
def bootstrap_config(mount_root) -> BootstrapConfig:
    """The reference run: /dev/vdb, testhost, alice, 4G swap."""
    return BootstrapConfig(
        disk="/dev/vdb",
        hostname="testhost",
        username="alice",
        swap_size="4G",
        timezone="Europe/Berlin",
        mount_root=mount_root,
    )


@pytest.fixture
def nvme_config(mount_root) -> BootstrapConfig:
    return BootstrapConfig(
        disk="/dev/nvme0n1",
        hostname="nixbox",
        username="donald",
        swap_size="16G",
        mount_root=mount_root,
    )


# ==============================================================================
# Command Fixtures
# ==============================================================================


class CommandRecorder:
    """Fake subprocess.run that records every argument list it is given.

    ``fail_when`` decides per command whether it exits non-zero; ``on_call``
    runs before the result is returned (used to inspect filesystem state at
    the moment a command runs).
    """

    def __init__(self) -> None:
        self.commands: List[List[str]] = []
        self.fail_when: Optional[Callable[[List[str]], bool]] = None
        self.on_call: Optional[Callable[[List[str]], None]] = None
        self.lsblk_devices: list = []

    def __call__(self, command, *args, **kwargs):
        command = list(command)
        self.commands.append(command)
        if self.on_call:
            self.on_call(command)
        if self.fail_when and self.fail_when(command):
            return Mock(returncode=1, stdout="", stderr=f"{command[0]}: mock failure")
        stdout = ""
        if command[:2] == ["lsblk", "-J"]:
            stdout = json.dumps({"blockdevices": self.lsblk_devices})
        return Mock(returncode=0, stdout=stdout, stderr="")

    def named(self, program: str) -> List[List[str]]:
        return [command for command in self.commands if command[0] == program]

    def index_of(self, command: List[str]) -> int:
        return self.commands.index(command)

    @property
    def programs(self) -> List[str]:
        return [command[0] for command in self.commands]


@pytest.fixture
def commands(mocker) -> CommandRecorder:
    """
    Fixture replacing subprocess.run with a CommandRecorder.

    udevadm is reported missing so command sequences stay deterministic
    regardless of the machine running the tests.
    """
    recorder = CommandRecorder()
    mocker.patch("subprocess.run", side_effect=recorder)
    mocker.patch(
        "nixos_bootstrap.storage.commands.command_exists", return_value=False
    )
    return recorder


@pytest.fixture
def no_device_wait(mocker) -> Mock:
    """Partition nodes 'appear' immediately."""
    return mocker.patch("nixos_bootstrap.storage.partition.wait_for_device_node")


# ==============================================================================
# Prompt Fixtures
# ==============================================================================


class ScriptedPrompter:
    """Prompter that answers from a fixed script and records everything shown."""

    def __init__(self, answers=None) -> None:
        self.answers = list(answers or [])
        self.questions: List[str] = []
        self.shown: List[str] = []
        self.warnings: List[str] = []

    def ask(self, message: str) -> str:
        self.questions.append(message)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        return self.answers.pop(0)

    def show(self, *lines: str) -> None:
        self.shown.extend(lines)

    def warn(self, *lines: str) -> None:
        self.warnings.extend(lines)


@pytest.fixture
def prompter_factory() -> Callable[..., ScriptedPrompter]:
    def make(*answers: str) -> ScriptedPrompter:
        return ScriptedPrompter(answers)

    return make
