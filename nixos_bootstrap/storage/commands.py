"""External command execution.

Every partitioning, formatting, mount and install command goes through
run_command() (output captured and logged) or run_streaming() (output passed
straight to the terminal for long-running tools). A non-zero exit always
raises CommandFailedError; nothing here retries.
"""

import shutil
import subprocess
from typing import Optional, Sequence

from nixos_bootstrap.logging import LoggerFactory
from nixos_bootstrap.storage.exceptions import CommandFailedError


log = LoggerFactory.for_command()
output_log = log.bind(tags=["command", "command-output"])


def run_command(
    command: Sequence[str],
    check: bool = True,
    log_output: bool = True,
    log_command: bool = True,
    input_text: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """Run a command with captured output.

    Args:
        command: Argument list, never a shell string
        check: Raise CommandFailedError on a non-zero exit
        log_output: Echo stdout/stderr to the debug log
        log_command: Log the command line before running it
        input_text: Optional text fed to stdin

    Returns:
        The CompletedProcess result

    Raises:
        CommandFailedError: If check is set and the command fails
    """
    command = list(command)
    if log_command:
        log.debug(f"Running command: {' '.join(command)}")
    result = subprocess.run(
        command,
        input=input_text,
        text=True,
        capture_output=True,
    )
    if result.stdout and (log_output or result.returncode != 0):
        output_log.debug(f"stdout: {result.stdout.strip()}")
    if result.stderr and (log_output or result.returncode != 0):
        output_log.debug(f"stderr: {result.stderr.strip()}")
    if result.returncode != 0 and check:
        log.error(f"Command failed: {' '.join(command)} (rc={result.returncode})")
        raise CommandFailedError(command, result.returncode, result.stderr, result.stdout)
    if log_command:
        log.debug(f"Command completed with return code {result.returncode}")
    return result


def run_streaming(command: Sequence[str]) -> int:
    """Run a command attached to the terminal and return its exit code.

    Used for tools whose progress the operator should see as it happens.
    The caller decides what a non-zero exit means.
    """
    command = list(command)
    log.info(f"Running: {' '.join(command)}")
    process = subprocess.run(command)
    return process.returncode


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def settle_devices() -> None:
    """Ask udev to finish processing events before device nodes are read.

    Best effort only; callers still poll for the nodes they need.
    """
    if not command_exists("udevadm"):
        return
    result = run_command(
        ["udevadm", "settle", "--timeout=10"], check=False, log_command=False
    )
    if result.returncode != 0:
        log.debug(f"udevadm settle returned {result.returncode}, continuing")
