"""Custom exceptions for the bootstrap flow.

Every failure the installer can report is tagged with an ErrorCategory so the
entry point (and tests) can tell abort reasons apart without parsing message
text. The category also decides the process exit code.

Exception Hierarchy:
    BootstrapError (base)
        ├── PreconditionError
        │   ├── NotRootError
        │   ├── InstallerNotFoundError
        │   ├── MissingToolsError
        │   └── StaleMountsError
        ├── ValidationError
        │   ├── DiskNotFoundError
        │   ├── InvalidHostnameError
        │   ├── InvalidUsernameError
        │   └── InvalidSwapSizeError
        ├── UserDeclinedError
        └── ToolFailureError
            ├── CommandFailedError
            ├── DeviceTimeoutError
            ├── MountTargetMissingError
            ├── ConfigurationFetchError
            └── InstallerFailedError

Usage:
    from nixos_bootstrap.storage.exceptions import DiskNotFoundError

    if not is_block_device(disk):
        raise DiskNotFoundError(disk)
"""

from enum import Enum
from typing import Optional, Sequence


class ErrorCategory(Enum):
    """Abort reason, mapped to the process exit code."""

    PRECONDITION = 2
    VALIDATION = 3
    USER_DECLINED = 0
    TOOL_FAILURE = 4

    @property
    def exit_code(self) -> int:
        return self.value


class BootstrapError(Exception):
    """Base exception for all bootstrap failures."""

    category = ErrorCategory.TOOL_FAILURE

    @property
    def exit_code(self) -> int:
        return self.category.exit_code


class PreconditionError(BootstrapError):
    """The environment cannot possibly complete an install."""

    category = ErrorCategory.PRECONDITION


class NotRootError(PreconditionError):
    """Process is not running with root privileges."""

    def __init__(self, euid: int):
        self.euid = euid
        super().__init__(
            "This tool must be run as root. Try: sudo nixos-bootstrap"
        )


class InstallerNotFoundError(PreconditionError):
    """nixos-install is missing, so this is not a NixOS live environment."""

    def __init__(self, installer: str = "nixos-install"):
        self.installer = installer
        super().__init__(
            f"{installer} not found. Are you booted into the NixOS live ISO?"
        )


class MissingToolsError(PreconditionError):
    """One or more required external utilities are not on PATH."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Required command not found: {', '.join(self.missing)}")


class StaleMountsError(PreconditionError):
    """Leftover mounts from an earlier run were found and not cleaned up."""

    def __init__(self, mount_root: str, mountpoints: Sequence[str]):
        self.mount_root = mount_root
        self.mountpoints = list(mountpoints)
        super().__init__(
            f"Refusing to continue with active mounts under {mount_root}: "
            f"{', '.join(self.mountpoints) or 'swap'}"
        )


class ValidationError(BootstrapError):
    """User supplied value is unusable. Raised before any mutation."""

    category = ErrorCategory.VALIDATION


class DiskNotFoundError(ValidationError):
    """Disk path does not resolve to a block-special file."""

    def __init__(self, disk: str):
        self.disk = disk
        super().__init__(f"Disk not found: {disk or '(empty)'}")


class InvalidHostnameError(ValidationError):
    def __init__(self, hostname: str):
        self.hostname = hostname
        super().__init__(f"Invalid hostname: {hostname!r}")


class InvalidUsernameError(ValidationError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Invalid username: {username!r}")


class InvalidSwapSizeError(ValidationError):
    def __init__(self, swap_size: str):
        self.swap_size = swap_size
        super().__init__(
            f"Invalid swap size: {swap_size!r} (expected e.g. 8G, 512M)"
        )


class UserDeclinedError(BootstrapError):
    """Operator answered something other than the confirmation token."""

    category = ErrorCategory.USER_DECLINED

    def __init__(self, answer: str = ""):
        self.answer = answer
        super().__init__("Aborted.")


class ToolFailureError(BootstrapError):
    """An external collaborator failed. Never retried."""

    category = ErrorCategory.TOOL_FAILURE


class CommandFailedError(ToolFailureError):
    """External command exited non-zero."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stderr: Optional[str] = None,
        stdout: Optional[str] = None,
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr or ""
        self.stdout = stdout or ""
        message = f"Command failed ({' '.join(self.command)}) rc={returncode}"
        detail = self.stderr.strip() or self.stdout.strip()
        if detail:
            message += f": {detail}"
        super().__init__(message)


class DeviceTimeoutError(ToolFailureError):
    """Device node did not appear within the polling window."""

    def __init__(self, device: str, timeout: float):
        self.device = device
        self.timeout = timeout
        super().__init__(f"Device node {device} did not appear after {timeout:g}s")


class MountTargetMissingError(ToolFailureError):
    """Mount target directory does not exist."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"Cannot mount at {target}: no such directory")


class ConfigurationFetchError(ToolFailureError):
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch configuration from {url}: {reason}")


class InstallerFailedError(ToolFailureError):
    def __init__(self, command: Sequence[str], returncode: int):
        self.command = list(command)
        self.returncode = returncode
        super().__init__(
            f"{self.command[0]} failed with exit code {returncode}"
        )
