from __future__ import annotations

import os
import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

DEFAULT_LOG_DIR = Path(
    os.environ.get(
        "NIXOS_BOOTSTRAP_LOG_DIR",
        Path.home() / ".local" / "state" / "nixos-bootstrap" / "logs",
    )
)

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[source]: <10}</cyan> | "
    "{message}"
)


def setup_logging(
    *,
    debug: bool = False,
    log_dir: Path | None = None,
) -> Logger:
    """
    Setup console and file logging for a bootstrap run.

    Log Files:
    - operations.log: INFO+ events (7 day retention)
    - debug.log: DEBUG+ events when --debug is enabled (3 day retention)

    A run normally happens on a live ISO where the log dir lives in RAM; the
    file sinks still matter because the console scrolls away during
    nixos-install.

    Args:
        debug: Enable DEBUG level logging on the console and debug.log
        log_dir: Custom log directory (defaults to ~/.local/state/nixos-bootstrap/logs)
    """
    logger.remove()
    logger.configure(extra={"job_id": "-", "tags": [], "source": "bootstrap"})

    console_level = "DEBUG" if debug else "INFO"

    # SINK 1: Console (stderr) - operator facing
    logger.add(
        sys.stderr,
        level=console_level,
        backtrace=False,
        diagnose=False,
        colorize=True,
        format=CONSOLE_FORMAT,
    )

    log_dir = log_dir or DEFAULT_LOG_DIR
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        logger.warning(f"Log directory {log_dir} unavailable, file logging disabled: {error}")
        return logger

    # SINK 2: Operations Log - INFO+
    logger.add(
        log_dir / "operations.log",
        level="INFO",
        rotation="5 MB",
        retention="7 days",
        backtrace=False,
        diagnose=False,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{extra[source]: <10} | "
            "{extra[job_id]: <18} | "
            "{message}"
        ),
    )

    # SINK 3: Debug Log - includes command output
    if debug:
        logger.add(
            log_dir / "debug.log",
            level="DEBUG",
            rotation="10 MB",
            retention="3 days",
            backtrace=True,
            diagnose=True,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[source]: <10} | "
                "{extra[job_id]: <18} | "
                "{extra[tags]} | "
                "{message}"
            ),
        )

    return logger


def get_logger(
    *,
    job_id: str | None = None,
    tags: Iterable[str] | None = None,
    source: str | None = None,
) -> Logger:
    """
    Get a logger with bound context.

    Args:
        job_id: Job identifier for tracking operations
        tags: Tags for filtering (e.g., ["partition", "storage"])
        source: Source component (e.g., "partition", "mount")

    Returns:
        Logger with bound context
    """
    extras: dict[str, object] = {}
    if job_id is not None:
        extras["job_id"] = job_id
    if tags is not None:
        extras["tags"] = list(tags)
    if source is not None:
        extras["source"] = source
    return logger.bind(**extras)


@contextmanager
def operation_context(operation: str, **details):
    """
    Context manager for tracking a bootstrap step with automatic timing.

    Logs step start, completion (SUCCESS level) and failure with duration.
    Exceptions are re-raised untouched.

    Example:
        with operation_context("partition", disk="/dev/sda") as log:
            log.debug("Zapping partition table")
    """
    job_id = f"{operation}-{uuid.uuid4().hex[:8]}"

    with logger.contextualize(job_id=job_id, operation=operation, **details):
        start_time = time.time()
        log = logger.bind(source=operation, job_id=job_id, tags=[operation])

        log.info(f"{operation.capitalize()} started")

        try:
            yield log
            duration = time.time() - start_time
            log.success(
                f"{operation.capitalize()} complete ({duration:.1f}s)"
            )
        except Exception as e:
            duration = time.time() - start_time
            log.error(
                f"{operation.capitalize()} failed after {duration:.1f}s: {e}"
            )
            raise


class LoggerFactory:
    """
    Factory for creating domain-specific loggers with automatic context.
    """

    @staticmethod
    def for_partition() -> Logger:
        """Logger for partition table and filesystem operations."""
        return logger.bind(source="partition", tags=["partition", "storage"])

    @staticmethod
    def for_mount() -> Logger:
        """Logger for mount, unmount and swap operations."""
        return logger.bind(source="mount", tags=["mount", "storage"])

    @staticmethod
    def for_command() -> Logger:
        """Logger for external command execution."""
        return logger.bind(source="command", tags=["command"])

    @staticmethod
    def for_install() -> Logger:
        """Logger for configuration materialization and nixos-install."""
        return logger.bind(source="install", tags=["install", "nixos"])

    @staticmethod
    def for_prompt() -> Logger:
        """Logger for interactive input collection."""
        return logger.bind(source="prompt", tags=["prompt", "ui"])

    @staticmethod
    def for_system() -> Logger:
        """Logger for system operations (startup, preconditions, config)."""
        return logger.bind(source="system", tags=["system"])
