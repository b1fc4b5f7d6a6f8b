"""Tests for logging setup and helpers."""

from __future__ import annotations

import pytest

from nixos_bootstrap import logging as logging_module


@pytest.fixture
def records():
    """Capture records emitted through loguru."""
    logging_module.logger.remove()
    captured: list[dict] = []

    def sink(message):
        captured.append(message.record)

    logging_module.logger.add(sink, level="DEBUG", enqueue=False)
    yield captured
    logging_module.logger.remove()


def test_setup_logging_creates_operations_log(tmp_path):
    log_dir = tmp_path / "logs"

    logging_module.setup_logging(log_dir=log_dir)
    logging_module.get_logger(source="test").info("Info message")
    logging_module.logger.complete()

    assert (log_dir / "operations.log").exists()
    assert "Info message" in (log_dir / "operations.log").read_text()
    assert not (log_dir / "debug.log").exists()
    logging_module.logger.remove()


def test_setup_logging_debug_adds_debug_log(tmp_path):
    log_dir = tmp_path / "logs"

    logging_module.setup_logging(debug=True, log_dir=log_dir)
    logging_module.get_logger(source="test").debug("Debug detail")
    logging_module.logger.complete()

    assert "Debug detail" in (log_dir / "debug.log").read_text()
    assert "Debug detail" not in (log_dir / "operations.log").read_text()
    logging_module.logger.remove()


def test_command_output_reaches_debug_log_only(tmp_path):
    """Captured stdout/stderr is DEBUG, so only --debug runs record it, tagged."""
    from nixos_bootstrap.storage.commands import output_log

    log_dir = tmp_path / "logs"
    logging_module.setup_logging(log_dir=log_dir)
    output_log.debug("stdout: Create subvolume '/mnt/@'")
    logging_module.logger.complete()

    assert "Create subvolume" not in (log_dir / "operations.log").read_text()
    logging_module.logger.remove()

    logging_module.setup_logging(debug=True, log_dir=log_dir)
    output_log.debug("stdout: Create subvolume '/mnt/@home'")
    logging_module.logger.complete()

    lines = [
        line for line in (log_dir / "debug.log").read_text().splitlines() if "Create subvolume" in line
    ]
    assert len(lines) == 1
    assert "command-output" in lines[0]
    logging_module.logger.remove()


def test_setup_logging_survives_unwritable_log_dir(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")

    # A regular file where the directory should be
    logging_module.setup_logging(log_dir=blocker / "logs")
    logging_module.logger.remove()


def test_get_logger_preserves_context_metadata(records):
    """Test bound logger keeps job_id, tags, and source metadata."""
    log = logging_module.get_logger(job_id="job-123", tags=["partition"], source="partition")
    log.info("Context test")

    record = records[0]
    assert record["extra"]["job_id"] == "job-123"
    assert record["extra"]["tags"] == ["partition"]
    assert record["extra"]["source"] == "partition"


class TestOperationContext:
    def test_logs_start_and_success(self, records):
        with logging_module.operation_context("partition", disk="/dev/vdb") as log:
            log.debug("inside")

        messages = [r["message"] for r in records]
        assert messages[0] == "Partition started"
        assert messages[-1].startswith("Partition complete")
        assert records[-1]["level"].name == "SUCCESS"
        assert records[0]["extra"]["disk"] == "/dev/vdb"
        assert records[0]["extra"]["job_id"].startswith("partition-")

    def test_logs_and_reraises_failure(self, records):
        with pytest.raises(RuntimeError, match="boom"):
            with logging_module.operation_context("mount"):
                raise RuntimeError("boom")

        assert records[-1]["level"].name == "ERROR"
        assert "Mount failed" in records[-1]["message"]
        assert "boom" in records[-1]["message"]


@pytest.mark.parametrize(
    "factory,source",
    [
        (logging_module.LoggerFactory.for_partition, "partition"),
        (logging_module.LoggerFactory.for_mount, "mount"),
        (logging_module.LoggerFactory.for_command, "command"),
        (logging_module.LoggerFactory.for_install, "install"),
        (logging_module.LoggerFactory.for_prompt, "prompt"),
        (logging_module.LoggerFactory.for_system, "system"),
    ],
)
def test_logger_factory_sources(records, factory, source):
    factory().info("hello")

    assert records[0]["extra"]["source"] == source
