"""Tests for logging configuration."""

import logging

import pytest

from healthtop.logging_setup import logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    setup_logging()


def test_default_discards_records():
    """Test that without a log file nothing reaches the terminal."""
    setup_logging()

    assert logger.level == logging.INFO
    assert logger.propagate is False
    assert [type(h) for h in logger.handlers] == [logging.NullHandler]


def test_log_file_receives_records(tmp_path):
    """Test records from module loggers are written to the log file."""
    log_file = tmp_path / "healthtop.log"
    setup_logging(verbose=True, log_file=str(log_file))

    logging.getLogger("healthtop.scanner").debug("scan started")
    for handler in logger.handlers:
        handler.flush()

    content = log_file.read_text()
    assert "Verbose logging enabled" in content
    assert "healthtop.scanner - scan started" in content


def test_repeated_setup_does_not_stack_handlers(tmp_path):
    """Test calling setup twice leaves a single handler."""
    setup_logging(log_file=str(tmp_path / "a.log"))
    setup_logging(log_file=str(tmp_path / "b.log"))

    assert len(logger.handlers) == 1


def test_unwritable_log_file_falls_back(tmp_path):
    """Test an unusable log path does not raise."""
    setup_logging(log_file=str(tmp_path / "missing-dir" / "x.log"))

    assert [type(h) for h in logger.handlers] == [logging.NullHandler]
