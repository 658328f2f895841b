"""Tests for logging setup and the failure tracker."""
import logging

import pytest

from bytecode_version_analyzer.exceptions import ConfigurationError
from bytecode_version_analyzer.logging_config import (
    NONE,
    ColoredFormatter,
    get_logger,
    install_failure_tracker,
    parse_level,
    setup_logging,
)


@pytest.mark.parametrize("name, level", [
    ("debug", logging.DEBUG),
    ("INFO", logging.INFO),
    ("warn", logging.WARNING),
    ("fatal", logging.CRITICAL),
    ("none", NONE),
    (logging.ERROR, logging.ERROR),
])
def test_parse_level(name, level):
    assert parse_level(name) == level


def test_parse_unknown_level():
    with pytest.raises(ConfigurationError):
        parse_level("chatty")


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "run.log"
    logger = setup_logging("warning", str(log_file), use_colors=False)
    setup_logging("warning", str(log_file), use_colors=False)

    assert len(logger.handlers) == 2
    get_logger("test").debug("only in the file")
    for handler in logger.handlers:
        handler.flush()
    assert "only in the file" in log_file.read_text()


def test_setup_logging_closes_previous_file_handler(tmp_path):
    """Reconfiguring releases the log file opened by the previous setup."""
    log_file = tmp_path / "run.log"
    logger = setup_logging("info", str(log_file), use_colors=False)
    old_handler = next(handler for handler in logger.handlers if isinstance(handler, logging.FileHandler))
    get_logger("test").info("first run")

    setup_logging("info", str(tmp_path / "other.log"), use_colors=False)

    assert old_handler not in logger.handlers
    assert old_handler.stream is None


def test_failure_tracker():
    setup_logging("none", use_colors=False)
    tracker = install_failure_tracker("warning")
    log = get_logger("test")

    log.info("fine")
    assert not tracker.failed

    log.warning("first problem")
    log.error("second problem")
    assert tracker.failed
    assert tracker.first_message == "first problem"

    tracker.reset()
    assert not tracker.failed


def test_colored_formatter_keeps_record_level_name():
    formatter = ColoredFormatter("%(levelname)s %(message)s", use_colors=True)
    record = logging.LogRecord("x", logging.ERROR, __file__, 1, "msg", None, None)

    assert formatter.format(record).startswith("\033[31mERROR")
    assert record.levelname == "ERROR"
