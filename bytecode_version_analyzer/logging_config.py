"""
Logging configuration for the Bytecode Version Analyzer.
"""

import logging
import sys
from typing import Optional

from .exceptions import ConfigurationError

# Above CRITICAL, nothing gets through
NONE = logging.CRITICAL + 10

LEVEL_NAMES = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'WARN': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
    'FATAL': logging.CRITICAL,
    'NONE': NONE,
}


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'      # Reset
    }

    def __init__(self, fmt: str = None, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record):
        if not self.use_colors or record.levelname not in self.COLORS:
            return super().format(record)

        # Put the plain name back for the other handlers
        original = record.levelname
        record.levelname = f"{self.COLORS[original]}{original}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class FailureTracker(logging.Handler):
    """
    Handler that remembers whether anything at or above a level was logged.

    The CLI installs one of these to turn e.g. warnings into a failing exit code.
    """

    def __init__(self, level: int = logging.ERROR):
        super().__init__(level)
        self.failed = False
        self.first_message: Optional[str] = None

    def emit(self, record):
        if not self.failed:
            self.first_message = record.getMessage()
        self.failed = True

    def reset(self):
        self.failed = False
        self.first_message = None


def parse_level(level) -> int:
    """
    Convert a level name (or number) into a logging level.

    Args:
        level: Level name such as "debug", "warn" or "none", or a logging constant

    Returns:
        Numeric logging level

    Raises:
        ConfigurationError: If the level name is unknown
    """
    if isinstance(level, int):
        return level

    numeric_level = LEVEL_NAMES.get(str(level).strip().upper())
    if numeric_level is None:
        raise ConfigurationError(
            f"Invalid verbosity '{level}', expected one of: "
            f"{', '.join(name.lower() for name in LEVEL_NAMES)}"
        )
    return numeric_level


def setup_logging(level: str = "INFO", log_file: Optional[str] = None, verbose: bool = False,
                  use_colors: Optional[bool] = None) -> logging.Logger:
    """
    Set up logging configuration for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL, NONE)
        log_file: Optional path to log file
        verbose: Enable verbose logging
        use_colors: Whether to color level names. Auto-detects if None.

    Returns:
        Configured logger instance
    """
    numeric_level = parse_level(level)

    # Create logger
    logger = logging.getLogger('bytecode_version_analyzer')
    logger.setLevel(min(numeric_level, logging.DEBUG) if log_file else numeric_level)

    # Close and drop any existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Create console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)

    # Create formatter
    if verbose:
        console_format = '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s'
    else:
        console_format = '%(levelname)s - %(message)s'

    if use_colors is None:
        use_colors = hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()

    console_formatter = ColoredFormatter(console_format, use_colors=use_colors)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # Create file handler if log file is specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file

        file_format = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        file_formatter = logging.Formatter(file_format)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    if numeric_level <= logging.DEBUG:
        logger.debug("note: debug mode is enabled")

    return logger


def install_failure_tracker(level="ERROR") -> FailureTracker:
    """
    Attach a FailureTracker to the application logger.

    Args:
        level: Lowest level that counts as a failure

    Returns:
        The installed handler
    """
    tracker = FailureTracker(parse_level(level))
    logger = logging.getLogger('bytecode_version_analyzer')
    # Records must reach the handler even when the console is quieter
    logger.setLevel(min(logger.level or logging.WARNING, tracker.level))
    logger.addHandler(tracker)
    return tracker


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Name of the module/logger

    Returns:
        Logger instance
    """
    return logging.getLogger(f'bytecode_version_analyzer.{name}')
