"""Centralized logging configuration for the robotevents client.

Sets up standard Python logging with a console handler and an optional
rotating file handler.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Chatty third-party loggers kept at WARNING unless we are debugging
QUIET_LOGGERS = ("httpx", "httpcore")


def resolve_level(level: Union[int, str, None]) -> int:
    """Accepts 'debug', 'INFO', 10, ... and returns a logging level number."""
    if isinstance(level, int):
        return level
    if not level:
        return DEFAULT_LOG_LEVEL
    return getattr(logging, str(level).upper(), DEFAULT_LOG_LEVEL)


def setup_logging(
    log_level: Union[int, str] = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None,
) -> None:
    """Configures the root logger for the application.

    Args:
        log_level: The minimum logging level (e.g., logging.DEBUG, "info").
        log_format: The format string for log messages.
        log_file: Optional path to a file for logging output.
    """
    level = resolve_level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers attached to the root logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)

    # stderr keeps log lines out of the command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = RotatingFileHandler(
                log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding='utf-8'
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            logging.info(f"Logging to file: {log_file}")
        except OSError as e:
            logging.error(f"Failed to set up file logging to {log_file}: {e}", exc_info=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    logging.info(f"Logging configured. Level={logging.getLevelName(level)}")
