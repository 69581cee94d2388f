"""Logging configuration for imagemill.

Modules log through `get_logger(__name__)` and never install handlers
themselves. `setup_logging()` is the entry point for the application that
embeds the controller: it maps the shell's verbosity flags onto console
handlers and can mirror every record, with the emitting thread, to a file
so debounced staging on timer threads can be traced.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Package-level logger name
LOGGER_NAME = "imagemill"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger for an imagemill module.

    Args:
        name: Module name (e.g., __name__). If None, returns root imagemill logger.

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger(LOGGER_NAME)
    # Handle both 'imagemill.controller' and 'controller' styles
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


class ConsoleFormatter(logging.Formatter):
    """Formatter for console output from the editing shell."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record based on level.

        INFO: Just the message
        WARNING: Prefix with "Warning:"
        ERROR: Prefix with "Error:"
        DEBUG: Prefix with [debug] and the module the record came from
        """
        message = record.getMessage()
        if record.levelno == logging.DEBUG:
            module = record.name.rsplit(".", 1)[-1]
            return f"[debug:{module}] {message}"
        if record.levelno == logging.INFO:
            return message
        if record.levelno == logging.WARNING:
            return f"Warning: {message}"
        if record.levelno >= logging.ERROR:
            return f"Error: {message}"
        return super().format(record)


class InfoFilter(logging.Filter):
    """Filter that only allows records below WARNING level."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def console_level(verbosity: int = 0, quiet: bool = False) -> int:
    """Map shell verbosity flags to a console log level.

    Args:
        verbosity: 0=warnings only, 1=info, 2+=debug
        quiet: If True, only errors are shown regardless of verbosity
    """
    if quiet:
        return logging.ERROR
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(
    verbosity: int = 0,
    quiet: bool = False,
    log_file: Path | str | None = None,
) -> logging.Logger:
    """Configure logging for an application embedding imagemill.

    Args:
        verbosity: 0=warnings only, 1=info, 2=debug (transition traces)
        quiet: If True, suppress all output except errors
        log_file: Optional file path; receives every record at DEBUG level

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    level = console_level(verbosity, quiet)

    # Capture everything at logger level, filter at handlers
    logger.setLevel(logging.DEBUG)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(ConsoleFormatter())
    stdout_handler.addFilter(InfoFilter())
    logger.addHandler(stdout_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(max(level, logging.WARNING))
    stderr_handler.setFormatter(ConsoleFormatter())
    logger.addHandler(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(Path(log_file), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger
