from __future__ import annotations

import logging
import sys

"""Logging initialization with labeled prefixes.

Installs one stdout handler on the ``datagrid`` logger whose records render
as ``<LABEL> <message>`` with labels DEBUG|INFO|WARN|ERROR|SUMMARY. Engines log
through child loggers (``datagrid.validation`` ...) and inherit the handler.

Debug output is a process-wide decision made once here; components never
read a global flag of their own.
"""

__all__ = [
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
]

LOGGER_NAME = "datagrid"

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Formatter rendering ``LABEL message``."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


def _apply_level(logger: logging.Logger, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def setup_logging(debug: bool = False) -> logging.Logger:
    """Configure the application logger (idempotent).

    A second call does not add handlers; it only re-applies the level, so a
    host can switch debug output on after the initial setup.

    Args:
        debug: Emit DEBUG records as well

    Returns:
        Configured ``datagrid`` logger
    """
    global _logger

    if _logger is not None:
        _apply_level(_logger, debug)
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    # keep records away from the root logger to avoid duplicate output
    logger.propagate = False

    _apply_level(logger, debug)
    _logger = logger
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the application logger, or one of its children for ``name``."""
    base = _logger if _logger is not None else setup_logging()
    return base.getChild(name) if name else base


def log_summary(message: str) -> None:
    """Log ``message`` at SUMMARY level."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Reset the global logger state. Mainly for testing purposes."""
    global _logger
    if _logger is not None:
        for handler in _logger.handlers[:]:
            _logger.removeHandler(handler)
    _logger = None
