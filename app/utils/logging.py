"""Centralized logging configuration."""

import logging
import sys
from typing import Dict, Optional

_default_level = "INFO"

# Loggers that follow the default level, keyed by name
_default_level_loggers: Dict[str, logging.Logger] = {}


def set_log_level(level: str) -> None:
    """Set the level used by every logger created without an explicit override.

    Loggers that already exist are updated as well, so modules imported
    before the settings were loaded pick up the configured level.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    global _default_level
    _default_level = level
    for logger in _default_level_loggers.values():
        _apply_level(logger, level)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)
        level: Optional log level override (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            the configured LOG_LEVEL when omitted

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)

        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(formatter)

        logger.addHandler(console_handler)

    if level is None:
        _default_level_loggers[name] = logger
    else:
        _default_level_loggers.pop(name, None)
    _apply_level(logger, level or _default_level)

    return logger


def _apply_level(logger: logging.Logger, level: str) -> None:
    log_level = getattr(logging, level.upper())
    logger.setLevel(log_level)
    for handler in logger.handlers:
        handler.setLevel(log_level)
