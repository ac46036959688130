"""
Logging setup for live caption clients.

Level resolution: explicit argument, then LIVECAPTION_LOG_LEVEL, then
LOG_LEVEL, then INFO.
"""

import logging
import os
import sys
from typing import Literal

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATEFMT = "%H:%M:%S"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def resolve_level(level: str | None = None) -> int:
    """Map a level name (or the environment) to a logging level number."""
    if level is None:
        level = os.getenv("LIVECAPTION_LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO")
    return getattr(logging, level.upper(), logging.INFO)


def setup_logging(
    name: str | None = None,
    level: LogLevel | None = None,
    format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Configure root logging once and return a logger.

    Args:
        name: Logger name (typically __name__). If None, returns root logger.
        level: Log level; resolved from the environment if None.
        format: Log format string.

    Usage:
        from livecaption.utils import setup_logging
        logger = setup_logging(__name__)
    """
    log_level = resolve_level(level)

    logging.basicConfig(
        level=log_level,
        format=format,
        datefmt=DEFAULT_DATEFMT,
        stream=sys.stdout,
    )

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger by name. Assumes setup_logging() ran at startup."""
    return logging.getLogger(name)


def set_log_level(level: LogLevel, name: str = "livecaption") -> None:
    """
    Change a logger's level at runtime.

    Args:
        level: New level name (case-insensitive)
        name: Logger to adjust; defaults to the package logger
    """
    logging.getLogger(name).setLevel(resolve_level(level))
