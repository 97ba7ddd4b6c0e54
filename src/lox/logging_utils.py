"""Logging helpers for the command-line driver."""

import os
import sys
from typing import Optional

from loguru import logger

LOG_LEVEL_ENV = "LOX_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"

_FORMAT = "{time:HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {message}"


def resolve_log_level(level: Optional[str] = None) -> str:
    """Pick the level from the argument, then LOX_LOG_LEVEL, then the default."""
    chosen = level or os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL
    return chosen.strip().upper()


def configure_logging(level: Optional[str] = None) -> str:
    """Replace loguru's sinks with a single stderr sink.

    Library modules only emit; this is called by the CLI, or by a host
    application that wants the interpreter's debug events.

    Returns:
        The level that was installed
    """
    chosen = resolve_log_level(level)

    logger.remove()
    logger.add(
        sys.stderr,
        level=chosen,
        format=_FORMAT,
        backtrace=False,
        diagnose=False,
    )
    logger.debug("lox.logging.configured level={}", chosen)
    return chosen
