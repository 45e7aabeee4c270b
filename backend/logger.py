"""
Logging setup for the review pipeline, built on loguru.

Usage:
    from logger import get_logger

    log = get_logger(__name__)
    log.info("Run started")
"""

import os
import sys
from typing import Any, Optional

from loguru import logger


_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> | "
    "<level>{message}</level>"
)

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Replace loguru's default sink with a single stderr sink.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL env var, then INFO.
    """
    global _configured
    if _configured:
        return

    logger.remove()
    logger.configure(extra={"name": "review_council"})
    logger.add(
        sys.stderr,
        format=_LOG_FORMAT,
        level=level or os.environ.get("LOG_LEVEL", "INFO"),
        colorize=True,
    )
    _configured = True


def reset_logging() -> None:
    """Drop all sinks (tests)."""
    global _configured
    logger.remove()
    _configured = False


def get_logger(name: str) -> Any:
    """Return the shared loguru logger bound to a module name."""
    return logger.bind(name=name)
