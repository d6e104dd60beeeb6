"""Logger configuration for fittrack."""

import sys

from loguru import logger

_configured_level: str | None = None


def setup_logger(level: str = "INFO") -> None:
    """Configure the loguru console sink.

    Safe to call more than once; the sink is only replaced when the level
    changes.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    global _configured_level

    if _configured_level == level:
        return

    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )
    _configured_level = level
    logger.debug(f"Logger initialized with level={level}")
