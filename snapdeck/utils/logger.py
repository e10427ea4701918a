"""Logging setup."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logger(name: str = "snapdeck", level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return a logger with a single stream handler.

    Calling it again for the same name only updates the level, so entry
    points can call it unconditionally.

    Args:
        name: Logger name (child loggers inherit its handler)
        level: Level name such as "DEBUG"; defaults to Config.LOG_LEVEL

    Returns:
        The configured logger
    """
    from ..config import Config

    logger = logging.getLogger(name)
    logger.setLevel(level or Config.LOG_LEVEL)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
