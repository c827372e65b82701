"""
Loguru setup shared by the command-line services.
"""

import sys
from typing import Optional

from loguru import logger

from .config import Settings, get_settings

TEXT_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def setup_logging(settings: Optional[Settings] = None, level: Optional[str] = None) -> int:
    """
    Route loguru output to stderr.

    LOG_FORMAT=json emits one serialized record per line for log shippers;
    anything else gets the coloured console format. `level` overrides
    LOG_LEVEL.

    Returns:
        The id of the installed sink
    """
    settings = settings or get_settings()
    level = (level or settings.log_level).upper()
    logger.remove()

    if settings.log_format.lower() == "json":
        return logger.add(sys.stderr, level=level, serialize=True, backtrace=False, diagnose=False)
    return logger.add(sys.stderr, level=level, format=TEXT_FORMAT, colorize=None)
