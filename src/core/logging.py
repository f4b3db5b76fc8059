"""
Loguru configuration shared by the API and the service layer.
"""

import sys
from loguru import logger
from .config import settings

_configured = False


def setup_logging(level: str | None = None):
    """
    Configure the loguru stderr sink once and return the logger.

    Args:
        level: Log level override (defaults to LOG_LEVEL from settings)
    """
    global _configured
    if _configured:
        return logger

    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.log_level).upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
               "<cyan>{name}</cyan> - <level>{message}</level> | {extra}",
    )
    logger.info("Logging configured", app=settings.app_name, env=settings.app_env)

    _configured = True
    return logger
