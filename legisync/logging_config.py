"""
Logging setup for scripts and the scheduler process.

Usage:
    from legisync.logging_config import setup_logging

    setup_logging()  # Call once at startup
"""
import logging
from typing import Optional

from legisync.config.settings import settings


def setup_logging(level: Optional[str] = None, verbose: bool = False) -> None:
    """
    Configure root logging from settings.

    Args:
        level: Override for settings.LOG_LEVEL
        verbose: Force DEBUG level
    """
    log_level = logging.DEBUG if verbose else (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=log_level, format=settings.LOG_FORMAT)

    # httpx logs full request URLs at INFO, which include the api_key param
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
