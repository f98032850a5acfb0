"""Logging setup shared by the command line entry point."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%H:%M:%S"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure root logging and return the application logger."""
    if level is None:
        from .config import get_config
        level = get_config().log_level

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("runway")
