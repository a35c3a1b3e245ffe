"""Centralized logging configuration."""

import logging
import sys
from typing import Optional

# Client libraries that log every request at INFO/DEBUG
NOISY_LOGGERS = ("kubernetes", "urllib3", "httpx", "httpcore")


def setup_logging(
    level: str = "INFO", format_style: str = "standard", log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure logging for the controller.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format_style: 'standard' for dev, 'json' for in-cluster log shipping
        log_file: Optional file path to write logs

    Returns:
        Root logger
    """
    if format_style == "json":
        fmt = (
            '{"time": "%(asctime)s", "level": "%(levelname)s", '
            '"module": "%(name)s", "thread": "%(threadName)s", "message": "%(message)s"}'
        )
    else:
        fmt = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=fmt,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger()


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Usage:
        from core.utils.logging import get_logger
        logger = get_logger(__name__)
        logger.info("Secret refreshed")
    """
    return logging.getLogger(name)
