"""
Logging configuration for the storefront.

One package logger ("storefront") writing to stdout; modules log through
get_logger("<area>.<module>"). The level comes from STOREFRONT_LOG_LEVEL or
LOG_LEVEL, and the API server re-applies the configured level at startup.
"""
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL = (os.getenv("STOREFRONT_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").upper()
logger = logging.getLogger("storefront")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

# No propagation to the root logger
logger.propagate = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Dotted area under 'storefront', e.g. "cart.pricing"

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"storefront.{name}")
    return logger


def configure_logging(level: Optional[str] = None) -> None:
    """Set the storefront logger and its handlers to `level` (environment wins over config)."""
    level = (os.getenv("STOREFRONT_LOG_LEVEL") or level or LOG_LEVEL).upper()
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
