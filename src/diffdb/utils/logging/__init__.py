"""
Logging configuration for diffdb

Provides console and JSON-formatted logging with contextual fields.

Usage:
    from diffdb.utils.logging import setup_logging, get_logger

    setup_logging(level="INFO", json_format=False)
    logger = get_logger(__name__)

    logger.warning("Table skipped", extra={"table_name": "public.events"})
"""

from .config import configure_from_env, get_logger, setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_from_env",
    "shutdown_logging",
    "JSONFormatter",
    "ConsoleFormatter",
]
