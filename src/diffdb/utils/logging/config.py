"""
Process-wide logging setup for diffdb.

The CLI configures logging once per invocation: console output on
stderr (stdout carries the report), optionally a rotating log file, and
either human-readable or JSON lines.
"""

import logging
import logging.handlers
import os
import sys
from typing import Any

from .formatters import ConsoleFormatter, JSONFormatter

_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = ("opentelemetry", "grpc", "urllib3")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes")


def _formatter(
    json_format: bool,
    app_name: str,
    static_fields: dict[str, Any] | None,
    console: bool,
) -> logging.Formatter:
    if json_format:
        return JSONFormatter(app_name=app_name, static_fields=static_fields)
    if console:
        return ConsoleFormatter(use_colors=True)
    return logging.Formatter(fmt=_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    app_name: str = "diffdb",
    static_fields: dict[str, Any] | None = None,
    max_bytes: int = 50 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """
    Configure the root logger

    Replaces any handlers already installed, so calling it twice is safe.

    Args:
        level: Log level name; unknown names fall back to INFO
        log_file: Rotating log file path, or None for no file output
        console_output: Log to stderr
        json_format: Emit JSON lines instead of plain text
        app_name: Value of the ``app`` field in JSON lines
        static_fields: Fields stamped on every JSON line (e.g. database names)
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handlers: list[logging.Handler] = []

    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)

    for handler in handlers:
        is_console = isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, logging.FileHandler
        )
        handler.setLevel(numeric_level)
        handler.setFormatter(_formatter(json_format, app_name, static_fields, is_console))
        root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging configured (level={logging.getLevelName(numeric_level)}, "
        f"file={log_file or '-'}, json={json_format})"
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def shutdown_logging() -> None:
    """Close the root handlers so the log file is released, then flush logging."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    logging.shutdown()


def configure_from_env() -> None:
    """
    Configure logging from LOG_LEVEL, LOG_FILE, LOG_JSON and LOG_CONSOLE

    Used when diffdb is embedded in another program instead of run through
    the CLI.
    """
    setup_logging(
        level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE") or None,
        console_output=_env_flag("LOG_CONSOLE", True),
        json_format=_env_flag("LOG_JSON", False),
    )
