"""
Log formatters for structured and console logging.
"""

import json
import logging
import socket
import sys
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries; anything else came in through extra={...}
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Every object has level, logger, message and app; timestamp and host
    are optional. ``static_fields`` (the two database names of a run, for
    instance) are copied onto every line, and ``extra={...}`` values are
    grouped under ``context``.
    """

    def __init__(
        self,
        app_name: str = "diffdb",
        static_fields: dict[str, Any] | None = None,
        include_timestamp: bool = True,
        include_hostname: bool = True,
    ):
        super().__init__()
        self.app_name = app_name
        self.static_fields = dict(static_fields or {})
        self.include_timestamp = include_timestamp
        self.hostname = socket.gethostname() if include_hostname else None

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {}

        if self.include_timestamp:
            payload["timestamp"] = datetime.fromtimestamp(record.created, UTC).isoformat()

        payload.update(
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            app=self.app_name,
            source=f"{record.pathname}:{record.lineno}",
            function=record.funcName,
        )

        if self.hostname:
            payload["host"] = self.hostname

        payload.update(self.static_fields)

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        context = _extra_fields(record)
        if context:
            payload["context"] = context

        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    ``time [LEVEL] logger: message [key=value, ...]``

    The level is colored when stderr is a terminal.
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        original_levelname = record.levelname
        color = self.LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        if color:
            record.levelname = f"{color}{original_levelname}{self.RESET}"

        try:
            line = super().format(record)
        finally:
            record.levelname = original_levelname

        context = _extra_fields(record)
        if context:
            line += " [" + ", ".join(f"{k}={v}" for k, v in context.items()) + "]"
        return line
