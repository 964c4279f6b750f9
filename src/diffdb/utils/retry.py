"""
Exponential backoff for transient database failures.

A comparison opens its connections once up front, so a database that is
restarting or briefly refusing connections should not fail the whole run.
Anything that does not look transient is raised on the first attempt.

Usage:
    from diffdb.utils.retry import retry_database_operation

    @retry_database_operation(max_retries=3, base_delay=1.0)
    def open_connection():
        return psycopg2.connect(dsn)
"""

import logging
import random
import time
from functools import wraps
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

TRANSIENT_MESSAGES = (
    "could not connect",
    "connection refused",
    "connection reset",
    "connection timed out",
    "timeout expired",
    "server closed the connection",
    "the database system is starting up",
    "the database system is shutting down",
    "too many connections",
    "broken pipe",
    "network error",
)

TRANSIENT_TYPE_NAMES = frozenset({
    "connectionerror",
    "timeouterror",
    "operationalerror",
    "interfaceerror",
})

PERMANENT_MESSAGES = (
    "canceling statement due to statement timeout",
    "no password supplied",
    "does not exist",
    "no pg_hba.conf entry",
    "permission denied",
    "authentication failed",
)


def is_retryable_db_exception(exception: Exception) -> bool:
    """True when the error looks like a connection-level hiccup."""
    text = str(exception).lower()
    # psycopg2 raises these as OperationalError too, but retrying cannot help
    if any(fragment in text for fragment in PERMANENT_MESSAGES):
        return False
    return (
        any(fragment in text for fragment in TRANSIENT_MESSAGES)
        or type(exception).__name__.lower() in TRANSIENT_TYPE_NAMES
    )


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retry number ``attempt + 1``: doubling, capped, +/-25% jitter."""
    delay = min(base_delay * 2 ** attempt, max_delay)
    spread = delay / 4
    return max(0.1, delay + random.uniform(-spread, spread))


def retry_database_operation(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None
):
    """
    Retry the decorated callable on transient database errors.

    Args:
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry, in seconds
        max_delay: Cap on any single delay, in seconds
        on_retry: Called as on_retry(retry_number, exception, delay) before sleeping
    """
    def decorator(func: Callable) -> Callable:
        name = getattr(func, "__name__", repr(func))

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable_db_exception(e):
                        raise
                    if attempt >= max_retries:
                        logger.error(f"{name} still failing after {max_retries} retries: {e}")
                        raise

                    delay = backoff_delay(attempt, base_delay, max_delay)
                    attempt += 1
                    logger.warning(
                        f"{name} failed ({type(e).__name__}: {e}); "
                        f"retry {attempt}/{max_retries} in {delay:.2f}s"
                    )
                    if on_retry:
                        on_retry(attempt, e, delay)
                    time.sleep(delay)

        return wrapper
    return decorator
