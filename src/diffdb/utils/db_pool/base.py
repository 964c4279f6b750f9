"""
Thread-safe connection pool shared by the comparison workers.

Each database gets one pool. Connections are pinged before being handed
out and recycled once they pass ``max_lifetime``.
"""

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from queue import Empty, Queue
from typing import Any

from opentelemetry import trace
from prometheus_client import Counter, Gauge, Histogram

from diffdb.utils.tracing import trace_operation

logger = logging.getLogger(__name__)


POOL_CONNECTIONS = Gauge(
    "diffdb_pool_connections",
    "Pooled connections by state",
    ["pool_name", "state"],
)

POOL_FAILURES = Counter(
    "diffdb_pool_failures_total",
    "Connections the pool failed to open",
    ["pool_name", "stage"],
)

POOL_WAIT_SECONDS = Histogram(
    "diffdb_pool_wait_seconds",
    "Time spent waiting for a pooled connection",
    ["pool_name"],
    buckets=[0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0],
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class PooledConnection:
    connection: Any
    created_at: datetime
    last_used: datetime
    use_count: int = 0

    def mark_used(self) -> None:
        self.last_used = _utcnow()
        self.use_count += 1

    def expired(self, max_lifetime: timedelta) -> bool:
        return _utcnow() - self.created_at > max_lifetime


class ConnectionPoolError(Exception):
    """The pool could not provide a connection."""


class PoolExhaustedError(ConnectionPoolError):
    """Every connection stayed busy for the whole acquire timeout."""


class PoolClosedError(ConnectionPoolError):
    """The pool was used after close()."""


class BaseConnectionPool:
    """
    Fixed-ceiling pool of driver connections.

    ``min_size`` connections are opened eagerly; if any of them fails the
    pool is torn down and ConnectionPoolError is raised, so a run never
    starts with fewer connections than it asked for. Beyond that the pool
    grows on demand up to ``max_size``.

    Subclasses supply ``_create_connection``, ``_is_connection_healthy``
    and ``_close_connection``.
    """

    def __init__(
        self,
        min_size: int = 2,
        max_size: int = 10,
        max_lifetime: int = 3600,
        acquire_timeout: float = 30.0,
        pool_name: str = "default",
    ):
        if min_size < 1:
            raise ValueError(f"min_size must be >= 1, got {min_size}")
        if max_size < min_size:
            raise ValueError(f"max_size ({max_size}) must be >= min_size ({min_size})")

        self.min_size = min_size
        self.max_size = max_size
        self.max_lifetime = timedelta(seconds=max_lifetime)
        self.acquire_timeout = acquire_timeout
        self.pool_name = pool_name

        self._idle: Queue[PooledConnection] = Queue(maxsize=max_size)
        self._connections: list[PooledConnection] = []
        self._lock = threading.RLock()
        self._closed = False

        self._open_initial()
        logger.info(
            f"Opened pool '{pool_name}' with {min_size} connection(s), max {max_size}"
        )

    def _create_connection(self) -> Any:
        raise NotImplementedError

    def _is_connection_healthy(self, conn: Any) -> bool:
        raise NotImplementedError

    def _close_connection(self, conn: Any) -> None:
        raise NotImplementedError

    def _open_initial(self) -> None:
        with self._lock:
            try:
                for _ in range(self.min_size):
                    self._idle.put(self._open())
            except Exception as e:
                POOL_FAILURES.labels(pool_name=self.pool_name, stage="startup").inc()
                self.close()
                raise ConnectionPoolError(
                    f"Could not open {self.min_size} connection(s) for pool "
                    f"'{self.pool_name}': {e}"
                ) from e
            self._publish_gauges()

    def _open(self) -> PooledConnection:
        now = _utcnow()
        pooled = PooledConnection(self._create_connection(), created_at=now, last_used=now)
        self._connections.append(pooled)
        return pooled

    def _discard(self, pooled: PooledConnection) -> None:
        try:
            self._close_connection(pooled.connection)
        except Exception as e:
            logger.warning(f"Error closing connection in pool '{self.pool_name}': {e}")
        finally:
            with self._lock:
                if pooled in self._connections:
                    self._connections.remove(pooled)

    def _usable(self, pooled: PooledConnection) -> bool:
        if pooled.expired(self.max_lifetime):
            logger.debug(f"Connection in pool '{self.pool_name}' reached max lifetime")
            return False
        return self._is_connection_healthy(pooled.connection)

    def _publish_gauges(self) -> None:
        with self._lock:
            idle = self._idle.qsize()
            in_use = len(self._connections) - idle
        POOL_CONNECTIONS.labels(pool_name=self.pool_name, state="idle").set(idle)
        POOL_CONNECTIONS.labels(pool_name=self.pool_name, state="in_use").set(in_use)

    def _next_candidate(self, deadline: float) -> PooledConnection:
        """An idle connection if there is one, else a new one, else wait."""
        try:
            return self._idle.get_nowait()
        except Empty:
            pass

        with self._lock:
            if len(self._connections) < self.max_size:
                try:
                    return self._open()
                except Exception as e:
                    POOL_FAILURES.labels(pool_name=self.pool_name, stage="grow").inc()
                    raise ConnectionPoolError(f"Failed to create new connection: {e}") from e

        try:
            return self._idle.get(timeout=max(deadline - time.monotonic(), 0))
        except Empty:
            raise PoolExhaustedError(
                f"No connection available in pool '{self.pool_name}' "
                f"within {self.acquire_timeout}s"
            ) from None

    def _checkout(self) -> PooledConnection:
        deadline = time.monotonic() + self.acquire_timeout
        while True:
            candidate = self._next_candidate(deadline)
            if self._usable(candidate):
                return candidate
            logger.info(f"Replacing stale connection in pool '{self.pool_name}'")
            self._discard(candidate)

    @contextmanager
    def acquire(self) -> Iterator[Any]:
        """
        Borrow a connection for the duration of the ``with`` block.

        Raises:
            PoolClosedError: If the pool is closed
            PoolExhaustedError: If nothing frees up within acquire_timeout
        """
        if self._closed:
            raise PoolClosedError(f"Pool '{self.pool_name}' is closed")

        started = time.monotonic()
        with trace_operation("db_pool_acquire", kind=trace.SpanKind.CLIENT, pool_name=self.pool_name):
            pooled = self._checkout()
        POOL_WAIT_SECONDS.labels(pool_name=self.pool_name).observe(time.monotonic() - started)

        pooled.mark_used()
        self._publish_gauges()
        try:
            yield pooled.connection
        finally:
            if self._closed:
                self._discard(pooled)
            else:
                self._idle.put(pooled)
                self._publish_gauges()

    def close(self) -> None:
        """Close every connection; later acquire() calls fail."""
        if self._closed:
            return
        self._closed = True

        with self._lock:
            for pooled in self._connections:
                try:
                    self._close_connection(pooled.connection)
                except Exception as e:
                    logger.warning(f"Error closing connection in pool '{self.pool_name}': {e}")
            self._connections.clear()
            while not self._idle.empty():
                self._idle.get_nowait()

        self._publish_gauges()
        logger.debug(f"Pool '{self.pool_name}' closed")

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            total = len(self._connections)
            idle = self._idle.qsize()
        return {
            "pool_name": self.pool_name,
            "total_connections": total,
            "idle_connections": idle,
            "active_connections": total - idle,
            "min_size": self.min_size,
            "max_size": self.max_size,
            "closed": self._closed,
        }
