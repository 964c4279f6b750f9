"""
Prometheus exposition endpoint for a running comparison.

Long dump runs can take hours; scraping the process while it runs shows
progress through diffdb_tables_compared_total.
"""

import errno
import logging

from prometheus_client import REGISTRY, CollectorRegistry, start_http_server

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """Serves a registry on http://<addr>:<port>/metrics from a daemon thread."""

    def __init__(
        self,
        port: int = 9091,
        registry: CollectorRegistry | None = None,
        addr: str = "0.0.0.0",
    ):
        self.port = port
        self.addr = addr
        self.registry = registry or REGISTRY
        self._started = False

    def start(self) -> None:
        """
        Start serving; a second call is a no-op.

        Raises:
            RuntimeError: If the port is already taken
        """
        if self._started:
            logger.debug(f"Metrics endpoint already serving on port {self.port}")
            return

        try:
            start_http_server(self.port, addr=self.addr, registry=self.registry)
        except OSError as e:
            if e.errno == errno.EADDRINUSE:
                raise RuntimeError(
                    f"Cannot expose metrics: port {self.port} is already in use"
                ) from e
            raise

        self._started = True
        logger.info(f"Serving metrics on {self.addr}:{self.port}/metrics")

    def is_started(self) -> bool:
        return self._started
