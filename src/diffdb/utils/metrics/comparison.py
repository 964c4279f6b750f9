"""
Metrics for comparison runs.

Tracks runs, per-table outcomes and timings so regression checks
scheduled from CI can be alerted on.
"""

import logging
import time
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)

from diffdb.models import OutcomeStatus, RunResult, StrategyOutcome

logger = logging.getLogger(__name__)


class DiffMetrics:
    """
    Metrics for comparison runs

    One instance per registry; pass a fresh CollectorRegistry in tests.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY

        self.runs_total = Counter(
            "diffdb_runs_total",
            "Total number of comparison runs",
            ["status"],
            registry=self.registry,
        )

        self.run_duration_seconds = Histogram(
            "diffdb_run_duration_seconds",
            "Duration of comparison runs in seconds",
            buckets=(1, 5, 10, 30, 60, 120, 300, 600, 1800, 3600, 7200),
            registry=self.registry,
        )

        self.last_run_timestamp = Gauge(
            "diffdb_last_run_timestamp",
            "Timestamp of the last completed comparison run",
            registry=self.registry,
        )

        self.tables_compared_total = Counter(
            "diffdb_tables_compared_total",
            "Tables compared, by strategy and outcome",
            ["strategy", "outcome"],
            registry=self.registry,
        )

        self.table_duration_seconds = Histogram(
            "diffdb_table_duration_seconds",
            "Time to extract and compare a single table",
            ["strategy"],
            buckets=(0.01, 0.1, 0.5, 1, 5, 10, 30, 60, 300, 600),
            registry=self.registry,
        )

        self.table_mismatch_total = Counter(
            "diffdb_table_mismatch_total",
            "Mismatches detected per table",
            ["table_name"],
            registry=self.registry,
        )

    def record_table_outcome(
        self,
        strategy: str,
        outcome: StrategyOutcome,
        duration: float,
    ) -> None:
        """
        Record the verdict for one table

        Args:
            strategy: Strategy name (rowcount or dump)
            outcome: Outcome returned by the strategy
            duration: Seconds spent on the table
        """
        self.tables_compared_total.labels(
            strategy=strategy,
            outcome=outcome.status.value.lower(),
        ).inc()

        self.table_duration_seconds.labels(strategy=strategy).observe(duration)

        if outcome.status is OutcomeStatus.MISMATCH:
            self.table_mismatch_total.labels(
                table_name=outcome.table.qualified_name,
            ).inc()

    def record_run(self, result: RunResult, duration: float) -> None:
        """
        Record a finished run

        Args:
            result: The run's result
            duration: Duration in seconds
        """
        status = "match" if result.overall_match else "mismatch"

        self.runs_total.labels(status=status).inc()
        self.run_duration_seconds.observe(duration)
        self.last_run_timestamp.set(time.time())

        logger.debug(
            f"Recorded comparison run: status={status}, duration={duration:.2f}s, "
            f"matched={result.matched_table_count}/{result.total_table_count}"
        )
