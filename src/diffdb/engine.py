"""
Comparison engine.

Drives one run end to end: reconcile the two table inventories, run the
selected strategy for every paired table, and collect the verdicts into
a RunResult. All run state lives on the RunContext passed in; nothing is
kept at module level.

States: Reconciling -> (Failed | PerTableScan) -> (StoppedEarly | Completed)
"""

import hashlib
import logging
import os
import re
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum

from diffdb.compare import (
    DumpOptions,
    compare_by_content_dump,
    compare_by_row_count,
    list_tables,
    reconcile_inventories,
)
from diffdb.compare.catalog import PairingMode
from diffdb.models import (
    MismatchRecord,
    OutcomeStatus,
    RunCounters,
    RunResult,
    SkippedTable,
    StrategyOutcome,
    TableIdentity,
)
from diffdb.scratch import cleanup_working_dir
from diffdb.utils.db_pool import DatabaseConnection
from diffdb.utils.metrics import DiffMetrics
from diffdb.utils.tracing import add_span_attributes, trace_operation

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    """Per-table equivalence check."""

    ROW_COUNT = "rowcount"
    CONTENT_DUMP = "dump"


@dataclass
class RunContext:
    """
    Everything a single run needs and accumulates.

    Connections are held for the whole run. The scratch directory is
    owned exclusively by the run and only used by the dump strategy.
    """

    base_conn: DatabaseConnection
    test_conn: DatabaseConnection
    scratch_dir: str | None = None
    pairing: PairingMode = "strict"
    dump_options: DumpOptions = field(default_factory=DumpOptions)
    workers: int = 1
    metrics: DiffMetrics | None = None
    counters: RunCounters = field(default_factory=RunCounters)


_UNSAFE_PATH_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def table_scratch_dir(scratch_dir: str, table: TableIdentity) -> str:
    """
    Per-table scratch path used when tables are compared concurrently.

    The readable prefix is sanitized; the hash keeps names that sanitize
    to the same prefix apart.
    """
    digest = hashlib.sha1(f"{table.schema}\x00{table.name}".encode("utf-8")).hexdigest()[:12]
    prefix = _UNSAFE_PATH_CHARS.sub("_", table.qualified_name)[:64]
    return os.path.join(scratch_dir, f"{prefix}-{digest}")


def compare_table(
    context: RunContext,
    strategy: Strategy,
    table: TableIdentity,
    scratch_dir: str | None = None,
) -> StrategyOutcome:
    """
    Run one strategy against one table.

    Args:
        context: Run context
        strategy: Strategy to apply
        table: Table to compare
        scratch_dir: Scratch path for the dump strategy (defaults to the run's)

    Returns:
        The strategy's outcome
    """
    with trace_operation("compare_table", table=table.qualified_name, strategy=strategy.value) as span:
        if strategy is Strategy.ROW_COUNT:
            outcome = compare_by_row_count(table, context.base_conn, context.test_conn)
        elif strategy is Strategy.CONTENT_DUMP:
            scratch_dir = scratch_dir or context.scratch_dir
            if not scratch_dir:
                raise ValueError("The dump strategy requires a scratch directory")
            outcome = compare_by_content_dump(
                table,
                context.base_conn,
                context.test_conn,
                scratch_dir,
                context.dump_options,
            )
        else:
            raise ValueError(f"Unknown strategy: {strategy}")

        span.set_attribute("outcome", outcome.status.value)

    return outcome


def _record_outcome(
    context: RunContext,
    strategy: Strategy,
    outcome: StrategyOutcome,
    duration: float,
) -> None:
    """Count one verdict toward the result, and toward metrics when configured."""
    counters = context.counters
    table = outcome.table.qualified_name

    if outcome.status is OutcomeStatus.MATCHED:
        counters.matched += 1
        logger.info(f"Table {table}: MATCH")
    elif outcome.status is OutcomeStatus.MISMATCH:
        counters.mismatches.append(MismatchRecord(table, outcome.description))
        logger.info(f"Table {table}: MISMATCH ({outcome.description})")
    else:
        counters.skipped.append(SkippedTable(table, outcome.description))

    if context.metrics is not None:
        context.metrics.record_table_outcome(strategy.value, outcome, duration)


def _scan_sequential(
    context: RunContext,
    strategy: Strategy,
    tables: list[TableIdentity],
    fail_fast: bool,
) -> bool:
    """Compare tables one at a time; returns True if stopped early."""
    for table in tables:
        start = time.monotonic()
        outcome = compare_table(context, strategy, table)
        _record_outcome(context, strategy, outcome, time.monotonic() - start)

        if fail_fast and outcome.status is OutcomeStatus.MISMATCH:
            return True

    return False


def _compare_isolated(
    context: RunContext,
    strategy: Strategy,
    table: TableIdentity,
) -> tuple[StrategyOutcome, float]:
    """Compare one table on a worker thread; returns the outcome and its duration."""
    start = time.monotonic()
    if strategy is not Strategy.CONTENT_DUMP:
        return compare_table(context, strategy, table), time.monotonic() - start

    table_dir = table_scratch_dir(context.scratch_dir, table)
    try:
        return compare_table(context, strategy, table, table_dir), time.monotonic() - start
    finally:
        cleanup_working_dir(table_dir)


def _scan_parallel(
    context: RunContext,
    strategy: Strategy,
    tables: list[TableIdentity],
    fail_fast: bool,
) -> bool:
    """
    Compare tables on a bounded thread pool.

    Outcomes are collected first and recorded in catalog order afterwards,
    so the result is the same as a sequential scan would produce.
    """
    if strategy is Strategy.CONTENT_DUMP and not context.scratch_dir:
        raise ValueError("The dump strategy requires a scratch directory")

    outcomes: list[tuple[StrategyOutcome, float] | None] = [None] * len(tables)

    with ThreadPoolExecutor(max_workers=context.workers, thread_name_prefix="diffdb") as executor:
        futures: dict[Future, int] = {
            executor.submit(_compare_isolated, context, strategy, table): index
            for index, table in enumerate(tables)
        }

        try:
            for future in as_completed(futures):
                if future.cancelled():
                    continue

                outcome, duration = future.result()
                outcomes[futures[future]] = (outcome, duration)

                if fail_fast and outcome.status is OutcomeStatus.MISMATCH:
                    for pending in futures:
                        pending.cancel()
        except BaseException:
            for pending in futures:
                pending.cancel()
            raise

    for collected in outcomes:
        if collected is None:
            # Only tables after a fail-fast mismatch are ever cancelled
            return True

        outcome, duration = collected
        _record_outcome(context, strategy, outcome, duration)

        if fail_fast and outcome.status is OutcomeStatus.MISMATCH:
            return True

    return False


def run_comparison(
    context: RunContext,
    strategy: Strategy = Strategy.ROW_COUNT,
    fail_fast: bool = False,
) -> RunResult:
    """
    Compare the data of the base and test databases.

    Args:
        context: Connections, scratch directory and run options
        strategy: Per-table check to apply
        fail_fast: Stop at the first table mismatch

    Returns:
        RunResult; overall_match is True when no mismatch was recorded
        (skipped tables do not fail a run)

    Raises:
        CatalogQueryError: If either table list cannot be read
        FilesystemError: If the scratch directory or an artifact is unusable
    """
    start = time.monotonic()

    with trace_operation(
        "compare_databases",
        base_db=context.base_conn.name,
        test_db=context.test_conn.name,
        strategy=strategy.value,
        fail_fast=fail_fast,
    ):
        base_inventory = list_tables(context.base_conn)
        test_inventory = list_tables(context.test_conn)

        tables, reconciled, inventory_mismatch = reconcile_inventories(
            base_inventory, test_inventory, context.pairing
        )

        if not reconciled:
            logger.info(f"Table lists differ: {inventory_mismatch.description}")
            result = RunResult(
                overall_match=False,
                matched_table_count=0,
                total_table_count=len(base_inventory),
                mismatches=(inventory_mismatch,),
            )
        else:
            logger.info(
                f"Comparing {len(tables)} tables using {strategy.value} strategy"
                + (f" with {context.workers} workers" if context.workers > 1 else "")
            )

            if context.workers > 1 and len(tables) > 1:
                stopped_early = _scan_parallel(context, strategy, tables, fail_fast)
            else:
                stopped_early = _scan_sequential(context, strategy, tables, fail_fast)

            counters = context.counters
            result = RunResult(
                overall_match=not counters.mismatches,
                matched_table_count=counters.matched,
                total_table_count=len(tables),
                mismatches=tuple(counters.mismatches),
                skipped=tuple(counters.skipped),
                stopped_early=stopped_early,
            )

            if stopped_early:
                logger.info("Stopping after first mismatch (fail-fast)")

        add_span_attributes(
            overall_match=result.overall_match,
            matched=result.matched_table_count,
            total=result.total_table_count,
        )

    if context.metrics is not None:
        context.metrics.record_run(result, time.monotonic() - start)

    return result
