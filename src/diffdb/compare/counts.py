"""
Row count comparison strategy.

The fast path: one server-side aggregate per side. Equal counts do not
prove equal contents; use the dump strategy when that matters.
"""

import logging

from diffdb.errors import ExtractionError, QueryError
from diffdb.models import StrategyOutcome, TableIdentity
from diffdb.utils.db_pool import DatabaseConnection
from diffdb.utils.tracing import add_span_attributes, trace_operation

from .quoting import quote_table

logger = logging.getLogger(__name__)


def row_count_query(table: TableIdentity) -> str:
    return f"SELECT count(*) FROM {quote_table(table)}"


def get_row_count(connection: DatabaseConnection, table: TableIdentity, side: str) -> int:
    """
    Count the rows of a table on one side.

    Raises:
        ExtractionError: If the count query fails
    """
    try:
        rows = connection.query(row_count_query(table))
    except QueryError as e:
        raise ExtractionError(
            f"Unable to select rowcount of table {table} from {side}: {e}", side
        ) from e
    return int(rows[0][0])


def compare_by_row_count(
    table: TableIdentity,
    base_conn: DatabaseConnection,
    test_conn: DatabaseConnection,
) -> StrategyOutcome:
    """
    Compare a table's row count in both databases.

    Args:
        table: Table to compare
        base_conn: Base database handle
        test_conn: Test database handle

    Returns:
        MATCHED, MISMATCH (description carries both counts) or SKIPPED
        when either side cannot be counted (typically external tables)
    """
    with trace_operation("compare_row_count", table=table.qualified_name):
        try:
            base_count = get_row_count(base_conn, table, "basedb")
            test_count = get_row_count(test_conn, table, "testdb")
        except ExtractionError as e:
            logger.warning(str(e), extra={"table_name": table.qualified_name})
            return StrategyOutcome.skipped(table, str(e))

        add_span_attributes(base_count=base_count, test_count=test_count)

    if base_count != test_count:
        return StrategyOutcome.mismatch(
            table,
            f"Table {table} has {base_count} rows in basedb and {test_count} rows in testdb",
        )

    logger.debug(f"Table {table} matched with {base_count} rows")
    return StrategyOutcome.matched(table)
