"""
Table inventory extraction and reconciliation.

Both databases are listed with the same catalog query; per-table
comparison only starts once the two inventories agree.
"""

import logging
from typing import Literal

from diffdb.errors import CatalogQueryError, QueryError
from diffdb.models import TABLE_COUNT_SUBJECT, MismatchRecord, TableIdentity, TableInventory
from diffdb.utils.db_pool import DatabaseConnection
from diffdb.utils.tracing import add_span_attributes, trace_operation

logger = logging.getLogger(__name__)

# System, toolkit, toast and append-optimized segment schemas never hold user data
EXCLUDED_SCHEMAS = ("pg_catalog", "gp_toolkit", "information_schema", "pg_toast", "pg_aoseg")

TABLE_LIST_QUERY = """
SELECT
    tb.table_schema,
    tb.table_name
FROM
    information_schema.tables tb
WHERE
    tb.table_schema NOT IN ('pg_catalog', 'gp_toolkit', 'information_schema', 'pg_toast', 'pg_aoseg')
    AND tb.table_type = 'BASE TABLE'
ORDER BY
    tb.table_schema,
    tb.table_name
"""

PairingMode = Literal["strict", "positional"]


def list_tables(connection: DatabaseConnection) -> TableInventory:
    """
    List all user base tables of a database.

    Args:
        connection: Connected database handle

    Returns:
        Inventory sorted by (schema, name)

    Raises:
        CatalogQueryError: If the catalog query fails
    """
    with trace_operation("list_tables", database=connection.name):
        try:
            rows = connection.query(TABLE_LIST_QUERY)
        except QueryError as e:
            raise CatalogQueryError(
                f"Could not pull table list from {connection.name}: {e}"
            ) from e

        # Server collation decides ORDER BY; sort again so pairing is
        # independent of the two servers' locale settings.
        inventory = tuple(sorted(TableIdentity(schema, name) for schema, name in rows))
        add_span_attributes(table_count=len(inventory))

    logger.info(f"Found {len(inventory)} tables in {connection.name}")
    return inventory


def _describe_missing(missing: list[TableIdentity], limit: int = 10) -> str:
    names = [t.qualified_name for t in missing[:limit]]
    if len(missing) > limit:
        names.append(f"... ({len(missing) - limit} more)")
    return ", ".join(names)


def reconcile_inventories(
    base_inventory: TableInventory,
    test_inventory: TableInventory,
    pairing: PairingMode = "strict",
) -> tuple[list[TableIdentity], bool, MismatchRecord | None]:
    """
    Check that two inventories can be compared table by table.

    Args:
        base_inventory: Tables of the base database
        test_inventory: Tables of the test database
        pairing: "strict" requires identical table sets; "positional" only
                 checks the count and pairs tables by sort position

    Returns:
        Tuple of (paired table list, ok flag, mismatch record or None)
    """
    if pairing not in ("strict", "positional"):
        raise ValueError(f"Unknown pairing mode: {pairing}")

    if len(base_inventory) != len(test_inventory):
        mismatch = MismatchRecord(
            TABLE_COUNT_SUBJECT,
            f"Found {len(base_inventory)} tables in basedb, "
            f"{len(test_inventory)} tables in testdb",
        )
        return list(base_inventory), False, mismatch

    if pairing == "strict":
        base_set = set(base_inventory)
        test_set = set(test_inventory)
        if base_set != test_set:
            only_base = sorted(base_set - test_set)
            only_test = sorted(test_set - base_set)
            mismatch = MismatchRecord(
                TABLE_COUNT_SUBJECT,
                f"Found {len(base_inventory)} tables in both databases but the table lists differ; "
                f"only in basedb: {_describe_missing(only_base)}; "
                f"only in testdb: {_describe_missing(only_test)}",
            )
            return list(base_inventory), False, mismatch
    else:
        renamed = sum(1 for b, t in zip(base_inventory, test_inventory) if b != t)
        if renamed:
            logger.warning(
                f"Positional pairing: {renamed} table(s) have different names in "
                f"basedb and testdb; comparing by position anyway"
            )

    return list(base_inventory), True, None
