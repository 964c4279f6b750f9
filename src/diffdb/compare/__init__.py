"""
Catalog reconciliation and per-table comparison strategies.

- catalog: list user tables and check the two inventories agree
- counts: row count strategy (fast, count-only)
- dump: full-content strategy (server-side export, byte comparison)
- quoting: identifier and literal quoting for generated SQL
"""

from .catalog import (
    EXCLUDED_SCHEMAS,
    TABLE_LIST_QUERY,
    list_tables,
    reconcile_inventories,
)
from .counts import compare_by_row_count, get_row_count, row_count_query
from .dump import (
    BASE_ARTIFACT,
    DEFAULT_COMPRESSOR,
    TEST_ARTIFACT,
    DumpOptions,
    artifact_size,
    compare_by_content_dump,
    export_statement,
    files_identical,
)
from .quoting import quote_identifier, quote_literal, quote_table

__all__ = [
    'EXCLUDED_SCHEMAS',
    'TABLE_LIST_QUERY',
    'list_tables',
    'reconcile_inventories',
    'compare_by_row_count',
    'get_row_count',
    'row_count_query',
    'BASE_ARTIFACT',
    'TEST_ARTIFACT',
    'DEFAULT_COMPRESSOR',
    'DumpOptions',
    'artifact_size',
    'compare_by_content_dump',
    'export_statement',
    'files_identical',
    'quote_identifier',
    'quote_literal',
    'quote_table',
]
