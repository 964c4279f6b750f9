"""
Pytest configuration and fixtures for diffdb tests.
Provides in-memory stand-ins for database connections.
"""

from unittest.mock import MagicMock

import pytest

from diffdb.errors import QueryError
from diffdb.models import TableIdentity
from diffdb.utils.db_pool import DatabaseConnection


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: needs two live PostgreSQL/Greenplum databases")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def make_connection(name: str, tables=(), row_counts=None, failing=()):
    """
    Build a mock DatabaseConnection.

    Args:
        name: Database name
        tables: Iterable of "schema.table" strings returned by the catalog query
        row_counts: Mapping of "schema.table" to count(*) result
        failing: Tables whose count query raises QueryError
    """
    row_counts = row_counts or {}
    identities = [TableIdentity.parse(t) for t in tables]
    failing_tables = {TableIdentity.parse(t) for t in failing}

    def query(sql, params=None):
        if "information_schema.tables" in sql:
            return [(t.schema, t.name) for t in identities]

        for table in identities:
            if f'"{table.schema}"."{table.name}"' in sql:
                if table in failing_tables:
                    raise QueryError(f'relation "{table}" is an external table', sql)
                return [(row_counts.get(table.qualified_name, 0),)]

        raise QueryError("relation does not exist", sql)

    conn = MagicMock(spec=DatabaseConnection)
    conn.name = name
    conn.__enter__.return_value = conn
    conn.__exit__.return_value = False
    conn.query.side_effect = query
    return conn


@pytest.fixture
def connection_factory():
    """Factory for mock DatabaseConnection objects."""
    return make_connection


@pytest.fixture
def table_a() -> TableIdentity:
    return TableIdentity("public", "a")


@pytest.fixture
def table_b() -> TableIdentity:
    return TableIdentity("public", "b")
