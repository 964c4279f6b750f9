"""
Unit tests for table inventory listing and reconciliation.
"""

from unittest.mock import Mock

import pytest

from diffdb.compare.catalog import (
    EXCLUDED_SCHEMAS,
    TABLE_LIST_QUERY,
    list_tables,
    reconcile_inventories,
)
from diffdb.errors import CatalogQueryError, QueryError
from diffdb.models import TABLE_COUNT_SUBJECT, TableIdentity


def _inventory(*names):
    return tuple(sorted(TableIdentity.parse(n) for n in names))


class TestTableListQuery:
    """Test the catalog query text"""

    def test_excludes_system_schemas(self):
        """Every excluded schema appears in the NOT IN list"""
        for schema in EXCLUDED_SCHEMAS:
            assert f"'{schema}'" in TABLE_LIST_QUERY

    def test_lists_base_tables_only(self):
        assert "tb.table_type = 'BASE TABLE'" in TABLE_LIST_QUERY

    def test_orders_by_schema_and_name(self):
        assert TABLE_LIST_QUERY.strip().endswith("ORDER BY\n    tb.table_schema,\n    tb.table_name")


class TestListTables:
    """Test list_tables"""

    def test_returns_sorted_identities(self):
        """Rows are returned as TableIdentity sorted by (schema, name)"""
        conn = Mock()
        conn.name = "basedb"
        conn.query.return_value = [("sales", "orders"), ("public", "b"), ("public", "a")]

        inventory = list_tables(conn)

        assert inventory == (
            TableIdentity("public", "a"),
            TableIdentity("public", "b"),
            TableIdentity("sales", "orders"),
        )
        conn.query.assert_called_once_with(TABLE_LIST_QUERY)

    def test_empty_database(self):
        conn = Mock()
        conn.name = "empty"
        conn.query.return_value = []

        assert list_tables(conn) == ()

    def test_query_failure_raises_catalog_error(self):
        """A failed catalog query is fatal and names the database"""
        conn = Mock()
        conn.name = "basedb"
        conn.query.side_effect = QueryError("permission denied for schema sales")

        with pytest.raises(CatalogQueryError, match="Could not pull table list from basedb"):
            list_tables(conn)


class TestReconcileInventories:
    """Test reconcile_inventories"""

    def test_identical_inventories(self):
        """Identical inventories pair table by table"""
        base = _inventory("public.a", "public.b")
        test = _inventory("public.a", "public.b")

        tables, ok, mismatch = reconcile_inventories(base, test)

        assert ok is True
        assert mismatch is None
        assert tables == list(base)

    def test_count_mismatch(self):
        """Different table counts produce a single Table Count mismatch"""
        base = _inventory("public.a", "public.b", "public.c")
        test = _inventory("public.a", "public.b")

        tables, ok, mismatch = reconcile_inventories(base, test)

        assert ok is False
        assert mismatch.subject == TABLE_COUNT_SUBJECT
        assert mismatch.description == "Found 3 tables in basedb, 2 tables in testdb"

    def test_count_mismatch_in_positional_mode(self):
        """Positional pairing still requires equal counts"""
        base = _inventory("public.a")
        test = _inventory("public.a", "public.b")

        _, ok, mismatch = reconcile_inventories(base, test, pairing="positional")

        assert ok is False
        assert mismatch.description == "Found 1 tables in basedb, 2 tables in testdb"

    def test_strict_mode_rejects_different_names(self):
        """Same count but different names is an inventory mismatch"""
        base = _inventory("public.a", "public.b")
        test = _inventory("public.a", "public.c")

        _, ok, mismatch = reconcile_inventories(base, test, pairing="strict")

        assert ok is False
        assert mismatch.subject == TABLE_COUNT_SUBJECT
        assert "only in basedb: public.b" in mismatch.description
        assert "only in testdb: public.c" in mismatch.description

    def test_positional_mode_accepts_different_names(self, caplog):
        """Positional pairing pairs by sort position and warns"""
        base = _inventory("public.a", "public.b")
        test = _inventory("public.a", "public.c")

        with caplog.at_level("WARNING"):
            tables, ok, mismatch = reconcile_inventories(base, test, pairing="positional")

        assert ok is True
        assert mismatch is None
        assert tables == list(base)
        assert "Positional pairing" in caplog.text

    def test_empty_inventories_match(self):
        tables, ok, mismatch = reconcile_inventories((), ())

        assert ok is True
        assert tables == []
        assert mismatch is None

    def test_long_difference_lists_are_truncated(self):
        """Only the first few missing tables are named"""
        base = _inventory(*[f"public.b{i:02d}" for i in range(15)])
        test = _inventory(*[f"public.t{i:02d}" for i in range(15)])

        _, _, mismatch = reconcile_inventories(base, test)

        assert "(5 more)" in mismatch.description

    def test_unknown_pairing_mode(self):
        with pytest.raises(ValueError, match="Unknown pairing mode"):
            reconcile_inventories((), (), pairing="fuzzy")
