"""
Unit tests for the row count strategy.
"""

from unittest.mock import Mock

import pytest

from diffdb.compare.counts import compare_by_row_count, get_row_count, row_count_query
from diffdb.errors import ExtractionError, QueryError
from diffdb.models import OutcomeStatus, TableIdentity


def _conn(name, count=None, error=None):
    conn = Mock()
    conn.name = name
    if error is not None:
        conn.query.side_effect = error
    else:
        conn.query.return_value = [(count,)]
    return conn


class TestRowCountQuery:
    """Test the count statement"""

    def test_quotes_table(self):
        assert row_count_query(TableIdentity("public", "a")) == 'SELECT count(*) FROM "public"."a"'

    def test_quotes_hostile_name(self):
        query = row_count_query(TableIdentity("public", 'a"; drop table x; --'))
        assert query == 'SELECT count(*) FROM "public"."a""; drop table x; --"'


class TestGetRowCount:
    """Test get_row_count"""

    def test_returns_count(self, table_a):
        assert get_row_count(_conn("basedb", 42), table_a, "basedb") == 42

    def test_query_error_becomes_extraction_error(self, table_a):
        """A failing count names the table and side"""
        conn = _conn("testdb", error=QueryError("external table"))

        with pytest.raises(ExtractionError) as exc_info:
            get_row_count(conn, table_a, "testdb")

        assert str(exc_info.value).startswith(
            "Unable to select rowcount of table public.a from testdb"
        )
        assert exc_info.value.side == "testdb"


class TestCompareByRowCount:
    """Test compare_by_row_count"""

    def test_equal_counts_match(self, table_a):
        outcome = compare_by_row_count(table_a, _conn("b", 10), _conn("t", 10))

        assert outcome.status is OutcomeStatus.MATCHED
        assert outcome.table == table_a

    def test_empty_tables_match(self, table_a):
        outcome = compare_by_row_count(table_a, _conn("b", 0), _conn("t", 0))
        assert outcome.status is OutcomeStatus.MATCHED

    def test_different_counts_mismatch(self, table_b):
        """The description carries both counts"""
        outcome = compare_by_row_count(table_b, _conn("b", 5), _conn("t", 4))

        assert outcome.status is OutcomeStatus.MISMATCH
        assert outcome.description == "Table public.b has 5 rows in basedb and 4 rows in testdb"

    def test_base_failure_skips_without_querying_test(self, table_a, caplog):
        """A base-side failure skips the table and logs a warning"""
        base = _conn("b", error=QueryError("cannot count external table"))
        test = _conn("t", 10)

        with caplog.at_level("WARNING"):
            outcome = compare_by_row_count(table_a, base, test)

        assert outcome.status is OutcomeStatus.SKIPPED
        assert "from basedb" in outcome.description
        assert "Unable to select rowcount of table public.a from basedb" in caplog.text
        test.query.assert_not_called()

    def test_test_failure_skips(self, table_a):
        base = _conn("b", 10)
        test = _conn("t", error=QueryError("canceling statement due to statement timeout"))

        outcome = compare_by_row_count(table_a, base, test)

        assert outcome.status is OutcomeStatus.SKIPPED
        assert "from testdb" in outcome.description
        assert "statement timeout" in outcome.description
