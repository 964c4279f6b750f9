"""
Property-based tests for the comparison engine using Hypothesis.

Tests invariants that should hold for all table populations:
- Every paired table ends up in exactly one bucket on a full scan
- Fail-fast records a prefix of the full scan
- Parallel scans agree with sequential ones
- Inventories of different sizes never reach per-table comparison
- Identifier quoting round-trips through normalization
"""

from unittest.mock import MagicMock, patch

from hypothesis import assume, given, settings, strategies as st

from diffdb.compare.catalog import reconcile_inventories
from diffdb.compare.quoting import quote_identifier
from diffdb.engine import RunContext, run_comparison
from diffdb.errors import QueryError
from diffdb.models import TABLE_COUNT_SUBJECT, TableIdentity, normalize_identifier
from diffdb.utils.db_pool import DatabaseConnection

# (base count, test count, count query fails on base)
table_states = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=1000),
        st.integers(min_value=0, max_value=1000),
        st.booleans(),
    ),
    max_size=12,
)


def _connection(name, counts, failing=frozenset()):
    tables = [TableIdentity("public", f"t{i:02d}") for i in range(len(counts))]

    def query(sql, params=None):
        if "information_schema.tables" in sql:
            return [(t.schema, t.name) for t in tables]
        for i, table in enumerate(tables):
            if f'"{table.name}"' in sql:
                if i in failing:
                    raise QueryError("external table", sql)
                return [(counts[i],)]
        raise QueryError("relation does not exist", sql)

    conn = MagicMock(spec=DatabaseConnection)
    conn.name = name
    conn.query.side_effect = query
    return conn


def _connections(states):
    failing = frozenset(i for i, (_, _, fails) in enumerate(states) if fails)
    base = _connection("basedb", [b for b, _, _ in states], failing)
    test = _connection("testdb", [t for _, t, _ in states])
    return base, test


@settings(max_examples=60, deadline=None)
@given(states=table_states)
def test_full_scan_accounts_for_every_table(states):
    """matched + mismatched + skipped == total, and the verdict follows the mismatches"""
    base, test = _connections(states)

    result = run_comparison(RunContext(base, test))

    assert result.total_table_count == len(states)
    assert (
        result.matched_table_count + result.mismatch_count + result.skip_count
        == result.total_table_count
    )
    assert result.overall_match == (result.mismatch_count == 0)
    assert result.stopped_early is False

    expected_mismatches = sum(1 for b, t, fails in states if not fails and b != t)
    expected_skips = sum(1 for _, _, fails in states if fails)
    assert result.mismatch_count == expected_mismatches
    assert result.skip_count == expected_skips


@settings(max_examples=60, deadline=None)
@given(states=table_states)
def test_fail_fast_is_a_prefix_of_full_scan(states):
    """Fail-fast keeps at most one mismatch: the first one a full scan finds"""
    base, test = _connections(states)
    full = run_comparison(RunContext(base, test))

    base, test = _connections(states)
    fast = run_comparison(RunContext(base, test), fail_fast=True)

    assert fast.overall_match == full.overall_match
    assert fast.mismatch_count <= 1
    if full.mismatches:
        assert fast.mismatches[0] == full.mismatches[0]
        assert fast.matched_table_count <= full.matched_table_count
    else:
        assert fast == full


@settings(max_examples=30, deadline=None)
@given(states=table_states, workers=st.integers(min_value=2, max_value=5), fail_fast=st.booleans())
def test_parallel_scan_matches_sequential(states, workers, fail_fast):
    base, test = _connections(states)
    sequential = run_comparison(RunContext(base, test), fail_fast=fail_fast)

    base, test = _connections(states)
    parallel = run_comparison(RunContext(base, test, workers=workers), fail_fast=fail_fast)

    assert parallel == sequential


@settings(max_examples=60, deadline=None)
@given(
    base_size=st.integers(min_value=0, max_value=8),
    test_size=st.integers(min_value=0, max_value=8),
)
def test_inventory_size_mismatch_short_circuits(base_size, test_size):
    """Different table counts never reach a strategy"""
    assume(base_size != test_size)

    base = _connection("basedb", [0] * base_size)
    test = _connection("testdb", [0] * test_size)

    with patch("diffdb.engine.compare_by_row_count") as mock_strategy:
        result = run_comparison(RunContext(base, test))

    assert result.overall_match is False
    assert result.matched_table_count == 0
    assert result.total_table_count == base_size
    assert [m.subject for m in result.mismatches] == [TABLE_COUNT_SUBJECT]
    mock_strategy.assert_not_called()


@given(names=st.lists(st.text(min_size=1, max_size=10).filter(lambda s: "\x00" not in s), unique=True, max_size=6))
def test_reconcile_same_set_in_any_order(names):
    """Strict pairing only cares about the set of tables"""
    inventory = tuple(sorted(TableIdentity("public", n) for n in names))

    tables, ok, mismatch = reconcile_inventories(inventory, tuple(reversed(inventory)))

    assert ok is True
    assert mismatch is None
    assert tables == list(inventory)


@given(name=st.text(min_size=1, max_size=40).filter(lambda s: "\x00" not in s))
def test_quoted_identifier_normalizes_back(name):
    """Quoting then normalizing any catalog name yields the name itself"""
    assert normalize_identifier(quote_identifier(name)) == name
