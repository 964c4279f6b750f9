"""
Report generation from comparison results.
"""

from datetime import UTC, datetime
from typing import Any

from diffdb.models import TABLE_COUNT_SUBJECT, RunResult


def generate_summary(result: RunResult, base_db: str, test_db: str) -> list[str]:
    """
    Human-readable verdict lines

    Args:
        result: Result of the run
        base_db: Base database name
        test_db: Test database name

    Returns:
        One or two summary lines
    """
    if result.overall_match:
        return [f"Database {base_db} matches database {test_db}"]

    lines = [f"Database {base_db} does not match database {test_db}"]

    inventory_failed = any(m.subject == TABLE_COUNT_SUBJECT for m in result.mismatches)
    if not inventory_failed:
        lines.append(
            f"Found matched data for only {result.matched_table_count} "
            f"of {result.total_table_count} tables"
        )

    return lines


def generate_report(
    result: RunResult,
    base_db: str,
    test_db: str,
    strategy: str | None = None,
) -> dict[str, Any]:
    """
    Generate a comparison report

    Args:
        result: Result of the run
        base_db: Base database name
        test_db: Test database name
        strategy: Strategy used for per-table comparison

    Returns:
        Dictionary containing:
        - status: PASS or FAIL
        - base_database / test_database / strategy
        - total_tables, tables_matched, tables_mismatched, tables_skipped
        - stopped_early: True when fail-fast ended the scan
        - mismatches: list of {subject, description}
        - warnings: list of {subject, reason} for skipped tables
        - summary: list of verdict lines
        - timestamp: ISO 8601 report generation time
    """
    return {
        "status": "PASS" if result.overall_match else "FAIL",
        "base_database": base_db,
        "test_database": test_db,
        "strategy": strategy,
        "total_tables": result.total_table_count,
        "tables_matched": result.matched_table_count,
        "tables_mismatched": result.mismatch_count,
        "tables_skipped": result.skip_count,
        "stopped_early": result.stopped_early,
        "mismatches": [
            {"subject": m.subject, "description": m.description}
            for m in result.mismatches
        ],
        "warnings": [
            {"subject": s.subject, "reason": s.reason}
            for s in result.skipped
        ],
        "summary": generate_summary(result, base_db, test_db),
        "timestamp": datetime.now(UTC).isoformat(),
    }
