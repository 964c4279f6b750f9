"""
diffdb: check that two PostgreSQL/Greenplum databases hold identical data

Used as a regression check after a migration, upgrade or replication
process. Produces a pass/fail verdict plus the list of tables that diverged.

Components:
- compare: catalog reconciliation, row count and content dump strategies
- engine: the comparison run (fail-fast or exhaustive)
- report: console, JSON and CSV reports
- cli: the ``diffdb`` command

Usage:
    from diffdb.engine import RunContext, Strategy, run_comparison
    from diffdb.utils.db_pool import connect

    with connect("base") as base, connect("test") as test:
        result = run_comparison(RunContext(base, test), Strategy.ROW_COUNT)
"""

__version__ = "0.1.0"
__all__ = ["compare", "engine", "report", "cli"]
