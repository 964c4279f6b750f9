"""
Exception hierarchy for database comparison runs.

Fatal errors (connection, catalog, filesystem) abort the run and propagate
to the CLI. ExtractionError is soft: strategies turn it into a skipped
table and the run continues.
"""


class DiffDBError(Exception):
    """Base exception for diffdb errors."""

    pass


class DatabaseConnectionError(DiffDBError):
    """Raised when the base or test database cannot be reached, at startup or mid-run."""

    pass


class QueryError(DiffDBError):
    """
    Raised when a query or statement fails.

    Carries the underlying driver message so operators can see why a
    table could not be extracted.
    """

    def __init__(self, message: str, sql: str | None = None):
        super().__init__(message)
        self.sql = sql


class CatalogQueryError(DiffDBError):
    """Raised when the table-listing query cannot be executed."""

    pass


class ExtractionError(DiffDBError):
    """Raised when a per-table count or export fails on one side."""

    def __init__(self, message: str, side: str):
        super().__init__(message)
        self.side = side


class FilesystemError(DiffDBError):
    """Raised when the scratch directory or an artifact cannot be created, read or stat'ed."""

    pass
