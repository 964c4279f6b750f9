"""
Query/execute facade over a connection pool.

The comparison engine only ever talks to a DatabaseConnection; it never
sees cursors, pools or driver exceptions.
"""

import logging
from typing import Any

import psycopg2

from diffdb.errors import DatabaseConnectionError, QueryError

from .base import BaseConnectionPool, ConnectionPoolError

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    A connected handle to one database.

    Safe to share between threads: every call borrows its own pooled
    connection for the duration of the statement.
    """

    def __init__(self, name: str, pool: BaseConnectionPool):
        self.name = name
        self.pool = pool

    def _run(self, sql: str, params: tuple | None, fetch: bool) -> list[tuple[Any, ...]] | None:
        try:
            with self.pool.acquire() as conn:
                try:
                    with conn.cursor() as cursor:
                        cursor.execute(sql, params)
                        return cursor.fetchall() if fetch else None
                except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
                    # A dead server closes the connection; a cancelled statement does not
                    if conn.closed:
                        raise DatabaseConnectionError(
                            f"Lost connection to database {self.name}: {str(e).strip()}"
                        ) from e
                    raise
        except ConnectionPoolError as e:
            raise DatabaseConnectionError(
                f"No connection available to database {self.name}: {e}"
            ) from e
        except psycopg2.Error as e:
            raise QueryError(str(e).strip(), sql) from e

    def query(self, sql: str, params: tuple | None = None) -> list[tuple[Any, ...]]:
        """
        Run a statement and return all rows.

        Raises:
            QueryError: If the statement fails
            DatabaseConnectionError: If the database can no longer be reached
        """
        return self._run(sql, params, fetch=True)

    def execute(self, sql: str, params: tuple | None = None) -> None:
        """
        Run a statement that returns no rows.

        Raises:
            QueryError: If the statement fails
            DatabaseConnectionError: If the database can no longer be reached
        """
        self._run(sql, params, fetch=False)

    def close(self) -> None:
        self.pool.close()

    def __enter__(self) -> "DatabaseConnection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"DatabaseConnection({self.name!r})"
