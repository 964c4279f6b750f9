"""PostgreSQL / Greenplum connection pool implementation."""

from typing import Any

import psycopg2
import psycopg2.extensions
from opentelemetry import trace

from diffdb.utils.retry import retry_database_operation
from diffdb.utils.tracing import trace_operation

from .base import BaseConnectionPool


class PostgresConnectionPool(BaseConnectionPool):
    """Connection pool for PostgreSQL-family databases."""

    def __init__(
        self,
        database: str,
        host: str = "localhost",
        port: int = 5432,
        user: str | None = None,
        password: str | None = None,
        statement_timeout: int = 0,
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        """
        Initialize PostgreSQL connection pool.

        Args:
            database: Database name
            host: Server host
            port: Server port
            user: Username (libpq default when None)
            password: Password (libpq/.pgpass default when None)
            statement_timeout: Per-statement timeout in seconds, 0 for none
            connect_timeout: Connection timeout in seconds
            **kwargs: Additional arguments for BaseConnectionPool
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.statement_timeout = statement_timeout
        self.connect_timeout = connect_timeout

        kwargs.setdefault("pool_name", database)
        super().__init__(**kwargs)

    def _connect_kwargs(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "connect_timeout": self.connect_timeout,
        }
        if self.user:
            params["user"] = self.user
        if self.password:
            params["password"] = self.password
        if self.statement_timeout > 0:
            params["options"] = f"-c statement_timeout={self.statement_timeout * 1000}"
        return params

    @retry_database_operation(max_retries=3, base_delay=1.0)
    def _create_connection(self) -> psycopg2.extensions.connection:
        """Create a new autocommit connection."""
        with trace_operation(
            "postgres_connect",
            kind=trace.SpanKind.CLIENT,
            db_host=self.host,
            db_name=self.database,
        ):
            conn = psycopg2.connect(**self._connect_kwargs())
            # Each statement stands alone; a failed COPY must not poison the session
            conn.set_session(autocommit=True)
            return conn

    def _is_connection_healthy(self, conn: psycopg2.extensions.connection) -> bool:
        if conn is None or conn.closed:
            return False

        try:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            return True
        except (psycopg2.Error, psycopg2.Warning):
            return False

    def _close_connection(self, conn: psycopg2.extensions.connection) -> None:
        if conn is not None and not conn.closed:
            conn.close()
