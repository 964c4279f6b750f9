"""
Database connection pooling for PostgreSQL-family databases.

Usage:
    from diffdb.utils.db_pool import connect

    with connect("warehouse", min_pool_size=2, host="gpmaster") as conn:
        rows = conn.query("SELECT 1")
"""

import logging
from typing import Any

from diffdb.errors import DatabaseConnectionError

from .base import (
    BaseConnectionPool,
    ConnectionPoolError,
    PoolClosedError,
    PooledConnection,
    PoolExhaustedError,
)
from .connection import DatabaseConnection
from .postgres import PostgresConnectionPool

logger = logging.getLogger(__name__)


def connect(
    database_name: str,
    min_pool_size: int = 2,
    max_pool_size: int | None = None,
    **connection_config: Any,
) -> DatabaseConnection:
    """
    Open a pooled connection to a database.

    Args:
        database_name: Database to connect to
        min_pool_size: Connections opened up front; all must succeed
        max_pool_size: Upper bound (defaults to min_pool_size)
        **connection_config: host, port, user, password, statement_timeout

    Returns:
        Connected DatabaseConnection

    Raises:
        DatabaseConnectionError: If the minimum number of connections cannot be opened
    """
    if not database_name:
        raise DatabaseConnectionError("Database name is required")

    max_pool_size = max(max_pool_size or min_pool_size, min_pool_size)

    try:
        pool = PostgresConnectionPool(
            database=database_name,
            min_size=min_pool_size,
            max_size=max_pool_size,
            **connection_config,
        )
    except ConnectionPoolError as e:
        raise DatabaseConnectionError(
            f"Could not connect to database {database_name}: {e}"
        ) from e

    logger.info(f"Connected to database {database_name}")
    return DatabaseConnection(database_name, pool)


__all__ = [
    "BaseConnectionPool",
    "PostgresConnectionPool",
    "PooledConnection",
    "DatabaseConnection",
    "ConnectionPoolError",
    "PoolExhaustedError",
    "PoolClosedError",
    "connect",
]
