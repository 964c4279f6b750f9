"""
Run configuration assembled from command-line arguments and environment.

Explicit arguments win; libpq environment variables fill the gaps.
"""

import argparse
import getpass
import os
from dataclasses import dataclass
from typing import Any

from diffdb.compare.catalog import PairingMode
from diffdb.compare.dump import DEFAULT_CHUNK_SIZE, DEFAULT_COMPRESSOR, DumpOptions
from diffdb.engine import Strategy


@dataclass
class DiffConfig:
    """Everything the run command needs."""

    base_db: str
    test_db: str
    working_dir: str | None = None
    fail_fast: bool = False
    strategy: Strategy = Strategy.ROW_COUNT
    pairing: PairingMode = "strict"
    workers: int = 1
    compressor: str = DEFAULT_COMPRESSOR
    ignore_external_partitions: bool = True
    chunk_size: int = DEFAULT_CHUNK_SIZE
    host: str = "localhost"
    port: int = 5432
    user: str | None = None
    password: str | None = None
    min_connections: int = 2
    statement_timeout: int = 0
    output_format: str = "console"
    output: str | None = None
    metrics_port: int | None = None

    def connection_config(self) -> dict[str, Any]:
        """Keyword arguments for diffdb.utils.db_pool.connect"""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "statement_timeout": self.statement_timeout,
        }

    def dump_options(self) -> DumpOptions:
        return DumpOptions(
            compressor=self.compressor,
            ignore_external_partitions=self.ignore_external_partitions,
            chunk_size=self.chunk_size,
        )


def _default_user() -> str | None:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return None


def build_config(args: argparse.Namespace) -> DiffConfig:
    """
    Build a DiffConfig from parsed `run` arguments

    Args:
        args: Parsed command-line arguments

    Returns:
        DiffConfig

    Raises:
        ValueError: If an option or environment variable is invalid
    """
    port = args.port or os.getenv("PGPORT", "5432")
    try:
        port = int(port)
    except ValueError as e:
        raise ValueError(f"Invalid port: {port}") from e

    return DiffConfig(
        base_db=args.base_db,
        test_db=args.test_db,
        working_dir=args.working_dir,
        fail_fast=args.fail_fast,
        strategy=Strategy(args.strategy),
        pairing=args.pairing,
        workers=args.workers,
        compressor=args.compressor,
        ignore_external_partitions=args.ignore_external_partitions,
        chunk_size=args.chunk_size,
        host=args.host or os.getenv("PGHOST", "localhost"),
        port=port,
        user=args.user or os.getenv("PGUSER") or _default_user(),
        password=os.getenv("PGPASSWORD"),
        min_connections=args.min_connections,
        statement_timeout=args.statement_timeout,
        output_format=args.format,
        output=args.output,
        metrics_port=args.metrics_port,
    )
