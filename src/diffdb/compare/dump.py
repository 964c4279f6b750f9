"""
Full-content dump comparison strategy.

Each side exports the whole table server-side with COPY ... TO PROGRAM,
piped through a compressor into a scratch file. The two files are then
compared: first by size, and only when sizes agree, byte for byte.

Preconditions (not enforced):
- the scratch directory is writable by the database server processes,
  i.e. the comparison runs on the server host (or a shared mount);
- export order is deterministic and identical for identical data
  (quiescent databases with the same physical layout).
"""

import logging
import os
import shlex
from dataclasses import dataclass

from diffdb.errors import ExtractionError, FilesystemError, QueryError
from diffdb.models import ComparisonUnit, StrategyOutcome, TableIdentity
from diffdb.scratch import DEFAULT_DIR_MODE, reset_scratch_dir
from diffdb.utils.db_pool import DatabaseConnection
from diffdb.utils.tracing import add_span_attributes, add_span_event, trace_operation

from .quoting import quote_literal, quote_table

logger = logging.getLogger(__name__)

BASE_ARTIFACT = "base.csv.gz"
TEST_ARTIFACT = "test.csv.gz"

# -n keeps the file name and mtime out of the gzip header
DEFAULT_COMPRESSOR = "gzip -n"
DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class DumpOptions:
    """Settings for the dump strategy."""

    compressor: str = DEFAULT_COMPRESSOR
    ignore_external_partitions: bool = True
    chunk_size: int = DEFAULT_CHUNK_SIZE
    dir_mode: int = DEFAULT_DIR_MODE


def export_statement(
    table: TableIdentity,
    artifact_path: str,
    compressor: str = DEFAULT_COMPRESSOR,
    ignore_external_partitions: bool = True,
) -> str:
    """
    Build the COPY statement that dumps a table to a compressed file.

    For public.a and /scratch/base.csv.gz this yields:

        COPY "public"."a" TO PROGRAM 'gzip -n > /scratch/base.csv.gz'
            WITH CSV DELIMITER ',' IGNORE EXTERNAL PARTITIONS;
    """
    program = f"{compressor} > {shlex.quote(artifact_path)}"
    statement = f"COPY {quote_table(table)} TO PROGRAM {quote_literal(program)} WITH CSV DELIMITER ','"
    if ignore_external_partitions:
        statement += " IGNORE EXTERNAL PARTITIONS"
    return statement + ";"


def export_table(
    connection: DatabaseConnection,
    table: TableIdentity,
    artifact_path: str,
    side: str,
    options: DumpOptions,
) -> None:
    """
    Dump one side of a table into artifact_path.

    Raises:
        ExtractionError: If the export statement fails
    """
    statement = export_statement(
        table,
        artifact_path,
        compressor=options.compressor,
        ignore_external_partitions=options.ignore_external_partitions,
    )
    try:
        connection.execute(statement)
    except QueryError as e:
        raise ExtractionError(
            f"Unable to export table {table} from {side}: {e}", side
        ) from e


def artifact_size(path: str) -> int:
    """
    Size of an exported artifact in bytes.

    Raises:
        FilesystemError: If the file cannot be stat'ed
    """
    try:
        return os.stat(path).st_size
    except OSError as e:
        raise FilesystemError(f"Could not stat {path}: {e}") from e


def files_identical(base_path: str, test_path: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bool:
    """
    Compare two files byte for byte, one chunk at a time.

    Memory use is bounded by two chunks regardless of table size.

    Raises:
        FilesystemError: If either file cannot be read
    """
    try:
        with open(base_path, "rb") as base_file, open(test_path, "rb") as test_file:
            while True:
                base_chunk = base_file.read(chunk_size)
                test_chunk = test_file.read(chunk_size)
                if base_chunk != test_chunk:
                    return False
                if not base_chunk:
                    return True
    except OSError as e:
        raise FilesystemError(f"Could not read artifact contents: {e}") from e


def compare_by_content_dump(
    table: TableIdentity,
    base_conn: DatabaseConnection,
    test_conn: DatabaseConnection,
    scratch_dir: str,
    options: DumpOptions | None = None,
) -> StrategyOutcome:
    """
    Compare a table's full contents in both databases.

    Args:
        table: Table to compare
        base_conn: Base database handle
        test_conn: Test database handle
        scratch_dir: Directory reinitialized for this table's artifacts
        options: Compressor, partition and chunking settings

    Returns:
        MATCHED, MISMATCH or SKIPPED (either export failed)

    Raises:
        FilesystemError: If the scratch directory or an artifact is unusable
    """
    options = options or DumpOptions()

    with trace_operation("compare_content_dump", table=table.qualified_name):
        reset_scratch_dir(scratch_dir, options.dir_mode)

        unit = ComparisonUnit(
            table=table,
            base_artifact=os.path.join(scratch_dir, BASE_ARTIFACT),
            test_artifact=os.path.join(scratch_dir, TEST_ARTIFACT),
        )

        try:
            export_table(base_conn, table, unit.base_artifact, "basedb", options)
            export_table(test_conn, table, unit.test_artifact, "testdb", options)
        except ExtractionError as e:
            logger.warning(str(e), extra={"table_name": table.qualified_name})
            return StrategyOutcome.skipped(table, str(e))

        unit.base_value = artifact_size(unit.base_artifact)
        unit.test_value = artifact_size(unit.test_artifact)
        add_span_attributes(base_bytes=unit.base_value, test_bytes=unit.test_value)

        if unit.base_value != unit.test_value:
            return StrategyOutcome.mismatch(
                table,
                f"Table {table} has {unit.base_value} bytes in basedb "
                f"and {unit.test_value} bytes in testdb",
            )

        add_span_event("byte_comparison_started")
        if not files_identical(unit.base_artifact, unit.test_artifact, options.chunk_size):
            return StrategyOutcome.mismatch(
                table,
                f"Table {table} has {unit.base_value} bytes in both databases "
                f"but the contents differ",
            )

    logger.debug(f"Table {table} matched with {unit.base_value} exported bytes")
    return StrategyOutcome.matched(table)
