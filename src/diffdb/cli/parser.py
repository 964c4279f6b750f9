"""
Command-line argument parser configuration.

This module sets up the argument parser for the diffdb CLI tool,
defining all commands and their options.
"""

import argparse

from diffdb import __version__
from diffdb.compare.dump import DEFAULT_CHUNK_SIZE, DEFAULT_COMPRESSOR


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="diffdb",
        description="Check whether the data in two Greenplum/PostgreSQL databases matches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare row counts of every table
  diffdb run --base-db prod_snapshot --test-db restored

  # Compare full table contents, stop at the first difference
  diffdb run --base-db prod_snapshot --test-db restored \\
      --strategy dump --working-dir /data/diffdb_scratch --fail-fast

  # Plain PostgreSQL targets, four tables at a time, JSON report
  diffdb run --base-db a --test-db b --strategy dump --working-dir /tmp/diffdb \\
      --no-ignore-external-partitions --workers 4 --format json --output report.json

  # Print a saved report
  diffdb report --input report.json --format console

Exit codes: 0 databases match, 1 data mismatch, 2 error
        """
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        help='Emit logs as JSON lines'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file (rotated)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', help='Compare two databases')
    run_parser.add_argument(
        '--base-db',
        required=True,
        help="The base DB we're comparing against"
    )
    run_parser.add_argument(
        '--test-db',
        required=True,
        help="The test DB we're comparing"
    )
    run_parser.add_argument(
        '--working-dir',
        help="The working directory we'll make and delete for storing test data "
             "(required for --strategy dump)"
    )
    run_parser.add_argument(
        '--fail-fast',
        action='store_true',
        help='Quit after the first table data difference found'
    )
    run_parser.add_argument(
        '--strategy',
        choices=['rowcount', 'dump'],
        default='rowcount',
        help='Per-table check: row counts or full gzipped content (default: rowcount)'
    )
    run_parser.add_argument(
        '--pairing',
        choices=['strict', 'positional'],
        default='strict',
        help='strict: table names must match on both sides; '
             'positional: only table counts must match (default: strict)'
    )
    run_parser.add_argument(
        '--workers',
        type=_positive_int,
        default=1,
        help='Number of tables compared concurrently (default: 1)'
    )
    run_parser.add_argument(
        '--compressor',
        default=DEFAULT_COMPRESSOR,
        help=f'Program the database server pipes table exports through (default: {DEFAULT_COMPRESSOR})'
    )
    run_parser.add_argument(
        '--no-ignore-external-partitions',
        dest='ignore_external_partitions',
        action='store_false',
        help='Omit IGNORE EXTERNAL PARTITIONS from COPY (for plain PostgreSQL)'
    )
    run_parser.add_argument(
        '--chunk-size',
        type=_positive_int,
        default=DEFAULT_CHUNK_SIZE,
        help=f'Bytes read at a time when comparing exports (default: {DEFAULT_CHUNK_SIZE})'
    )

    # Connection options
    run_parser.add_argument('--host', help='Database server host (or PGHOST)')
    run_parser.add_argument('--port', type=int, help='Database server port (or PGPORT)')
    run_parser.add_argument('--user', help='Database user (or PGUSER); password from PGPASSWORD')
    run_parser.add_argument(
        '--min-connections',
        type=_positive_int,
        default=2,
        help='Connections opened up front per database (default: 2)'
    )
    run_parser.add_argument(
        '--statement-timeout',
        type=_non_negative_int,
        default=0,
        help='Per-statement timeout in seconds, 0 for none (default: 0)'
    )

    # Reporting options
    run_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Output format (default: console)'
    )
    run_parser.add_argument(
        '--output',
        help='Output file path for report'
    )
    run_parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port while running'
    )

    # ========== Report command ==========
    report_parser = subparsers.add_parser('report', help='Render a saved JSON report')
    report_parser.add_argument(
        '--input',
        required=True,
        help='Input JSON file from a previous run'
    )
    report_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Output format (default: console)'
    )
    report_parser.add_argument(
        '--output',
        help='Output file path (required for json and csv)'
    )

    return parser
