"""
CLI command implementations.

- run: compare two databases and report the verdict
- report: render a report saved by a previous run
"""

import argparse
import json
import logging
import time
from contextlib import ExitStack
from pathlib import Path
from typing import Any

from diffdb.engine import RunContext, Strategy, run_comparison
from diffdb.errors import DiffDBError
from diffdb.models import RunResult
from diffdb.report import (
    export_report_csv,
    export_report_json,
    format_report_console,
    generate_report,
)
from diffdb.scratch import working_directory
from diffdb.utils.db_pool import connect
from diffdb.utils.metrics import DiffMetrics, MetricsPublisher
from diffdb.utils.tracing import initialize_tracing, shutdown_tracing

from .config import DiffConfig, build_config

logger = logging.getLogger(__name__)

EXIT_MATCH = 0
EXIT_MISMATCH = 1
EXIT_ERROR = 2


def _write_report(report: dict[str, Any], output_format: str, output: str | None) -> None:
    if output and output_format != "console":
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if output_format == "json":
            export_report_json(report, str(output_path))
        else:
            export_report_csv(report, str(output_path))
        logger.info(f"Report saved to {output_path}")
    elif output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(format_report_console(report) + "\n")
        logger.info(f"Report saved to {output_path}")
    else:
        print(format_report_console(report))


def execute_run(config: DiffConfig, metrics: DiffMetrics | None = None) -> RunResult:
    """
    Set up the working directory and connections, then compare.

    The working directory and both connections are released on the way
    out, whether the run completes or fails.

    Raises:
        DiffDBError: On connection, catalog or filesystem failure
    """
    with ExitStack() as stack:
        scratch_dir = None
        if config.working_dir:
            scratch_dir = stack.enter_context(working_directory(config.working_dir))

        connection_config = config.connection_config()
        base_conn = stack.enter_context(
            connect(config.base_db, config.min_connections, config.workers, **connection_config)
        )
        test_conn = stack.enter_context(
            connect(config.test_db, config.min_connections, config.workers, **connection_config)
        )

        context = RunContext(
            base_conn=base_conn,
            test_conn=test_conn,
            scratch_dir=scratch_dir,
            pairing=config.pairing,
            dump_options=config.dump_options(),
            workers=config.workers,
            metrics=metrics,
        )
        return run_comparison(context, config.strategy, config.fail_fast)


def cmd_run(args: argparse.Namespace) -> int:
    """
    Compare two databases

    Args:
        args: Parsed command-line arguments

    Returns:
        Process exit code: 0 match, 1 mismatch, 2 error
    """
    try:
        config = build_config(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_ERROR

    if config.strategy is Strategy.CONTENT_DUMP and not config.working_dir:
        logger.error("--working-dir is required for the dump strategy")
        return EXIT_ERROR

    logger.info(f"Comparing database {config.base_db} against {config.test_db}")

    initialize_tracing()
    try:
        metrics = None
        if config.metrics_port:
            MetricsPublisher(port=config.metrics_port).start()
            metrics = DiffMetrics()

        start = time.monotonic()
        result = execute_run(config, metrics)
        logger.debug(f"Run finished in {time.monotonic() - start:.2f}s")
    except (DiffDBError, RuntimeError, ValueError) as e:
        logger.error(f"Comparison failed: {e}")
        return EXIT_ERROR
    finally:
        shutdown_tracing()

    report = generate_report(result, config.base_db, config.test_db, config.strategy.value)

    try:
        _write_report(report, config.output_format, config.output)
    except OSError as e:
        logger.error(f"Could not write report: {e}")
        return EXIT_ERROR

    if result.overall_match:
        logger.info(f"Database {config.base_db} matches database {config.test_db}")
        return EXIT_MATCH

    logger.warning(f"Database {config.base_db} does not match database {config.test_db}")
    return EXIT_MISMATCH


def cmd_report(args: argparse.Namespace) -> int:
    """
    Render a report from a previous run's JSON file

    Args:
        args: Parsed command-line arguments

    Returns:
        Process exit code
    """
    logger.info(f"Loading report from {args.input}")

    try:
        with open(args.input) as f:
            report = json.load(f)

        if args.format == "console":
            print(format_report_console(report))
            return EXIT_MATCH

        if not args.output:
            logger.error(f"Output file required for {args.format.upper()} format")
            return EXIT_ERROR

        if args.format == "csv":
            export_report_csv(report, args.output)
        else:
            export_report_json(report, args.output)
        logger.info(f"Report exported to {args.output}")

    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Failed to process report: {e}")
        return EXIT_ERROR

    return EXIT_MATCH
