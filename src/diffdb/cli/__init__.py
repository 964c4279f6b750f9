"""
Command-line interface for diffdb.

Available commands:
- run: Compare two databases (exit 0 match, 1 mismatch, 2 error)
- report: Render a report saved by a previous run
"""

import sys

from diffdb.utils.logging import setup_logging, shutdown_logging

from .commands import EXIT_ERROR, cmd_report, cmd_run
from .config import DiffConfig, build_config
from .parser import create_parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the diffdb CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    static_fields = None
    if args.command == 'run':
        static_fields = {"base_db": args.base_db, "test_db": args.test_db}

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        json_format=args.log_json,
        static_fields=static_fields,
    )

    try:
        if args.command == 'run':
            code = cmd_run(args)
        elif args.command == 'report':
            code = cmd_report(args)
        else:
            parser.print_help()
            code = EXIT_ERROR
    finally:
        shutdown_logging()

    sys.exit(code)


__all__ = [
    'main',
    'cmd_run',
    'cmd_report',
    'create_parser',
    'DiffConfig',
    'build_config',
]


if __name__ == '__main__':
    main()
