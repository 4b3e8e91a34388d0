"""
Command-line entry point for tvp_invoker.

Usage:
    python -m tvp_invoker.cli <command> [options]

Available commands:
    describe     - Print registrations loaded from a YAML file

Examples:
    python -m tvp_invoker.cli describe --config config/procedures.yml
    python -m tvp_invoker.cli describe --config config/procedures.yml --statement
"""

import argparse
import sys
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point with subcommand routing.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = argparse.ArgumentParser(
        prog="tvp_invoker.cli",
        description="tvp_invoker CLI - inspect TVP procedure registrations",
    )
    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        required=True,
        help="Command to execute",
    )
    subparsers.add_parser(
        "describe",
        help="Print registrations loaded from a YAML file",
        add_help=False,  # Let the delegated module handle help
    )

    args, remaining_args = parser.parse_known_args(argv)

    if args.command == "describe":
        from tvp_invoker.cli.describe import main as describe_main

        return describe_main(remaining_args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
