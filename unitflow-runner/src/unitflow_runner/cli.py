"""Command-line interface for unitflow-runner.

Usage:
    # Run the tests registered by a function
    unitflow run my_tests.parser:register

    # Run from a config file, overriding the filter
    unitflow run --config suite.yaml --filter tokenizer

    # List registered tests with their ids
    unitflow list my_tests.parser:register
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys

from unitflow_runner.config import ReportConfig, RunConfig, load_run_config
from unitflow_runner.executor import build_suite, execute


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def resolve_config(args: argparse.Namespace) -> RunConfig:
    """Combine the config file (if any) with command-line overrides.

    Raises:
        ValueError: If no registrar is given.
    """
    if args.config:
        config = load_run_config(args.config)
    elif args.registrar:
        config = RunConfig(registrar=args.registrar)
    else:
        raise ValueError("A registrar or --config is required")

    if args.registrar and args.config:
        config = dataclasses.replace(config, registrar=args.registrar)

    selection = config.selection
    if getattr(args, "filter", None):
        selection = dataclasses.replace(selection, filter=args.filter)
    if getattr(args, "solo", None) is not None:
        selection = dataclasses.replace(selection, solo=args.solo)
    if getattr(args, "disable", None):
        selection = dataclasses.replace(
            selection, disabled=list(selection.disabled) + list(args.disable)
        )
    config = dataclasses.replace(config, selection=selection)

    if getattr(args, "json", None):
        config = dataclasses.replace(config, report=ReportConfig(json=args.json))
    return config


def cmd_run(args: argparse.Namespace) -> int:
    """Run a suite."""
    try:
        config = resolve_config(args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    result = asyncio.run(execute(config))

    print()
    print(f"Passed:  {result.passed}")
    print(f"Failed:  {result.failed}")
    print(f"Errors:  {result.errors}")
    print(f"Skipped: {result.skipped}")
    if result.uncaught_error:
        print(f"Uncaught error: {result.uncaught_error}")
    print("SUCCESS" if result.success else "FAILURE")

    return 0 if result.success else 1


def cmd_list(args: argparse.Namespace) -> int:
    """List registered tests."""
    try:
        config = resolve_config(args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    suite = build_suite(config)
    if not suite.cases:
        print("No tests registered.")
        return 0

    for case in suite.cases:
        marker = "" if case.enabled else " (disabled)"
        print(f"{case.id:4d}  {case.description}{marker}")
    if suite.uncaught_error:
        print(f"\nError during registration: {suite.uncaught_error}")
        return 1
    return 0


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "registrar", nargs="?",
        help="Registration function in module:function format"
    )
    parser.add_argument(
        "--config", "-c",
        help="Run configuration YAML file"
    )
    parser.add_argument(
        "--filter", "-f",
        help="Regular expression selecting tests by description"
    )
    parser.add_argument(
        "--solo", type=int,
        help="Run only the test with this id"
    )
    parser.add_argument(
        "--disable", type=int, action="append",
        help="Skip the test with this id (can specify multiple)"
    )


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="unitflow test runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # run command
    run_parser = subparsers.add_parser("run", help="Run tests")
    _add_selection_arguments(run_parser)
    run_parser.add_argument(
        "--json",
        help="Write a JSON report to this path"
    )

    # list command
    list_parser = subparsers.add_parser("list", help="List registered tests")
    _add_selection_arguments(list_parser)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(args.debug)

    if args.command == "run":
        return cmd_run(args)
    elif args.command == "list":
        return cmd_list(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
