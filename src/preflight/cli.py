"""
Preflight CLI entry point.

This module provides the command-line interface for Preflight.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from preflight import __version__
from preflight.config import CloudProvider, EnvConfig, load_options_from_env
from preflight.errors import PreflightError
from preflight.observability import configure_logging, get_logger

logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="preflight",
        description="Preflight - Crossplane role permission validation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"preflight {__version__}",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )

    parser.add_argument(
        "--log-format",
        choices=["human", "json"],
        default="human",
        help="Log output format (default: human)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check-role command
    check_parser = subparsers.add_parser(
        "check-role",
        help="Validate the Crossplane provider role against its baseline",
    )
    check_parser.add_argument(
        "--config",
        required=True,
        help="Path to the environment configuration (YAML or JSON)",
    )
    check_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    check_parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for the GCP collector pod (default: no limit)",
    )

    # baseline command
    baseline_parser = subparsers.add_parser(
        "baseline",
        help="Print the resolved baseline for the configured cloud",
    )
    baseline_parser.add_argument(
        "--config",
        required=True,
        help="Path to the environment configuration (YAML or JSON)",
    )
    baseline_parser.add_argument(
        "--name",
        help="AWS policy document to print (trust, boundary, policy, redis)",
    )

    return parser


def _print_result_text(result: Any) -> None:
    status = "PASSED" if result.passed else "FAILED"
    print(f"{result.cloud} role {result.role_name}: {status}")
    if result.passed:
        return

    print(f"  {result.error_type}: {result.error}")
    for change in result.details.get("changelog", []):
        path = ".".join(change["path"])
        print(
            f"  - {change['kind']} {path}: "
            f"{change['old_value']!r} -> {change['new_value']!r}"
        )
    if "changelog" not in result.details:
        for permission in result.details.get("missing_permissions", []):
            print(f"  - missing {permission}")


def cmd_check_role(args: argparse.Namespace) -> int:
    """
    Validate the Crossplane provider role.

    Returns:
        Exit code (0 role satisfies its baseline, 1 otherwise)
    """
    from preflight.checkers import create_checker

    try:
        config = EnvConfig.from_file(args.config)
        options = load_options_from_env()
        if args.timeout is not None:
            options.timeout_seconds = args.timeout
        checker = create_checker(config, options)
    except PreflightError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        result = checker.run()
    except Exception as e:
        logger.error(f"Role check aborted: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        _print_result_text(result)

    return 0 if result.passed else 1


def cmd_baseline(args: argparse.Namespace) -> int:
    """
    Print the resolved baseline for the configured cloud.

    Returns:
        Exit code (0 success, 1 error)
    """
    from preflight.permissions import AZURE_EXPECTED_PERMISSIONS, GCP_EXPECTED_PERMISSIONS
    from preflight.policy import expected_policy_documents, resolve_document

    try:
        config = EnvConfig.from_file(args.config)
    except PreflightError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if config.provider == CloudProvider.AZURE:
        output: Any = sorted(AZURE_EXPECTED_PERMISSIONS)
    elif config.provider == CloudProvider.GCP:
        output = sorted(GCP_EXPECTED_PERMISSIONS)
    else:
        context = config.placeholder_context()
        documents = expected_policy_documents()
        if args.name:
            if args.name not in documents:
                print(
                    f"Unknown policy document: {args.name} "
                    f"(expected one of: {', '.join(documents)})",
                    file=sys.stderr,
                )
                return 1
            documents = {args.name: documents[args.name]}
        output = {
            name: resolve_document(document, context).to_dict()
            for name, document in documents.items()
        }

    print(json.dumps(output, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        configure_logging(
            level="DEBUG" if args.verbose > 1 else "INFO",
            format=args.log_format,
        )
    elif args.log_format != "human":
        configure_logging(format=args.log_format)

    if args.command is None:
        parser.print_help()
        return 0

    command_handlers = {
        "check-role": cmd_check_role,
        "baseline": cmd_baseline,
    }

    handler = command_handlers.get(args.command)
    if handler:
        return handler(args)

    print(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
