"""
CLI for schema-hoist

Usage:
    python -m schema_hoist extract spec.yml processed.yml   # Hoist + validate + write
    python -m schema_hoist extract spec.yml out.yml --json  # Output JSON report
    python -m schema_hoist check spec.yml processed.yml     # Equivalence check only
    python -m schema_hoist list spec.yml                    # Names that would be extracted
    python -m schema_hoist serve [DIRS...]                  # Run the MCP server
"""

import argparse
import json
import sys

from schema_hoist import server
from schema_hoist.errors import FAILURES
from schema_hoist.pipeline import check_files, hoist_file, transform_document
from schema_hoist.reporter import (
    format_json_report,
    format_summary,
    generate_report,
    print_terminal_report,
)


def cmd_extract(args: argparse.Namespace) -> int:
    """Hoist inline schemas and write the processed spec."""
    result = None
    error = None
    try:
        result = hoist_file(args.input, args.output)
    except FAILURES as e:
        error = e

    report = generate_report(result, args.input, args.output, error=error)
    if args.json:
        print(format_json_report(report))
    elif error is not None:
        print(f"Error: {error}", file=sys.stderr)
    elif args.verbose:
        print_terminal_report(report, use_color=not args.no_color, verbose=True)
    else:
        print(format_summary(result))

    return 0 if error is None else 1


def cmd_check(args: argparse.Namespace) -> int:
    """Validate equivalence of two specs already on disk."""
    try:
        check_files(args.original, args.processed)
    except FAILURES as e:
        print(f"Error: equivalence validation failed: {e}", file=sys.stderr)
        return 1

    print(f"Equivalent: {args.processed} matches {args.original}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List the schema names extraction would create (nothing is written)."""
    try:
        with open(args.input, "r", encoding="utf-8") as f:
            result = transform_document(f.read())
    except FAILURES as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.extracted, indent=2))
    else:
        print(format_summary(result))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the MCP server over stdio."""
    server.initialize(args.dirs)
    server.mcp.run()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="schema-hoist",
        description="Extract inline OpenAPI schemas into named components",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # extract command
    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract inline schemas and write the processed spec",
    )
    extract_parser.add_argument("input", help="Path to the input OpenAPI spec (YAML)")
    extract_parser.add_argument("output", help="Path to write the processed spec (YAML)")
    extract_parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON report",
    )
    extract_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show every change applied",
    )
    extract_parser.set_defaults(func=cmd_extract)

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Check that a processed spec is equivalent to the original",
    )
    check_parser.add_argument("original", help="Original spec")
    check_parser.add_argument("processed", help="Processed spec")
    check_parser.set_defaults(func=cmd_check)

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List schema names that would be extracted",
    )
    list_parser.add_argument("input", help="Path to the input OpenAPI spec (YAML)")
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON",
    )
    list_parser.set_defaults(func=cmd_list)

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the MCP server",
    )
    serve_parser.add_argument("dirs", nargs="*", help="Allowed directories")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
