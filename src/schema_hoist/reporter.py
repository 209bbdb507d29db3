"""
Extraction Reporter

Generates output in formats useful for both engineers and agents:
- JSON report for programmatic consumption
- Terminal summary for human DX

Purely observational: nothing here feeds back into the transformation.
"""

import json
from datetime import datetime, timezone
from typing import Optional

from .pipeline import HoistResult


def generate_report(
    result: Optional[HoistResult],
    input_path: str,
    output_path: Optional[str] = None,
    error: Optional[Exception] = None,
) -> dict:
    """
    Generate a JSON-serializable report for one run.

    Args:
        result: Pipeline result (None when the run failed)
        input_path: Spec that was processed
        output_path: Where the processed spec was written, if anywhere
        error: The failure, if the run failed

    Returns:
        Report dict with status, extracted names and change log
    """
    extracted = result.extracted if result else []
    return {
        "input": input_path,
        "output": output_path if error is None else None,
        "status": "OK" if error is None else "FAILED",
        "error": None if error is None else str(error),
        "error_type": None if error is None else type(error).__name__,
        "extracted_count": len(extracted),
        "extracted": extracted,
        "changes": result.changes if result else [],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def format_summary(result: HoistResult) -> str:
    """The plain operator summary: count, then one sorted name per line."""
    lines = [f"Extracted {result.count} inline schemas"]
    lines.extend(f"  - {name}" for name in result.extracted)
    return "\n".join(lines)


def print_terminal_report(report: dict, use_color: bool = True, verbose: bool = False) -> None:
    """
    Pretty-print a report to the terminal.

    Args:
        report: Report dict from generate_report()
        use_color: Whether to use ANSI color codes
        verbose: Also list every change applied
    """
    if use_color:
        RED = "\033[91m"
        GREEN = "\033[92m"
        BOLD = "\033[1m"
        RESET = "\033[0m"
    else:
        RED = GREEN = BOLD = RESET = ""

    print(f"\n{BOLD}{'═' * 68}{RESET}")
    print(f"{BOLD}SPEC: {report['input']}{RESET}")
    print(f"{'═' * 68}")

    if report["status"] == "OK":
        print(f"{GREEN}STATUS: OK{RESET}")
        if report["output"]:
            print(f"Output: {report['output']}")
    else:
        print(f"{RED}STATUS: FAILED ({report['error_type']}){RESET}")
        print(f"   {report['error']}")

    print(f"\nExtracted {report['extracted_count']} inline schemas")
    for name in report["extracted"]:
        print(f"  - {name}")

    if verbose and report["changes"]:
        print(f"\n{GREEN}CHANGES:{RESET}")
        for change in report["changes"]:
            print(f"   - {change}")

    print()


def format_json_report(report: dict, indent: int = 2) -> str:
    """Format report as JSON string."""
    return json.dumps(report, indent=indent, default=str)
