"""Command-line argument parsing for the fleet KPI engine."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Args:
        value: Raw command-line argument value.

    Returns:
        The validated positive integer.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for fleet KPI generation.

    Returns:
        Parsed CLI arguments containing the input file, sheet, output format,
        list size, output file and verbosity.
    """
    parser = argparse.ArgumentParser(
        prog="fleet-kpi",
        description=(
            "Compute fleet KPIs (physical availability, utilization availability, "
            "vehicle and operator rankings, daily trend) from an equipment-activity log."
        ),
    )

    parser.add_argument(
        "input",
        help="Activity log file (.xlsx, .xlsm or .csv) with one row per status interval.",
    )
    parser.add_argument(
        "--sheet",
        default=None,
        help="Workbook sheet to read (default: FLEET_KPI_SHEET or the first sheet).",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=("text", "json"),
        default="text",
        help="Report format (default: text).",
    )
    parser.add_argument(
        "--top",
        type=_positive_int,
        default=10,
        help="Number of entries in each top/bottom list (default: 10).",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write the report to this file instead of standard output.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser.parse_args(argv)
