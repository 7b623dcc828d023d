"""Application entry point for the fleet KPI engine."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from .cli import parse_args
from .config import Config, load_config
from .errors import ConfigurationError, DataValidationError, InputFileError
from .export import dump_json
from .kpi import compute_all
from .loader import load_rows
from .operators import compute_operator_metrics, rank_operators
from .stats import generate_report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_INPUT_FILE = 3
EXIT_DATA_VALIDATION = 4


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def render_report(config: Config) -> str:
    """Load the activity log, run the engine and render the configured report."""
    rows = load_rows(config.input_path, sheet_name=config.sheet_name)
    if not rows:
        logger.warning("No activity rows found", extra={"input_path": str(config.input_path)})

    result = compute_all(rows)
    operators = rank_operators(compute_operator_metrics(result.normalized_rows))

    if config.output_format == "json":
        return dump_json(result, operators)
    return generate_report(result, operators, top_n=config.top_n)


def write_report(report: str, config: Config) -> None:
    if config.output_path is None:
        print(report)
        return

    config.output_path.write_text(report + "\n", encoding="utf-8")
    print(f"Report written to '{config.output_path}'.")


def orchestrate_kpi_generation(argv: Optional[Sequence[str]] = None) -> int:
    """Run the end-to-end fleet KPI workflow and return a process exit code.

    Exit codes:
        0: success
        1: unexpected error
        2: configuration error
        3: unreadable or unsupported input file
        4: input file without recognised columns
    """
    try:
        args = parse_args(argv)
        configure_logging(args.verbose)
        config = load_config(
            input_path=args.input,
            sheet_name=args.sheet,
            output_format=args.output_format,
            top_n=args.top,
            output_path=args.output,
        )

        report = render_report(config)
        write_report(report, config)
        return EXIT_OK
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except InputFileError as exc:
        print(f"Input file error: {exc}", file=sys.stderr)
        return EXIT_INPUT_FILE
    except DataValidationError as exc:
        print(f"Data validation error: {exc}", file=sys.stderr)
        return EXIT_DATA_VALIDATION
    except Exception:
        logger.exception("Unexpected error during fleet KPI generation")
        return EXIT_UNEXPECTED


def main() -> int:
    return orchestrate_kpi_generation()


if __name__ == "__main__":
    raise SystemExit(main())
