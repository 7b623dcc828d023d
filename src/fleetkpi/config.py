"""Configuration parsing and validation for the fleet KPI engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError
from .loader import SUPPORTED_SUFFIXES

OUTPUT_FORMATS = ("text", "json")


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the KPI report."""

    input_path: Path
    sheet_name: Optional[str]
    output_format: str
    top_n: int
    output_path: Optional[Path]


def load_config(
    input_path: str,
    sheet_name: Optional[str] = None,
    output_format: str = "text",
    top_n: int = 10,
    output_path: Optional[str] = None,
) -> Config:
    """Build and validate application configuration.

    Args:
        input_path: Activity log to analyze (``.xlsx``, ``.xlsm`` or ``.csv``).
        sheet_name: Workbook sheet to read. Falls back to the ``FLEET_KPI_SHEET``
            environment variable, then to the first sheet.
        output_format: ``"text"`` or ``"json"``.
        top_n: Positive size of each top/bottom list in the text report.
        output_path: Optional file to write the report to instead of stdout.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If any value is missing or invalid.
    """
    path = Path(input_path)
    if not path.is_file():
        raise ConfigurationError(f"Activity log '{input_path}' does not exist or is not a file.")

    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise ConfigurationError(
            f"Unsupported activity log '{input_path}': "
            f"expected one of {', '.join(sorted(SUPPORTED_SUFFIXES))}."
        )

    if top_n <= 0:
        raise ConfigurationError("Invalid value for 'top': expected an integer greater than 0.")

    if output_format not in OUTPUT_FORMATS:
        raise ConfigurationError(
            f"Invalid value for 'format': expected one of {', '.join(OUTPUT_FORMATS)}."
        )

    sheet = (sheet_name or os.getenv("FLEET_KPI_SHEET", "")).strip() or None

    return Config(
        input_path=path,
        sheet_name=sheet,
        output_format=output_format,
        top_n=top_n,
        output_path=Path(output_path) if output_path else None,
    )
