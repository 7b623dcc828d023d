"""Read equipment-activity logs from workbook or CSV files into ``RawRow`` objects."""

from __future__ import annotations

import csv
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from .errors import DataValidationError, InputFileError
from .models import RawRow

logger = logging.getLogger(__name__)

ROW_FIELDS = ("date", "vehicle_name", "status", "duration", "option", "operator_name")

EXCEL_SUFFIXES = frozenset({".xlsx", ".xlsm"})
CSV_SUFFIXES = frozenset({".csv"})
SUPPORTED_SUFFIXES = EXCEL_SUFFIXES | CSV_SUFFIXES


def _header_key(value: Any) -> str:
    return "" if value is None else str(value).strip().lower()


def _cell(value: Any) -> Any:
    """Map empty cells to ``None``; everything else is passed through."""
    if value is None:
        return None
    if isinstance(value, str) and value == "":
        return None
    return value


def rows_from_table(header: Sequence[Any], records: Iterable[Sequence[Any]]) -> List[RawRow]:
    """Build ``RawRow`` objects from a header row and its data rows.

    Columns are matched to row fields by trimmed, lower-cased header text;
    unknown columns are ignored and completely empty rows are skipped.

    Raises:
        DataValidationError: If no header cell names a known row field.
    """
    columns: Dict[str, int] = {}
    for index, value in enumerate(header):
        key = _header_key(value)
        if key in ROW_FIELDS and key not in columns:
            columns[key] = index

    if not columns:
        raise DataValidationError(
            "Activity log has no recognised columns. "
            f"Expected at least one of: {', '.join(ROW_FIELDS)}."
        )

    rows: List[RawRow] = []
    skipped = 0
    for record in records:
        values = {
            name: _cell(record[index]) if index < len(record) else None
            for name, index in columns.items()
        }
        if all(value is None for value in values.values()):
            skipped += 1
            continue
        rows.append(RawRow(**values))

    logger.debug(
        "Loaded activity rows",
        extra={"rows": len(rows), "blank_rows_skipped": skipped, "columns": sorted(columns)},
    )
    return rows


def _iter_excel(path: Path, sheet_name: Optional[str]) -> Iterator[Sequence[Any]]:
    try:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as exc:
        raise InputFileError(f"Could not open workbook '{path}': {exc}") from exc

    try:
        if sheet_name:
            if sheet_name not in workbook.sheetnames:
                raise InputFileError(
                    f"Sheet '{sheet_name}' not found in '{path}'. "
                    f"Available sheets: {', '.join(workbook.sheetnames)}."
                )
            worksheet = workbook[sheet_name]
        else:
            worksheet = workbook.worksheets[0]

        for row in worksheet.iter_rows(values_only=True):
            yield row
    finally:
        workbook.close()


def _iter_csv(path: Path) -> Iterator[Sequence[Any]]:
    try:
        with path.open(newline="", encoding="utf-8-sig") as handle:
            yield from csv.reader(handle)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise InputFileError(f"Could not read CSV file '{path}': {exc}") from exc


def load_rows(path: Path, sheet_name: Optional[str] = None) -> List[RawRow]:
    """Load raw activity rows from an ``.xlsx``/``.xlsm`` workbook or a ``.csv`` file.

    Workbooks are read from their first sheet unless ``sheet_name`` is given;
    the first row is the header in both formats.

    Raises:
        InputFileError: If the file type is unsupported or the file cannot be read.
        DataValidationError: If the header row has no recognised column.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix in EXCEL_SUFFIXES:
        table = _iter_excel(path, sheet_name)
    elif suffix in CSV_SUFFIXES:
        table = _iter_csv(path)
    else:
        raise InputFileError(
            f"Unsupported activity log type '{suffix or path.name}'. "
            f"Expected one of: {', '.join(sorted(SUPPORTED_SUFFIXES))}."
        )

    records = list(table)
    if not records:
        logger.info("Activity log is empty", extra={"path": str(path)})
        return []

    return rows_from_table(records[0], records[1:])
