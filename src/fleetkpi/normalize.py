"""Row normalization for raw equipment-activity logs.

This module turns loosely typed spreadsheet rows into ``NormalizedRow`` records:
- Durations written as ``H:MM:SS[.fraction]`` become whole seconds.
- Dates of any supported shape become ISO ``YYYY-MM-DD`` strings.
- Blank operator assignments are filled from later rows of the same vehicle.

Nothing here raises for malformed input. Values that cannot be read fall back
to documented defaults (``0`` seconds, no date, no operator).
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from openpyxl.utils.datetime import to_excel

from .models import NormalizedRow, RawRow

logger = logging.getLogger(__name__)

UNKNOWN_VEHICLE = "UNKNOWN"

SECONDS_PER_DAY = 86400

# Display formats accepted besides ISO-8601. Slashed dates are month-first
# (``03/04/2024`` is March 4th); day-first text such as ``25/12/2024`` is not
# recognised and yields no date.
_DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%y %H:%M",
    "%m/%d/%y %H:%M:%S",
    "%d-%b-%Y",
    "%d-%b-%y",
    "%d %b %Y",
    "%b %d, %Y",
    "%B %d, %Y",
)


def _as_text(value: Any) -> str:
    """Return the display string of a cell value (integral floats lose their ``.0``)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_blank(value: Any) -> bool:
    return value is None or _as_text(value).strip() == ""


def _to_number(text: str) -> float:
    """Parse one duration segment; anything unreadable counts as zero."""
    stripped = text.strip()
    if not stripped:
        return 0.0
    try:
        number = float(stripped)
    except ValueError:
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _clock_seconds(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def parse_duration(duration: Any) -> int:
    """Convert a colon-delimited ``H:MM:SS[.fraction]`` duration into whole seconds.

    Business logic:
    - At least three ``:``-separated segments are required; otherwise ``0``.
    - The fractional part of the seconds segment is truncated, not rounded.
    - A segment that is not numeric contributes ``0``.
    - ``None`` and empty strings yield ``0``.

    Native workbook cells are read by value, so ``[h]:mm:ss`` cells of a day or
    more keep all their hours:
    - ``timedelta`` gives its total seconds.
    - ``time`` gives its clock reading.
    - ``datetime`` is an ``h:mm:ss`` cell that ran past one day; its distance
      from the workbook epoch is the duration.
    """
    if duration is None:
        return 0

    if isinstance(duration, timedelta):
        return max(0, int(duration.total_seconds()))

    if isinstance(duration, datetime):
        days = int(to_excel(duration.replace(hour=0, minute=0, second=0, microsecond=0)))
        return max(0, days * SECONDS_PER_DAY + _clock_seconds(duration.time()))

    if isinstance(duration, time):
        return _clock_seconds(duration)

    text = duration if isinstance(duration, str) else str(duration)
    if not text:
        return 0

    parts = text.split(":")
    if len(parts) < 3:
        return 0

    hours = _to_number(parts[0])
    minutes = _to_number(parts[1])
    seconds = _to_number(parts[2].split(".")[0])

    total = hours * 3600 + minutes * 60 + seconds
    return max(0, int(total))


def _datetime_to_iso(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date().isoformat()


def _parse_date_text(text: str) -> Optional[str]:
    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return _datetime_to_iso(datetime.fromisoformat(normalized))
    except ValueError:
        pass

    for date_format in _DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format).date().isoformat()
        except ValueError:
            continue

    return None


def coerce_date(value: Any) -> Optional[str]:
    """Convert a date-like cell value into an ISO ``YYYY-MM-DD`` string.

    Supported inputs are ``datetime``/``date`` objects, ISO-8601 strings, common
    spreadsheet display formats (``1/15/2024``, ``15-Jan-2024``...) and numbers,
    which are read as milliseconds since the Unix epoch (UTC). Aware datetimes
    are converted to UTC before the calendar date is taken.

    Returns ``None`` for missing, falsy or unparseable values; no default date
    is ever substituted.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _datetime_to_iso(value)

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, (int, float)):
        if not value or not math.isfinite(value):
            return None
        try:
            moment = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
        return moment.date().isoformat()

    text = str(value).strip()
    if not text:
        return None

    return _parse_date_text(text)


def fill_operators(operators: List[Any]) -> List[Any]:
    """Fill blank operator values from the nearest later non-blank value.

    The scan looks ahead, not behind: ``["", "B"]`` becomes ``["B", "B"]`` while
    ``["B", ""]`` stays unchanged because no later value exists. Values are
    returned untouched otherwise (trimming happens during normalization).
    """
    filled: List[Any] = list(operators)
    upcoming: Any = None

    for index in range(len(filled) - 1, -1, -1):
        if _is_blank(filled[index]):
            if upcoming is not None:
                filled[index] = upcoming
        else:
            upcoming = filled[index]

    return filled


def group_by_vehicle(rows: Iterable[RawRow]) -> Dict[str, List[RawRow]]:
    """Partition rows by vehicle name, keeping first-seen group order."""
    groups: Dict[str, List[RawRow]] = {}
    for row in rows:
        key = UNKNOWN_VEHICLE if row.vehicle_name is None else _as_text(row.vehicle_name)
        groups.setdefault(key, []).append(row)
    return groups


def normalize_row(row: RawRow, operator_name: Any = None) -> NormalizedRow:
    """Build a ``NormalizedRow`` from one raw row and its (possibly filled) operator."""
    operator = None if _is_blank(operator_name) else _as_text(operator_name).strip()

    return NormalizedRow(
        vehicle_name=None if row.vehicle_name is None else _as_text(row.vehicle_name),
        status=("" if row.status is None else _as_text(row.status)).strip().upper(),
        date=coerce_date(row.date),
        duration_sec=parse_duration(row.duration),
        option=("" if row.option is None else _as_text(row.option)).strip(),
        operator_name=operator,
    )


def normalize_rows(rows: Iterable[RawRow]) -> List[NormalizedRow]:
    """Normalize a batch of raw rows.

    Rows are regrouped per vehicle (first-seen order) before operator filling,
    so the output is the concatenation of vehicle groups rather than the input
    order. The output always has the same length as the input.
    """
    normalized: List[NormalizedRow] = []

    for vehicle_rows in group_by_vehicle(rows).values():
        operators = fill_operators([row.operator_name for row in vehicle_rows])
        for row, operator_name in zip(vehicle_rows, operators):
            normalized.append(normalize_row(row, operator_name))

    logger.debug(
        "Normalized activity rows",
        extra={
            "rows_total": len(normalized),
            "rows_without_date": sum(1 for row in normalized if row.date is None),
            "rows_without_vehicle": sum(1 for row in normalized if row.vehicle_name is None),
            "rows_zero_duration": sum(1 for row in normalized if row.duration_sec == 0),
            "rows_without_operator": sum(1 for row in normalized if row.operator_name is None),
        },
    )

    return normalized
