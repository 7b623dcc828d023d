"""Tests for duration parsing, date coercion and row normalization."""

import sys
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fleetkpi.models import RawRow
from fleetkpi.normalize import coerce_date, fill_operators, normalize_rows, parse_duration


@pytest.mark.parametrize(
    "duration, expected",
    [
        ("1:30:00", 5400),
        ("0:00:45.500", 45),
        ("0:00:59.999", 59),
        ("10:05:07", 36307),
        ("", 0),
        (None, 0),
        ("12:5", 0),
        ("abc", 0),
        ("x:30:00", 1800),
        ("1:yy:10", 3610),
        ("1:00:00:99", 3600),
    ],
)
def test_parse_duration_handles_valid_and_malformed_values(duration, expected):
    """Verify duration parsing truncates fractions and falls back to zero silently."""
    assert parse_duration(duration) == expected


def test_parse_duration_reads_time_and_timedelta_cells():
    """Verify spreadsheet time cells are read by value."""
    assert parse_duration(time(2, 15, 30)) == 2 * 3600 + 15 * 60 + 30
    assert parse_duration(timedelta(hours=1, minutes=1)) == 3660
    assert parse_duration(timedelta(seconds=59, microseconds=999999)) == 59


def test_parse_duration_keeps_hours_of_cells_spanning_days():
    """Verify durations of a day or more are not dropped."""
    assert parse_duration(timedelta(days=1, hours=1)) == 90000
    assert parse_duration(timedelta(hours=25, minutes=30)) == 91800
    # h:mm:ss cells past one day come back as datetimes on the 1900 epoch
    assert parse_duration(datetime(1900, 1, 1, 6, 0)) == 30 * 3600
    assert parse_duration(datetime(1900, 1, 2, 0, 0, 15)) == 2 * 86400 + 15


def test_parse_duration_clamps_negative_timedelta():
    """Verify negative timedelta cells count as zero seconds."""
    assert parse_duration(timedelta(hours=-2)) == 0


def test_parse_duration_never_returns_negative_seconds():
    """Verify a negative total is clamped so duration_sec stays non-negative."""
    assert parse_duration("-1:00:00") == 0


def test_coerce_date_supports_common_shapes():
    """Verify dates of several shapes become ISO strings."""
    assert coerce_date("2024-01-15") == "2024-01-15"
    assert coerce_date("2024-01-15T08:30:00") == "2024-01-15"
    assert coerce_date("1/15/2024") == "2024-01-15"
    assert coerce_date("1/15/24") == "2024-01-15"
    assert coerce_date("15-Jan-2024") == "2024-01-15"
    assert coerce_date(date(2024, 3, 1)) == "2024-03-01"
    assert coerce_date(datetime(2024, 3, 1, 23, 0)) == "2024-03-01"


def test_coerce_date_converts_aware_values_to_utc():
    """Verify timezone-aware timestamps use their UTC calendar date."""
    assert coerce_date("2024-01-15T23:30:00-05:00") == "2024-01-16"
    assert coerce_date("2024-01-15T01:00:00Z") == "2024-01-15"


def test_coerce_date_reads_numbers_as_epoch_milliseconds():
    """Verify numeric dates are read as milliseconds since the Unix epoch."""
    moment = datetime(2024, 2, 29, 12, 0, tzinfo=timezone.utc)
    assert coerce_date(moment.timestamp() * 1000) == "2024-02-29"


@pytest.mark.parametrize("value", [None, "", "   ", "not a date", "13/45/2024", 0, True])
def test_coerce_date_returns_none_for_missing_or_invalid_values(value):
    """Verify invalid or absent dates stay absent instead of defaulting."""
    assert coerce_date(value) is None


def test_coerce_date_reads_slashed_dates_month_first():
    """Verify slashed dates are month-first and day-first text is not guessed."""
    assert coerce_date("03/04/2024") == "2024-03-04"
    assert coerce_date("3/4/24 14:05") == "2024-03-04"
    assert coerce_date("25/12/2024") is None
    assert coerce_date("2024/12/25") == "2024-12-25"


def test_fill_operators_pulls_nearest_later_value_backward():
    """Verify a blank operator takes the next non-blank operator in the group."""
    assert fill_operators(["", "B"]) == ["B", "B"]
    assert fill_operators([None, " ", "C", "", "D"]) == ["C", "C", "C", "D", "D"]


def test_fill_operators_leaves_trailing_blanks():
    """Verify blanks with no later operator are not carried forward."""
    assert fill_operators(["B", ""]) == ["B", ""]
    assert fill_operators(["A", "", ""]) == ["A", "", ""]


def test_normalize_rows_groups_by_vehicle_in_first_seen_order():
    """Verify output is the concatenation of vehicle groups, not input order."""
    rows = [
        RawRow(vehicle_name="V1", status="ready", duration="1:00:00"),
        RawRow(vehicle_name="V2", status="idle", duration="0:10:00"),
        RawRow(vehicle_name="V1", status="delay", duration="0:20:00"),
        RawRow(status="ready", duration="0:05:00"),
    ]

    normalized = normalize_rows(rows)

    assert len(normalized) == len(rows)
    assert [row.vehicle_name for row in normalized] == ["V1", "V1", "V2", None]
    assert [row.status for row in normalized] == ["READY", "DELAY", "IDLE", "READY"]


def test_normalize_rows_fills_operator_within_vehicle_only():
    """Verify operators are filled from later rows of the same vehicle only."""
    rows = [
        RawRow(vehicle_name="V1", operator_name=""),
        RawRow(vehicle_name="V2", operator_name="Zed"),
        RawRow(vehicle_name="V1", operator_name="  Alice  "),
        RawRow(vehicle_name="V1", operator_name=None),
    ]

    normalized = normalize_rows(rows)

    assert [(row.vehicle_name, row.operator_name) for row in normalized] == [
        ("V1", "Alice"),
        ("V1", "Alice"),
        ("V1", None),
        ("V2", "Zed"),
    ]


def test_normalize_rows_cleans_fields():
    """Verify status, option, date and duration fields are normalized."""
    rows = [
        RawRow(
            date="2024-05-02",
            vehicle_name=101.0,
            status="  breakdown ",
            duration="2:00:00",
            option="  Engine ",
            operator_name="   ",
        ),
        RawRow(vehicle_name=101),
    ]

    first, second = normalize_rows(rows)

    assert first.vehicle_name == "101"
    assert first.status == "BREAKDOWN"
    assert first.date == "2024-05-02"
    assert first.duration_sec == 7200
    assert first.option == "Engine"
    assert first.operator_name is None
    assert second.status == ""
    assert second.date is None
    assert second.duration_sec == 0
    assert second.option == ""


def test_normalize_rows_does_not_touch_raw_rows():
    """Verify normalization builds new records and leaves inputs unchanged."""
    raw = RawRow(vehicle_name="V1", operator_name="")
    rows = [raw, RawRow(vehicle_name="V1", operator_name="B")]

    normalize_rows(rows)

    assert raw.operator_name == ""


def test_normalize_rows_empty_input_returns_empty_list():
    """Verify empty input produces an empty result."""
    assert normalize_rows([]) == []
