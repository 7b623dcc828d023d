"""Tests for availability formulas, chart selections and report rendering."""

import sys
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fleetkpi.kpi import compute_all
from fleetkpi.models import NormalizedRow, OperatorMetrics, RawRow, Summary
from fleetkpi.operators import compute_operator_metrics, rank_operators
from fleetkpi.stats import (
    bottom_performers,
    bucket_seconds,
    format_hours,
    format_percent,
    generate_report,
    options_by_status,
    performance_distribution,
    physical_availability,
    status_distribution,
    top_vehicles_by,
    use_of_availability,
)


def _row(status: str, option: str, seconds: int) -> NormalizedRow:
    return NormalizedRow(
        vehicle_name="V1",
        status=status,
        date=None,
        duration_sec=seconds,
        option=option,
        operator_name=None,
    )


def _fleet_rows():
    return [
        RawRow(date="2024-01-01", vehicle_name="V1", status="READY", duration="8:00:00", operator_name="Ann"),
        RawRow(date="2024-01-01", vehicle_name="V1", status="BREAKDOWN", duration="2:00:00", option="Engine"),
        RawRow(date="2024-01-02", vehicle_name="V2", status="READY", duration="5:00:00", operator_name="Bob"),
        RawRow(date="2024-01-02", vehicle_name="V2", status="DELAY", duration="1:00:00", option="Queue"),
        RawRow(date="2024-01-02", vehicle_name="V2", status="IDLE", duration="3:00:00", option="Queue"),
        RawRow(vehicle_name="V3", status="SHIFT CHANGE", duration="0:30:00"),
    ]


def test_bucket_seconds_counts_known_statuses_only():
    """Verify bucket totals ignore unknown statuses and always include all buckets."""
    totals = bucket_seconds([_row("READY", "", 10), _row("READY", "", 5), _row("OTHER", "", 99)])

    assert totals == {"READY": 15, "BREAKDOWN": 0, "DELAY": 0, "IDLE": 0}


def test_availability_formulas_apply_fallbacks():
    """Verify PA/UA formulas and their zero-denominator fallbacks."""
    assert physical_availability(10, 2) == pytest.approx(80.0)
    assert physical_availability(0, 0) == 0.0
    assert physical_availability(0, 0, default=None) is None
    assert use_of_availability(10, 2, 2) == pytest.approx(75.0)
    assert use_of_availability(2, 2, 0) == 0.0
    assert use_of_availability(2, 2, 0, default=None) is None


def test_top_vehicles_by_and_bottom_performers_use_active_vehicles():
    """Verify top/bottom selections skip zero-MOHH vehicles."""
    result = compute_all(_fleet_rows())

    assert [v.vehicle_name for v in top_vehicles_by(result.vehicles, "idle_hours")] == ["V2", "V1"]
    assert [v.vehicle_name for v in top_vehicles_by(result.vehicles, "breakdown_hours", 1)] == ["V1"]
    assert [v.vehicle_name for v in bottom_performers(result.vehicles)] == ["V1", "V2"]


def test_status_distribution_drops_empty_shares():
    """Verify status shares split MOHH and omit zero entries."""
    summary = Summary(
        total_vehicles=1,
        avg_pa=100.0,
        avg_ua=100.0,
        total_mohh=4.0,
        total_breakdown=0.0,
        total_ready=3.0,
    )

    shares = status_distribution(summary)

    assert [share["name"] for share in shares] == ["Ready", "Delay/Idle"]
    assert shares[1]["value"] == pytest.approx(1.0)


def test_options_by_status_counts_option_under_each_status():
    """Verify the status breakdown keeps an option used under two statuses in both."""
    rows = [
        _row("DELAY", "Queue", 3600),
        _row("IDLE", "Queue", 1800),
        _row("DELAY", " Queue ", 3600),
        _row("DELAY", "Blast", 900),
        _row("READY", "", 3600),
    ]

    breakdown = options_by_status(rows)

    assert [entry["status"] for entry in breakdown] == ["DELAY", "IDLE"]
    delay = breakdown[0]
    assert delay["items"][0] == {"name": "Queue", "value": pytest.approx(2.0)}
    assert delay["total"] == pytest.approx(2.25)
    assert breakdown[1]["items"] == [{"name": "Queue", "value": pytest.approx(0.5)}]


def test_options_by_status_applies_limit():
    """Verify each status keeps at most ``limit`` options."""
    rows = [_row("READY", f"opt{index}", 60 * (index + 1)) for index in range(5)]

    (ready,) = options_by_status(rows, limit=2)

    assert [item["name"] for item in ready["items"]] == ["opt4", "opt3"]


def test_performance_distribution_bands_assigned_operators():
    """Verify PA bands count assigned operators and drop empty bands."""
    def _op(name, pa):
        return OperatorMetrics(name, 1, 1.0, pa, 0.0, 1.0, 0.0, 0.0, 0.0)

    bands = performance_distribution([_op("A", 95.0), _op("B", 90.0), _op("C", 50.0), _op("UNASSIGNED", 10.0)])

    assert [(band["name"], band["value"]) for band in bands] == [
        ("Excellent (>=90%)", 2),
        ("Needs Improvement (<75%)", 1),
    ]


def test_format_helpers_handle_missing_values():
    """Verify hour and percent formatting, including missing values."""
    assert format_hours(None) == "n/a"
    assert format_hours(1.25) == "1.2h"
    assert format_hours(0) == "0.0h"
    assert format_percent(None) == "n/a"
    assert format_percent(66.6666) == "66.7%"


def test_generate_report_output_format_contains_expected_sections_and_values():
    """Verify report output includes summary figures, rankings, trend and options."""
    result = compute_all(_fleet_rows())
    operators = rank_operators(compute_operator_metrics(result.normalized_rows))

    report = generate_report(result, operators, top_n=5)

    assert "Fleet KPI Report" in report
    assert "Vehicles: 3 (2 active)" in report
    assert "Total MOHH: 19.0h" in report
    assert "#1 V2 | PA=100.0% | UA=55.6%" in report
    assert "#2 V1 | PA=80.0% | UA=100.0%" in report
    assert "2024-01-01 | MOHH=10.0h | PA=80.0% | UA=100.0%" in report
    assert "#1 Ann" in report
    assert "#3 UNASSIGNED" in report
    assert "Queue: 3.0h" in report
    assert "Queue: 4.0h" not in report
    assert "DELAY (1.0h)" in report
    assert "IDLE (3.0h)" in report
    assert "Engine: 2.0h" in report


def test_generate_report_handles_empty_result():
    """Verify the report renders placeholders when there is no data."""
    result = compute_all([])

    report = generate_report(result, [], top_n=3)

    assert "Vehicles: 0 (0 active)" in report
    assert "(no dated rows)" in report
    assert "(none)" in report
