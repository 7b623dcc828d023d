"""Availability formulas, chart selections and report rendering for fleet KPIs.

This module provides utilities for:
- Summing activity seconds into the four status buckets.
- Computing Physical Availability (PA), Utilization Availability (UA) and
  efficiency with explicit zero-denominator fallbacks.
- Selecting the top/bottom vehicle lists and distributions shown in reports.
- Building a human-readable plain-text KPI report.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from .models import (
    FleetKPIResult,
    NormalizedRow,
    OperatorMetrics,
    Summary,
    VehicleMetrics,
)

SECONDS_PER_HOUR = 3600

READY = "READY"
BREAKDOWN = "BREAKDOWN"
DELAY = "DELAY"
IDLE = "IDLE"
STATUSES = (READY, BREAKDOWN, DELAY, IDLE)

UNASSIGNED = "UNASSIGNED"

STATUS_COLORS: Dict[str, str] = {
    READY: "#10b981",
    IDLE: "#8b5cf6",
    DELAY: "#f59e0b",
    BREAKDOWN: "#ef4444",
}
NEUTRAL_COLOR = "#64748b"


def bucket_seconds(rows: Iterable[NormalizedRow]) -> Dict[str, int]:
    """Sum ``duration_sec`` per status bucket.

    Only the four known statuses are counted; rows with any other status are
    ignored. Every bucket key is always present.
    """
    totals = {status: 0 for status in STATUSES}
    for row in rows:
        if row.status in totals:
            totals[row.status] += row.duration_sec
    return totals


def physical_availability(
    mohh: float,
    breakdown: float,
    default: Optional[float] = 0.0,
) -> Optional[float]:
    """Return PA as a percentage, or ``default`` when ``mohh`` is zero.

    ``PA = (MOHH - breakdown) / MOHH * 100``
    """
    if mohh > 0:
        return (mohh - breakdown) / mohh * 100
    return default


def use_of_availability(
    mohh: float,
    breakdown: float,
    delay_idle: float,
    default: Optional[float] = 0.0,
) -> Optional[float]:
    """Return UA as a percentage, or ``default`` when no available hours exist.

    ``UA = (MOHH - breakdown - delay_idle) / (MOHH - breakdown) * 100``
    """
    available = mohh - breakdown
    if available > 0:
        return (available - delay_idle) / available * 100
    return default


def efficiency(pa: float, ua: float) -> float:
    return pa * ua / 100


def status_color(category: str) -> str:
    return STATUS_COLORS.get(category, NEUTRAL_COLOR)


def active_vehicles(vehicles: Iterable[VehicleMetrics]) -> List[VehicleMetrics]:
    """Return vehicles with nonzero MOHH, preserving their order."""
    return [vehicle for vehicle in vehicles if vehicle.total_hours_mohh > 0]


def top_vehicles_by(
    vehicles: Sequence[VehicleMetrics],
    field_name: str,
    limit: int = 10,
) -> List[VehicleMetrics]:
    """Return the active vehicles with the most hours in ``field_name``.

    Typical fields are ``breakdown_hours``, ``delay_hours`` and ``idle_hours``.
    """
    ordered = sorted(
        active_vehicles(vehicles),
        key=lambda vehicle: getattr(vehicle, field_name),
        reverse=True,
    )
    return ordered[:limit]


def bottom_performers(vehicles: Sequence[VehicleMetrics], limit: int = 10) -> List[VehicleMetrics]:
    """Return active vehicles with the lowest PA first."""
    return sorted(active_vehicles(vehicles), key=lambda vehicle: vehicle.pa)[:limit]


def status_distribution(summary: Summary) -> List[Dict[str, object]]:
    """Split fleet MOHH into Ready, Breakdown and Delay/Idle shares.

    Entries with no hours are dropped.
    """
    entries = [
        {"name": "Ready", "value": summary.total_ready, "color": STATUS_COLORS[READY]},
        {"name": "Breakdown", "value": summary.total_breakdown, "color": STATUS_COLORS[BREAKDOWN]},
        {
            "name": "Delay/Idle",
            "value": summary.total_mohh - summary.total_ready - summary.total_breakdown,
            "color": STATUS_COLORS[DELAY],
        },
    ]
    return [entry for entry in entries if entry["value"] > 0]


def options_by_status(
    normalized_rows: Sequence[NormalizedRow],
    limit: int = 10,
) -> List[Dict[str, object]]:
    """Break option hours down per (status, option) pair.

    Unlike the summary option distribution, an option recorded under two
    statuses is counted under both. Each status keeps its ``limit`` largest
    options; ``total`` is the sum of the kept options. Statuses without any
    option are dropped.
    """
    breakdown: List[Dict[str, object]] = []

    for status in STATUSES:
        seconds_by_option: Dict[str, int] = {}
        for row in normalized_rows:
            if row.status != status or not row.option.strip():
                continue
            option = row.option.strip()
            seconds_by_option[option] = seconds_by_option.get(option, 0) + row.duration_sec

        items = sorted(
            (
                {"name": name, "value": seconds / SECONDS_PER_HOUR}
                for name, seconds in seconds_by_option.items()
            ),
            key=lambda item: item["value"],
            reverse=True,
        )[:limit]

        if items:
            breakdown.append(
                {
                    "status": status,
                    "items": items,
                    "total": sum(item["value"] for item in items),
                }
            )

    return breakdown


def performance_distribution(operators: Iterable[OperatorMetrics]) -> List[Dict[str, object]]:
    """Count assigned operators per PA band (>=90, 75-90, <75).

    Bands with no operators are dropped.
    """
    assigned = [operator for operator in operators if operator.operator != UNASSIGNED]
    entries = [
        {
            "name": "Excellent (>=90%)",
            "value": sum(1 for operator in assigned if operator.avg_pa >= 90),
            "color": STATUS_COLORS[READY],
        },
        {
            "name": "Good (75-89%)",
            "value": sum(1 for operator in assigned if 75 <= operator.avg_pa < 90),
            "color": STATUS_COLORS[DELAY],
        },
        {
            "name": "Needs Improvement (<75%)",
            "value": sum(1 for operator in assigned if operator.avg_pa < 75),
            "color": STATUS_COLORS[BREAKDOWN],
        },
    ]
    return [entry for entry in entries if entry["value"] > 0]


def format_hours(hours: Optional[float]) -> str:
    """Format hours with one decimal, or ``"n/a"`` when missing."""
    if hours is None:
        return "n/a"
    return f"{hours:.1f}h"


def format_percent(value: Optional[float]) -> str:
    """Format a percentage with one decimal, or ``"n/a"`` when missing."""
    if value is None:
        return "n/a"
    return f"{value:.1f}%"


def _vehicle_line(vehicle: VehicleMetrics) -> str:
    rank = vehicle.rank if vehicle.rank is not None else "-"
    return (
        f"   #{rank} {vehicle.vehicle_name}"
        f" | PA={format_percent(vehicle.pa)}"
        f" | UA={format_percent(vehicle.ua)}"
        f" | MOHH={format_hours(vehicle.total_hours_mohh)}"
        f" | Ready={format_hours(vehicle.productive_hours_ready)}"
        f" | Operator={vehicle.operator or 'n/a'}"
    )


def _hours_lines(vehicles: Sequence[VehicleMetrics], field_name: str) -> List[str]:
    if not vehicles:
        return ["   (none)"]
    return [
        f"   {vehicle.vehicle_name}: {format_hours(getattr(vehicle, field_name))}"
        for vehicle in vehicles
    ]


def generate_report(
    result: FleetKPIResult,
    operators: Sequence[OperatorMetrics],
    top_n: int = 10,
) -> str:
    """Generate a human-readable fleet KPI report.

    The report includes fleet summary figures, the best and worst vehicles by
    PA, the vehicles with most breakdown/delay/idle hours, the daily trend, the
    operator ranking and the option hours per status.

    Args:
        result: Output of :func:`fleetkpi.kpi.compute_all`.
        operators: Ranked operator metrics.
        top_n: Maximum number of entries in each top/bottom list.

    Returns:
        Formatted multi-line text report.
    """
    summary = result.summary
    active = active_vehicles(result.vehicles)

    lines = [
        "Fleet KPI Report",
        "",
        "1) Fleet Summary",
        f"   Vehicles: {summary.total_vehicles} ({len(active)} active)",
        f"   Average PA: {format_percent(summary.avg_pa)}",
        f"   Average UA: {format_percent(summary.avg_ua)}",
        f"   Total MOHH: {format_hours(summary.total_mohh)}",
        f"   Total Breakdown: {format_hours(summary.total_breakdown)}",
        f"   Total Ready: {format_hours(summary.total_ready)}",
    ]
    for share in status_distribution(summary):
        lines.append(f"   {share['name']} share: {format_hours(share['value'])}")

    lines.extend(["", f"2) Top {top_n} Vehicles (PA, UA, Ready)"])
    lines.extend(_vehicle_line(vehicle) for vehicle in active[:top_n])
    if not active:
        lines.append("   (none)")

    lines.extend(["", f"3) Bottom {top_n} Vehicles (lowest PA)"])
    lines.extend(_vehicle_line(vehicle) for vehicle in bottom_performers(result.vehicles, top_n))
    if not active:
        lines.append("   (none)")

    lines.extend(["", "4) Most Breakdown Hours"])
    lines.extend(_hours_lines(top_vehicles_by(result.vehicles, "breakdown_hours", top_n), "breakdown_hours"))
    lines.extend(["", "5) Most Delay Hours"])
    lines.extend(_hours_lines(top_vehicles_by(result.vehicles, "delay_hours", top_n), "delay_hours"))
    lines.extend(["", "6) Most Idle Hours"])
    lines.extend(_hours_lines(top_vehicles_by(result.vehicles, "idle_hours", top_n), "idle_hours"))

    lines.extend(["", "7) Daily Trend"])
    for point in result.trend:
        lines.append(
            f"   {point.date}"
            f" | MOHH={format_hours(point.mohh_hours)}"
            f" | PA={format_percent(point.pa)}"
            f" | UA={format_percent(point.ua)}"
        )
    if not result.trend:
        lines.append("   (no dated rows)")

    lines.extend(["", "8) Operator Ranking"])
    ranked = [operator for operator in operators if operator.rank is not None]
    for operator in ranked[:top_n]:
        lines.append(
            f"   #{operator.rank} {operator.operator}"
            f" | PA={format_percent(operator.avg_pa)}"
            f" | UA={format_percent(operator.avg_ua)}"
            f" | Hours={format_hours(operator.total_hours)}"
            f" | Vehicles={operator.vehicle_count}"
        )
    if not ranked:
        lines.append("   (none)")
    for band in performance_distribution(operators):
        lines.append(f"   {band['name']}: {band['value']} operator(s)")

    lines.extend(["", "9) Activity Options by Status"])
    breakdown = options_by_status(result.normalized_rows, top_n)
    for entry in breakdown:
        lines.append(f"   {entry['status']} ({format_hours(entry['total'])})")
        for item in entry["items"]:
            lines.append(f"      {item['name']}: {format_hours(item['value'])}")
    if not breakdown:
        lines.append("   (none)")

    return "\n".join(lines)
