"""KPI aggregation over normalized equipment-activity rows.

This module derives three views from the same normalized rows:
- Per-vehicle combined metrics with a 1-based rank.
- A per-date trend series.
- A fleet summary with the activity-option distribution.

Each view is computed independently; none reads another's output except the
summary, which folds the already computed vehicle list.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .models import (
    FleetKPIResult,
    NormalizedRow,
    OptionShare,
    RawRow,
    Summary,
    TrendPoint,
    VehicleMetrics,
)
from .normalize import UNKNOWN_VEHICLE, normalize_rows
from .stats import (
    BREAKDOWN,
    DELAY,
    IDLE,
    READY,
    SECONDS_PER_HOUR,
    UNASSIGNED,
    bucket_seconds,
    efficiency,
    physical_availability,
    status_color,
    use_of_availability,
)

logger = logging.getLogger(__name__)

DIAGNOSTIC_SAMPLE_SIZE = 5

DiagnosticHook = Callable[[List[NormalizedRow]], None]


def dominant_operator(rows: Iterable[NormalizedRow]) -> Optional[str]:
    """Return the assigned operator that appears on the most rows.

    Unassigned rows are counted but never win. Ties go to the operator seen
    first. Returns ``None`` when every row is unassigned.
    """
    counts: Dict[str, int] = {}
    for row in rows:
        operator = row.operator_name or UNASSIGNED
        counts[operator] = counts.get(operator, 0) + 1

    best: Optional[str] = None
    best_count = 0
    for operator, count in counts.items():
        if operator != UNASSIGNED and count > best_count:
            best = operator
            best_count = count

    return best


def build_vehicle_metrics(vehicle_name: str, rows: Sequence[NormalizedRow]) -> VehicleMetrics:
    """Aggregate one vehicle's rows into hour buckets and availability ratios."""
    seconds = bucket_seconds(rows)
    ready = seconds[READY]
    delay = seconds[DELAY]
    idle = seconds[IDLE]
    breakdown = seconds[BREAKDOWN]

    delay_idle = delay + idle
    mohh = ready + delay_idle + breakdown

    pa = physical_availability(mohh, breakdown)
    ua = use_of_availability(mohh, breakdown, delay_idle)

    return VehicleMetrics(
        vehicle_name=vehicle_name,
        operator=dominant_operator(rows),
        breakdown_hours=breakdown / SECONDS_PER_HOUR,
        delay_hours=delay / SECONDS_PER_HOUR,
        idle_hours=idle / SECONDS_PER_HOUR,
        delay_idle_hours=delay_idle / SECONDS_PER_HOUR,
        productive_hours_ready=ready / SECONDS_PER_HOUR,
        total_hours_mohh=mohh / SECONDS_PER_HOUR,
        downtime_hours=breakdown / SECONDS_PER_HOUR,
        pa=pa,
        ua=ua,
        efficiency=efficiency(pa, ua),
        availability_score=pa,
    )


def rank_vehicles(vehicles: Iterable[VehicleMetrics]) -> List[VehicleMetrics]:
    """Sort vehicles and annotate each with its 1-based rank.

    Vehicles with MOHH are ordered by PA, then UA, then ready hours (all
    descending). Vehicles without MOHH follow in their incoming order and still
    receive a rank.
    """
    vehicles = list(vehicles)
    working = [vehicle for vehicle in vehicles if vehicle.total_hours_mohh != 0]
    inactive = [vehicle for vehicle in vehicles if vehicle.total_hours_mohh == 0]

    working.sort(
        key=lambda vehicle: (vehicle.pa, vehicle.ua, vehicle.productive_hours_ready),
        reverse=True,
    )

    return [
        replace(vehicle, rank=position)
        for position, vehicle in enumerate(working + inactive, start=1)
    ]


def compute_vehicle_metrics(rows: Iterable[NormalizedRow]) -> List[VehicleMetrics]:
    """Group rows by vehicle and return ranked ``VehicleMetrics``."""
    by_vehicle: Dict[str, List[NormalizedRow]] = {}
    for row in rows:
        key = UNKNOWN_VEHICLE if row.vehicle_name is None else row.vehicle_name
        by_vehicle.setdefault(key, []).append(row)

    return rank_vehicles(
        build_vehicle_metrics(vehicle_name, vehicle_rows)
        for vehicle_name, vehicle_rows in by_vehicle.items()
    )


def compute_trend(rows: Iterable[NormalizedRow]) -> List[TrendPoint]:
    """Aggregate fleet hours per calendar date.

    Rows without a date are left out. PA and UA are ``None`` (not ``0``) when
    their denominator is zero. Points are sorted by ISO date.
    """
    by_date: Dict[str, List[NormalizedRow]] = {}
    for row in rows:
        if not row.date:
            continue
        by_date.setdefault(row.date, []).append(row)

    trend: List[TrendPoint] = []
    for day, day_rows in by_date.items():
        seconds = bucket_seconds(day_rows)
        ready = seconds[READY]
        breakdown = seconds[BREAKDOWN]
        delay_idle = seconds[DELAY] + seconds[IDLE]
        mohh = ready + delay_idle + breakdown

        trend.append(
            TrendPoint(
                date=day,
                mohh_hours=mohh / SECONDS_PER_HOUR,
                breakdown_hours=breakdown / SECONDS_PER_HOUR,
                delay_hours=seconds[DELAY] / SECONDS_PER_HOUR,
                idle_hours=seconds[IDLE] / SECONDS_PER_HOUR,
                delay_idle_hours=delay_idle / SECONDS_PER_HOUR,
                ready_hours=ready / SECONDS_PER_HOUR,
                pa=physical_availability(mohh, breakdown, default=None),
                ua=use_of_availability(mohh, breakdown, delay_idle, default=None),
            )
        )

    trend.sort(key=lambda point: point.date)
    return trend


def compute_option_distribution(rows: Iterable[NormalizedRow]) -> List[OptionShare]:
    """Total hours per free-text option, largest first.

    The category of an option is the status of the last row that recorded it,
    so an option used under several statuses reports only the latest one.
    """
    seconds_by_option: Dict[str, int] = {}
    category_by_option: Dict[str, str] = {}

    for row in rows:
        if not row.option:
            continue
        seconds_by_option[row.option] = seconds_by_option.get(row.option, 0) + row.duration_sec
        category_by_option[row.option] = row.status

    shares = [
        OptionShare(
            name=name,
            value=seconds / SECONDS_PER_HOUR,
            color=status_color(category_by_option[name]),
            category=category_by_option[name],
        )
        for name, seconds in seconds_by_option.items()
    ]
    shares.sort(key=lambda share: share.value, reverse=True)
    return shares


def compute_summary(
    vehicles: Sequence[VehicleMetrics],
    rows: Iterable[NormalizedRow],
) -> Summary:
    """Build fleet totals, PA/UA averages and the option distribution.

    Averages only include vehicles with MOHH; totals include every vehicle.
    """
    active = [vehicle for vehicle in vehicles if vehicle.total_hours_mohh > 0]

    return Summary(
        total_vehicles=len(vehicles),
        avg_pa=sum(vehicle.pa for vehicle in active) / len(active) if active else 0.0,
        avg_ua=sum(vehicle.ua for vehicle in active) / len(active) if active else 0.0,
        total_mohh=sum(vehicle.total_hours_mohh for vehicle in vehicles),
        total_breakdown=sum(vehicle.breakdown_hours for vehicle in vehicles),
        total_ready=sum(vehicle.productive_hours_ready for vehicle in vehicles),
        option_distribution=tuple(compute_option_distribution(rows)),
    )


def compute_all(
    rows: Iterable[RawRow],
    diagnostic: Optional[DiagnosticHook] = None,
) -> FleetKPIResult:
    """Run the full pipeline over one batch of raw rows.

    Rows are normalized once; the vehicle, trend and summary views are then
    built from the normalized rows and returned together.

    Args:
        rows: Raw activity rows from any producer.
        diagnostic: Optional callback receiving the first few normalized rows,
            for inspecting how operators were filled.

    Returns:
        ``FleetKPIResult`` with vehicles, normalized rows, trend and summary.
    """
    normalized = normalize_rows(rows)

    sample = normalized[:DIAGNOSTIC_SAMPLE_SIZE]
    logger.debug(
        "Sample normalized rows",
        extra={
            "sample": [
                {"vehicle": row.vehicle_name, "operator": row.operator_name, "status": row.status}
                for row in sample
            ]
        },
    )
    if diagnostic is not None:
        diagnostic(sample)

    vehicles = compute_vehicle_metrics(normalized)
    trend = compute_trend(normalized)
    summary = compute_summary(vehicles, normalized)

    logger.info(
        "Computed fleet KPIs",
        extra={
            "rows_total": len(normalized),
            "vehicles": len(vehicles),
            "active_vehicles": sum(1 for vehicle in vehicles if vehicle.total_hours_mohh > 0),
            "trend_points": len(trend),
            "options": len(summary.option_distribution),
        },
    )

    return FleetKPIResult(
        vehicles=tuple(vehicles),
        normalized_rows=tuple(normalized),
        trend=tuple(trend),
        summary=summary,
    )
