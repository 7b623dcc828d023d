"""Domain models for fleet equipment-activity KPI processing.

Raw rows come straight from a spreadsheet and carry no type guarantees. Every
other model is produced by the aggregation engine and is immutable; ranking
builds new instances rather than mutating existing ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple


@dataclass(frozen=True, slots=True)
class RawRow:
    """Represents one activity-status interval exactly as read from the input sheet."""

    date: Any = None
    vehicle_name: Any = None
    status: Any = None
    duration: Any = None
    option: Any = None
    operator_name: Any = None


@dataclass(frozen=True, slots=True)
class NormalizedRow:
    """Represents a cleaned activity row with duration expressed in seconds."""

    vehicle_name: Optional[str]
    status: str
    date: Optional[str]
    duration_sec: int
    option: str
    operator_name: Optional[str]


@dataclass(frozen=True, slots=True)
class VehicleMetrics:
    """Represents combined hour buckets and availability ratios for one vehicle."""

    vehicle_name: str
    breakdown_hours: float
    delay_hours: float
    idle_hours: float
    delay_idle_hours: float
    productive_hours_ready: float
    total_hours_mohh: float
    downtime_hours: float
    pa: float
    ua: float
    efficiency: float
    availability_score: float
    operator: Optional[str] = None
    rank: Optional[int] = None


@dataclass(frozen=True, slots=True)
class TrendPoint:
    """Represents fleet-wide hour buckets for one calendar date."""

    date: str
    mohh_hours: float
    breakdown_hours: float
    delay_hours: float
    idle_hours: float
    delay_idle_hours: float
    ready_hours: float
    pa: Optional[float]
    ua: Optional[float]


@dataclass(frozen=True, slots=True)
class OptionShare:
    """Represents total hours recorded against one free-text activity option."""

    name: str
    value: float
    color: str
    category: str


@dataclass(frozen=True, slots=True)
class Summary:
    """Represents fleet-wide totals and averages for one computation run."""

    total_vehicles: int
    avg_pa: float
    avg_ua: float
    total_mohh: float
    total_breakdown: float
    total_ready: float
    option_distribution: Tuple[OptionShare, ...] = ()


@dataclass(frozen=True, slots=True)
class OperatorMetrics:
    """Represents hour buckets and availability ratios rolled up per operator."""

    operator: str
    vehicle_count: int
    total_hours: float
    avg_pa: float
    avg_ua: float
    ready_hours: float
    total_breakdown: float
    total_delay: float
    total_idle: float
    rank: Optional[int] = None


@dataclass(frozen=True, slots=True)
class OperatorSummary:
    """Represents headline figures for the operator dashboard."""

    total_operators: int
    avg_vehicles_per_operator: float
    best_pa: float
    best_ua: float


@dataclass(frozen=True, slots=True)
class FleetKPIResult:
    """Represents the four output structures of one engine run."""

    vehicles: Tuple[VehicleMetrics, ...]
    normalized_rows: Tuple[NormalizedRow, ...]
    trend: Tuple[TrendPoint, ...]
    summary: Summary
