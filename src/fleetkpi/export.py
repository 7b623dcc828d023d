"""JSON export of engine results using the dashboard's field names."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Sequence

from .models import (
    FleetKPIResult,
    NormalizedRow,
    OperatorMetrics,
    OptionShare,
    Summary,
    TrendPoint,
    VehicleMetrics,
)


def vehicle_to_dict(vehicle: VehicleMetrics) -> Dict[str, Any]:
    return {
        "rank": vehicle.rank,
        "vehicle_name": vehicle.vehicle_name,
        "operator": vehicle.operator,
        "breakdown_hours": vehicle.breakdown_hours,
        "delay_hours": vehicle.delay_hours,
        "idle_hours": vehicle.idle_hours,
        "delay_idle_hours": vehicle.delay_idle_hours,
        "productive_hours_ready": vehicle.productive_hours_ready,
        "total_hours_mohh": vehicle.total_hours_mohh,
        "downtime_hours": vehicle.downtime_hours,
        "pa": vehicle.pa,
        "ua": vehicle.ua,
        "efficiency": vehicle.efficiency,
        "availability_score": vehicle.availability_score,
    }


def row_to_dict(row: NormalizedRow) -> Dict[str, Any]:
    return {
        "vehicle_name": row.vehicle_name,
        "status": row.status,
        "date": row.date,
        "duration_sec": row.duration_sec,
        "option": row.option,
        "operator_name": row.operator_name,
    }


def trend_point_to_dict(point: TrendPoint) -> Dict[str, Any]:
    return {
        "date": point.date,
        "mohh_hours": point.mohh_hours,
        "breakdown_hours": point.breakdown_hours,
        "delay_hours": point.delay_hours,
        "idle_hours": point.idle_hours,
        "delay_idle_hours": point.delay_idle_hours,
        "ready_hours": point.ready_hours,
        "pa": point.pa,
        "ua": point.ua,
    }


def option_to_dict(share: OptionShare) -> Dict[str, Any]:
    return {
        "name": share.name,
        "value": share.value,
        "color": share.color,
        "category": share.category,
    }


def summary_to_dict(summary: Summary) -> Dict[str, Any]:
    return {
        "totalVehicles": summary.total_vehicles,
        "avgPA": summary.avg_pa,
        "avgUA": summary.avg_ua,
        "totalMOHH": summary.total_mohh,
        "totalBreakdown": summary.total_breakdown,
        "totalReady": summary.total_ready,
        "optionDistribution": [option_to_dict(share) for share in summary.option_distribution],
    }


def operator_to_dict(operator: OperatorMetrics) -> Dict[str, Any]:
    return {
        "rank": operator.rank,
        "operator": operator.operator,
        "vehicleCount": operator.vehicle_count,
        "totalHours": operator.total_hours,
        "avgPA": operator.avg_pa,
        "avgUA": operator.avg_ua,
        "readyHours": operator.ready_hours,
        "totalBreakdown": operator.total_breakdown,
        "totalDelay": operator.total_delay,
        "totalIdle": operator.total_idle,
    }


def result_to_dict(
    result: FleetKPIResult,
    operators: Optional[Sequence[OperatorMetrics]] = None,
) -> Dict[str, Any]:
    """Build a JSON-ready mapping of the engine outputs.

    ``operators`` is included under ``"operators"`` only when given.
    """
    payload: Dict[str, Any] = {
        "vehicles": [vehicle_to_dict(vehicle) for vehicle in result.vehicles],
        "normalizedRows": [row_to_dict(row) for row in result.normalized_rows],
        "trend": [trend_point_to_dict(point) for point in result.trend],
        "summary": summary_to_dict(result.summary),
    }
    if operators is not None:
        payload["operators"] = [operator_to_dict(operator) for operator in operators]
    return payload


def dump_json(
    result: FleetKPIResult,
    operators: Optional[Sequence[OperatorMetrics]] = None,
    indent: Optional[int] = 2,
) -> str:
    """Serialize engine outputs as a JSON document."""
    return json.dumps(result_to_dict(result, operators), indent=indent)
