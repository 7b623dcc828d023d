"""Operator rollups over normalized equipment-activity rows.

Operator figures are summed straight from the rows each operator worked, not
averaged from per-vehicle PA/UA. An operator who split time across vehicles is
therefore judged on the hours they actually logged.
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .models import NormalizedRow, OperatorMetrics, OperatorSummary
from .stats import (
    BREAKDOWN,
    DELAY,
    IDLE,
    READY,
    SECONDS_PER_HOUR,
    UNASSIGNED,
    bucket_seconds,
    physical_availability,
    use_of_availability,
)

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = frozenset(field.name for field in fields(OperatorMetrics))


def operator_key(row: NormalizedRow) -> str:
    """Return the grouping key of a row's operator (``UNASSIGNED`` when blank)."""
    return (row.operator_name or "").strip() or UNASSIGNED


def build_operator_metrics(operator: str, rows: Sequence[NormalizedRow]) -> OperatorMetrics:
    """Aggregate one operator's rows into hour buckets and availability ratios."""
    vehicles: Set[Optional[str]] = {row.vehicle_name for row in rows}
    seconds = bucket_seconds(rows)

    ready_hours = seconds[READY] / SECONDS_PER_HOUR
    total_breakdown = seconds[BREAKDOWN] / SECONDS_PER_HOUR
    total_delay = seconds[DELAY] / SECONDS_PER_HOUR
    total_idle = seconds[IDLE] / SECONDS_PER_HOUR
    total_hours = ready_hours + total_breakdown + total_delay + total_idle

    return OperatorMetrics(
        operator=operator,
        vehicle_count=len(vehicles),
        total_hours=total_hours,
        avg_pa=physical_availability(total_hours, total_breakdown),
        avg_ua=use_of_availability(total_hours, total_breakdown, total_delay + total_idle),
        ready_hours=ready_hours,
        total_breakdown=total_breakdown,
        total_delay=total_delay,
        total_idle=total_idle,
    )


def compute_operator_metrics(normalized_rows: Iterable[NormalizedRow]) -> List[OperatorMetrics]:
    """Group rows by operator and compute per-operator metrics.

    Operators are returned unranked, in the order they were first seen.
    """
    by_operator: Dict[str, List[NormalizedRow]] = {}
    for row in normalized_rows:
        by_operator.setdefault(operator_key(row), []).append(row)

    operators = [
        build_operator_metrics(operator, rows) for operator, rows in by_operator.items()
    ]

    logger.debug(
        "Computed operator metrics",
        extra={
            "operators": len(operators),
            "unassigned_rows": len(by_operator.get(UNASSIGNED, [])),
        },
    )

    return operators


def rank_operators(operators: Iterable[OperatorMetrics]) -> List[OperatorMetrics]:
    """Order operators for display and assign ranks.

    Operators with logged hours are sorted by PA, then UA, then total hours (all
    descending) and ranked from 1. Operators without hours follow in
    alphabetical order and keep ``rank=None``.
    """
    operators = list(operators)
    active = [operator for operator in operators if operator.total_hours > 0]
    idle = [operator for operator in operators if not operator.total_hours > 0]

    active.sort(
        key=lambda operator: (operator.avg_pa, operator.avg_ua, operator.total_hours),
        reverse=True,
    )
    idle.sort(key=lambda operator: (operator.operator.casefold(), operator.operator))

    ranked = [replace(operator, rank=position) for position, operator in enumerate(active, start=1)]
    ranked.extend(replace(operator, rank=None) for operator in idle)
    return ranked


def summarize_operators(operators: Sequence[OperatorMetrics]) -> OperatorSummary:
    """Return headline operator figures (count, vehicles per operator, best PA/UA)."""
    if not operators:
        return OperatorSummary(
            total_operators=0,
            avg_vehicles_per_operator=0.0,
            best_pa=0.0,
            best_ua=0.0,
        )

    return OperatorSummary(
        total_operators=len(operators),
        avg_vehicles_per_operator=sum(operator.vehicle_count for operator in operators) / len(operators),
        best_pa=max(operator.avg_pa for operator in operators),
        best_ua=max(operator.avg_ua for operator in operators),
    )


def sort_operators(
    operators: Iterable[OperatorMetrics],
    key: str,
    descending: bool = False,
) -> List[OperatorMetrics]:
    """Sort operators by any ``OperatorMetrics`` field.

    Text fields compare case-insensitively. Operators whose value is ``None``
    (an unranked ``rank``) always go last.

    Raises:
        ValueError: If ``key`` is not an ``OperatorMetrics`` field.
    """
    if key not in SORTABLE_FIELDS:
        raise ValueError(f"Cannot sort operators by unknown field '{key}'.")

    operators = list(operators)
    present = [operator for operator in operators if getattr(operator, key) is not None]
    missing = [operator for operator in operators if getattr(operator, key) is None]

    def _value(operator: OperatorMetrics) -> object:
        value = getattr(operator, key)
        return value.casefold() if isinstance(value, str) else value

    present.sort(key=_value, reverse=descending)
    return present + missing


def filter_operators(operators: Iterable[OperatorMetrics], text: str) -> List[OperatorMetrics]:
    """Keep operators whose name contains ``text`` (case-insensitive).

    Blank filter text keeps every operator.
    """
    needle = text.strip().lower()
    if not needle:
        return list(operators)
    return [operator for operator in operators if needle in operator.operator.lower()]
