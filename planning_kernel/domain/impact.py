"""
Downtime impact weighting -- pure functions, zero I/O.

A downtime window removes capacity-hours from its line:

    full     ->  duration
    partial  ->  duration * capacity_reduction_percent / 100
    other    ->  0

``duration`` is taken as recorded, whatever its ``duration_unit``.  All
arithmetic is Decimal.

Query windows are inclusive.  A ``date`` bound covers the whole day: a start
date means 00:00:00 UTC, an end date means 23:59:59.999999 UTC.  Naive
datetimes are taken to be UTC.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Iterable

from planning_kernel.domain.values import ImpactType

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def impact_hours(
    impact_type: str,
    duration: Decimal | int | str,
    capacity_reduction_percent: Decimal | int | str | None,
) -> Decimal:
    """Capacity-hours one downtime record removes."""
    if impact_type == ImpactType.FULL:
        return Decimal(duration)
    if impact_type == ImpactType.PARTIAL:
        percent = Decimal(capacity_reduction_percent or 0)
        return Decimal(duration) * percent / HUNDRED
    return ZERO


def total_impact(records: Iterable[tuple[str, Decimal, Decimal | None]]) -> Decimal:
    """Sum ``impact_hours`` over (impact_type, duration, percent) triples."""
    return sum(
        (impact_hours(kind, duration, percent) for kind, duration, percent in records),
        ZERO,
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def window_start(value: date | datetime) -> datetime:
    """Inclusive lower bound of a query window."""
    if isinstance(value, datetime):
        return _as_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def window_end(value: date | datetime) -> datetime:
    """Inclusive upper bound of a query window."""
    if isinstance(value, datetime):
        return _as_utc(value)
    return datetime.combine(value, time.max, tzinfo=timezone.utc)
