"""
Data Transfer Objects -- immutable results returned by directories, ledgers
and selectors.

Responsibility:
    Frozen dataclasses that carry entity data out of the kernel.  Services
    never hand ORM instances to callers; they convert with ``to_dto()`` at
    the boundary.

Architecture position:
    Kernel > Domain -- pure values, zero I/O.

Display fields:
    ``location_name``, ``division_name``, ``line_name`` and friends are
    resolved by listing joins for display only.  They are never persisted
    and are None when the DTO comes from a plain ``get``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from planning_kernel.domain.values import (
    DowntimeCategory,
    DowntimeStatus,
    DurationUnit,
    ImpactType,
    InventoryStage,
    InventoryStatus,
    Recurrence,
    ReferenceType,
    TransactionType,
)

# =============================================================================
# Hierarchy
# =============================================================================


@dataclass(frozen=True)
class LocationInfo:
    id: UUID
    code: str
    name: str
    address: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class DivisionInfo:
    id: UUID
    location_id: UUID
    code: str
    name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    location_name: str | None = None
    location_code: str | None = None


@dataclass(frozen=True)
class LineInfo:
    id: UUID
    division_id: UUID
    code: str
    name: str
    press_tonnage: Decimal | None
    shut_height_min: Decimal | None
    shut_height_max: Decimal | None
    is_continuous: bool
    gross_hours_per_week: Decimal
    absenteeism_factor: Decimal
    unplanned_downtime_buffer: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime
    division_name: str | None = None
    division_code: str | None = None
    location_name: str | None = None
    location_code: str | None = None


# =============================================================================
# Downtime
# =============================================================================


@dataclass(frozen=True)
class DowntimeInfo:
    """A line downtime window and its approval state."""

    id: UUID
    line_id: UUID
    reason: str
    category: DowntimeCategory
    start_date_time: datetime
    end_date_time: datetime
    duration: Decimal
    duration_unit: DurationUnit
    recurrence: Recurrence | None
    recurrence_end_date: date | None
    impact_type: ImpactType
    capacity_reduction_percent: Decimal | None
    notes: str | None
    created_by: str
    approved_by: str | None
    status: DowntimeStatus
    created_at: datetime
    updated_at: datetime
    line_name: str | None = None
    line_code: str | None = None
    division_name: str | None = None
    location_name: str | None = None

    @property
    def is_committed(self) -> bool:
        """Approved windows are committed capacity loss."""
        return self.status == DowntimeStatus.APPROVED


@dataclass(frozen=True)
class DowntimeContribution:
    """One record's share of a line's lost capacity-hours."""

    downtime_id: UUID
    status: DowntimeStatus
    impact_type: ImpactType
    duration: Decimal
    capacity_reduction_percent: Decimal | None
    impact_hours: Decimal


@dataclass(frozen=True)
class DowntimeImpact:
    """Capacity-hours lost on a line over a window, with its breakdown."""

    line_id: UUID
    window_start: datetime
    window_end: datetime
    total_hours: Decimal
    contributions: tuple[DowntimeContribution, ...] = field(default_factory=tuple)


# =============================================================================
# Inventory
# =============================================================================


@dataclass(frozen=True)
class InventoryInfo:
    id: UUID
    part_id: str | None
    die_id: str | None
    raw_material_code: str | None
    stage: InventoryStage
    status: InventoryStatus
    quantity: int
    initial_quantity: int
    location_id: UUID
    division_id: UUID | None
    line_id: UUID | None
    lot_number: str | None
    batch_number: str | None
    expiry_date: date | None
    valuation_rate: Decimal | None
    created_at: datetime
    updated_at: datetime
    location_name: str | None = None

    @property
    def value(self) -> Decimal:
        """On-hand value; a missing valuation rate counts as zero."""
        return Decimal(self.quantity) * (self.valuation_rate or Decimal("0"))


@dataclass(frozen=True)
class TransactionInfo:
    """One immutable stock-ledger row."""

    id: UUID
    inventory_id: UUID
    transaction_type: TransactionType
    quantity: int
    from_status: InventoryStatus | None
    to_status: InventoryStatus | None
    from_stage: InventoryStage | None
    to_stage: InventoryStage | None
    reference_type: ReferenceType | None
    reference_id: str | None
    notes: str | None
    created_by: str
    created_at: datetime
    part_id: str | None = None


@dataclass(frozen=True)
class StockAdjustment:
    """Outcome of InventoryLedger.adjust_stock."""

    inventory_id: UUID
    transaction_id: UUID
    old_quantity: int
    new_quantity: int
    delta_quantity: int
    status: InventoryStatus


@dataclass(frozen=True)
class StageStatusSummary:
    """Inventory totals for one (stage, status) pair."""

    stage: InventoryStage
    status: InventoryStatus
    item_count: int
    total_quantity: int
    total_value: Decimal


# =============================================================================
# Observer notices
# =============================================================================


@dataclass(frozen=True)
class ChangeNotice:
    """Published to observers after every successful mutation."""

    entity_type: str
    action: str
    entity_id: UUID
