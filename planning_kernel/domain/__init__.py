"""Pure domain core: values, DTOs, clock, workflows and impact weighting."""

from planning_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from planning_kernel.domain.dtos import (
    ChangeNotice,
    DivisionInfo,
    DowntimeContribution,
    DowntimeImpact,
    DowntimeInfo,
    InventoryInfo,
    LineInfo,
    LocationInfo,
    StageStatusSummary,
    StockAdjustment,
    TransactionInfo,
)
from planning_kernel.domain.values import (
    DowntimeCategory,
    DowntimeStatus,
    DurationUnit,
    ImpactType,
    InventoryStage,
    InventoryStatus,
    LifecycleState,
    Recurrence,
    ReferenceType,
    TransactionType,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "ChangeNotice",
    "LocationInfo",
    "DivisionInfo",
    "LineInfo",
    "DowntimeInfo",
    "DowntimeContribution",
    "DowntimeImpact",
    "InventoryInfo",
    "TransactionInfo",
    "StockAdjustment",
    "StageStatusSummary",
    "LifecycleState",
    "DowntimeStatus",
    "DowntimeCategory",
    "DurationUnit",
    "Recurrence",
    "ImpactType",
    "InventoryStage",
    "InventoryStatus",
    "TransactionType",
    "ReferenceType",
]
