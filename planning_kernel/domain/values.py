"""
Value enums -- the closed vocabularies of the planning kernel.

Responsibility:
    Defines every enumerated field (lifecycle states, downtime categories,
    inventory stages and statuses, transaction kinds) once, as ``str`` enums
    so that the stored column value IS the enum value.

Architecture position:
    Kernel > Domain -- pure values, zero I/O.  Imported by models/,
    services/, selectors/ and the DTOs.
"""

from enum import Enum


class LifecycleState(str, Enum):
    """Soft-delete state of a directory entity (Location, Division, Line)."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class DowntimeStatus(str, Enum):
    """Downtime approval state.

    Contract: pending -> approved (approve, needs an approver) or
    pending -> cancelled (cancel).  Approved and cancelled are terminal.
    """

    PENDING = "pending"
    APPROVED = "approved"
    CANCELLED = "cancelled"


class DowntimeCategory(str, Enum):
    MAINTENANCE = "maintenance"
    OVERHAUL = "overhaul"
    HOLIDAY = "holiday"
    ENERGY = "energy"
    AUDIT = "audit"
    TRAINING = "training"
    OTHER = "other"


class DurationUnit(str, Enum):
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class Recurrence(str, Enum):
    ONE_TIME = "one-time"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ImpactType(str, Enum):
    """How much of a line's capacity a downtime window removes."""

    FULL = "full"  # all capacity for the duration
    PARTIAL = "partial"  # capacity_reduction_percent of it


class InventoryStage(str, Enum):
    """Manufacturing process step at which stock is staged."""

    RAW_MATERIAL = "raw_material"
    FORGED = "forged"
    HEAT_TREATED = "heat_treated"
    PROCESSED = "processed"
    MACHINED = "machined"
    FINISHED_GOODS = "finished_goods"


class InventoryStatus(str, Enum):
    """Availability / quality state of a stock row."""

    AVAILABLE = "available"
    ALLOCATED = "allocated"
    IN_TRANSIT = "in_transit"
    INSPECTION = "inspection"
    CONSUMED = "consumed"
    DEFECTIVE = "defective"
    GODOWN = "godown"
    MRB = "mrb"  # material review board


class TransactionType(str, Enum):
    RECEIPT = "receipt"
    ISSUE = "issue"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"
    CONSUMPTION = "consumption"


class ReferenceType(str, Enum):
    DEMAND = "demand"
    PRODUCTION = "production"
    DIE = "die"
    MANUAL = "manual"
