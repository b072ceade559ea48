"""
Module: planning_kernel.models.downtime
Responsibility: ORM persistence for scheduled line downtime windows and their
    approval state.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - line_id always resolves (FK).
    - status is one of DowntimeStatus; approved rows carry approved_by.
      Both are maintained by DowntimeLedger, not by the ORM.
    - Rows are never deleted.  Cancelling keeps the row for history and
      removes it from impact figures and default listings.

Failure modes:
    - IntegrityError if line_id does not exist (surfaced as StorageError).
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from planning_kernel.db.base import TrackedBase, UUIDString
from planning_kernel.domain.dtos import DowntimeInfo
from planning_kernel.domain.values import (
    DowntimeCategory,
    DowntimeStatus,
    DurationUnit,
    ImpactType,
    Recurrence,
)


class LineDowntime(TrackedBase):
    """
    A window during which a line loses some or all of its capacity.

    ``duration`` is the lost time expressed in ``duration_unit``.  Impact
    figures weight it by ``impact_type``: full counts all of it, partial
    counts ``capacity_reduction_percent`` of it.  Recurrence fields are
    descriptive; a recurring window is stored and counted once.
    """

    __tablename__ = "line_downtime"

    __table_args__ = (
        Index("idx_downtime_line_window", "line_id", "start_date_time", "end_date_time"),
        Index("idx_downtime_status", "status"),
    )

    line_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("lines.id"),
        nullable=False,
    )

    reason: Mapped[str] = mapped_column(String(500), nullable=False)

    category: Mapped[DowntimeCategory] = mapped_column(
        String(20),
        nullable=False,
        default=DowntimeCategory.OTHER.value,
    )

    start_date_time: Mapped[datetime] = mapped_column(nullable=False)
    end_date_time: Mapped[datetime] = mapped_column(nullable=False)

    duration: Mapped[Decimal] = mapped_column(nullable=False)

    duration_unit: Mapped[DurationUnit] = mapped_column(
        String(10),
        nullable=False,
        default=DurationUnit.HOURS.value,
    )

    recurrence: Mapped[Recurrence | None] = mapped_column(String(10), nullable=True)
    recurrence_end_date: Mapped[date | None] = mapped_column(nullable=True)

    impact_type: Mapped[ImpactType] = mapped_column(
        String(10),
        nullable=False,
        default=ImpactType.FULL.value,
    )

    capacity_reduction_percent: Mapped[Decimal | None] = mapped_column(nullable=True)

    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    # Opaque user identifiers
    created_by: Mapped[str] = mapped_column(String(100), nullable=False)
    approved_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[DowntimeStatus] = mapped_column(
        String(10),
        nullable=False,
        default=DowntimeStatus.PENDING.value,
    )

    def to_dto(
        self,
        line_name: str | None = None,
        line_code: str | None = None,
        division_name: str | None = None,
        location_name: str | None = None,
    ) -> DowntimeInfo:
        return DowntimeInfo(
            id=self.id,
            line_id=self.line_id,
            reason=self.reason,
            category=DowntimeCategory(self.category),
            start_date_time=self.start_date_time,
            end_date_time=self.end_date_time,
            duration=self.duration,
            duration_unit=DurationUnit(self.duration_unit),
            recurrence=Recurrence(self.recurrence) if self.recurrence else None,
            recurrence_end_date=self.recurrence_end_date,
            impact_type=ImpactType(self.impact_type),
            capacity_reduction_percent=self.capacity_reduction_percent,
            notes=self.notes,
            created_by=self.created_by,
            approved_by=self.approved_by,
            status=DowntimeStatus(self.status),
            created_at=self.created_at,
            updated_at=self.updated_at,
            line_name=line_name,
            line_code=line_code,
            division_name=division_name,
            location_name=location_name,
        )

    def __repr__(self) -> str:
        return f"<LineDowntime {self.id} line={self.line_id} {self.status}>"
