"""
Module: planning_kernel.models.line
Responsibility: ORM persistence for production lines (press lines), the leaf
    of the Location -> Division -> Line hierarchy and the unit that downtime
    is recorded against.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - code is unique within its division (uq_line_division_code).
    - Capacity parameters are Decimal, never float.

Capacity parameters:
    gross_hours_per_week      168 for a line that runs around the clock.
    absenteeism_factor        fraction of gross hours lost to staffing.
    unplanned_downtime_buffer fraction reserved for breakdowns.
    These describe the line for capacity planning; downtime impact is
    computed from LineDowntime rows alone.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from planning_kernel.db.base import TrackedBase, UUIDString
from planning_kernel.domain.dtos import LineInfo
from planning_kernel.domain.values import LifecycleState

DEFAULT_GROSS_HOURS_PER_WEEK = Decimal("168")
DEFAULT_ABSENTEEISM_FACTOR = Decimal("0.05")
DEFAULT_UNPLANNED_DOWNTIME_BUFFER = Decimal("0.10")


class Line(TrackedBase):
    """A production line inside a division."""

    __tablename__ = "lines"

    __table_args__ = (
        UniqueConstraint("division_id", "code", name="uq_line_division_code"),
        Index("idx_line_division", "division_id"),
    )

    division_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("divisions.id"),
        nullable=False,
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Press characteristics
    press_tonnage: Mapped[Decimal | None] = mapped_column(nullable=True)
    shut_height_min: Mapped[Decimal | None] = mapped_column(nullable=True)
    shut_height_max: Mapped[Decimal | None] = mapped_column(nullable=True)

    is_continuous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    gross_hours_per_week: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=DEFAULT_GROSS_HOURS_PER_WEEK,
    )

    absenteeism_factor: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=DEFAULT_ABSENTEEISM_FACTOR,
    )

    unplanned_downtime_buffer: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=DEFAULT_UNPLANNED_DOWNTIME_BUFFER,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def lifecycle_state(self) -> LifecycleState:
        return LifecycleState.ACTIVE if self.is_active else LifecycleState.INACTIVE

    def to_dto(
        self,
        division_name: str | None = None,
        division_code: str | None = None,
        location_name: str | None = None,
        location_code: str | None = None,
    ) -> LineInfo:
        return LineInfo(
            id=self.id,
            division_id=self.division_id,
            code=self.code,
            name=self.name,
            press_tonnage=self.press_tonnage,
            shut_height_min=self.shut_height_min,
            shut_height_max=self.shut_height_max,
            is_continuous=self.is_continuous,
            gross_hours_per_week=self.gross_hours_per_week,
            absenteeism_factor=self.absenteeism_factor,
            unplanned_downtime_buffer=self.unplanned_downtime_buffer,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
            division_name=division_name,
            division_code=division_code,
            location_name=location_name,
            location_code=location_code,
        )

    def __repr__(self) -> str:
        return f"<Line {self.code}: {self.name}>"
