"""
Module: planning_kernel.models.division
Responsibility: ORM persistence for divisions, the middle tier of the
    Location -> Division -> Line hierarchy.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - code is unique within its location (uq_division_location_code).
    - location_id always resolves (FK, checked again by the directory before
      any write so the caller gets ReferentialError instead of StorageError).
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from planning_kernel.db.base import TrackedBase, UUIDString
from planning_kernel.domain.dtos import DivisionInfo
from planning_kernel.domain.values import LifecycleState


class Division(TrackedBase):
    """A production division within a location."""

    __tablename__ = "divisions"

    __table_args__ = (
        UniqueConstraint("location_id", "code", name="uq_division_location_code"),
        Index("idx_division_location", "location_id"),
    )

    location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=False,
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def lifecycle_state(self) -> LifecycleState:
        return LifecycleState.ACTIVE if self.is_active else LifecycleState.INACTIVE

    def to_dto(
        self,
        location_name: str | None = None,
        location_code: str | None = None,
    ) -> DivisionInfo:
        return DivisionInfo(
            id=self.id,
            location_id=self.location_id,
            code=self.code,
            name=self.name,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
            location_name=location_name,
            location_code=location_code,
        )

    def __repr__(self) -> str:
        return f"<Division {self.code}: {self.name}>"
