"""
Module: planning_kernel.models.location
Responsibility: ORM persistence for plant locations, the root of the
    Location -> Division -> Line hierarchy.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - code is globally unique (uq_location_code).
    - Rows are never deleted; is_active=False hides them from listings while
      divisions, inventory and history keep resolving.

Failure modes:
    - IntegrityError on duplicate code (surfaced as StorageError by the store).
"""

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from planning_kernel.db.base import TrackedBase
from planning_kernel.domain.dtos import LocationInfo
from planning_kernel.domain.values import LifecycleState


class Location(TrackedBase):
    """A manufacturing site."""

    __tablename__ = "locations"

    __table_args__ = (
        UniqueConstraint("code", name="uq_location_code"),
        Index("idx_location_active_name", "is_active", "name"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    address: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def lifecycle_state(self) -> LifecycleState:
        return LifecycleState.ACTIVE if self.is_active else LifecycleState.INACTIVE

    def to_dto(self) -> LocationInfo:
        return LocationInfo(
            id=self.id,
            code=self.code,
            name=self.name,
            address=self.address,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Location {self.code}: {self.name}>"
