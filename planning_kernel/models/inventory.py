"""
Module: planning_kernel.models.inventory
Responsibility: ORM persistence for staged work-in-process stock and its
    append-only transaction ledger.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - quantity == initial_quantity + sum(InventoryTransaction.quantity) for
      the row.  Only InventoryLedger.adjust_stock moves quantity, and it
      writes the quantity and the ledger row in one SAVEPOINT.
    - InventoryTransaction rows are immutable.  The before_update /
      before_delete listeners in db/immutability.py reject ORM changes.
      Deleting an Inventory row cascades to its ledger in the database.
    - part_id, die_id and raw_material_code are opaque references to
      masters held outside the kernel; no foreign key.

Failure modes:
    - ImmutabilityViolationError on UPDATE/DELETE of an InventoryTransaction
      through the ORM.
    - IntegrityError on unknown location/division/line ids.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import BigInteger, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from planning_kernel.db.base import Base, TrackedBase, UTCDateTime, UUIDString, utcnow
from planning_kernel.domain.dtos import InventoryInfo, TransactionInfo
from planning_kernel.domain.values import (
    InventoryStage,
    InventoryStatus,
    ReferenceType,
    TransactionType,
)


class Inventory(TrackedBase):
    """A quantity of one part (or die, or raw material) at one stage and status."""

    __tablename__ = "inventory"

    __table_args__ = (
        Index("idx_inventory_location", "location_id"),
        Index("idx_inventory_part", "part_id"),
        Index("idx_inventory_stage_status", "stage", "status"),
    )

    part_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    die_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    raw_material_code: Mapped[str | None] = mapped_column(String(100), nullable=True)

    stage: Mapped[InventoryStage] = mapped_column(
        String(20),
        nullable=False,
        default=InventoryStage.RAW_MATERIAL.value,
    )

    status: Mapped[InventoryStatus] = mapped_column(
        String(20),
        nullable=False,
        default=InventoryStatus.AVAILABLE.value,
    )

    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    # Fixed at creation; the ledger is reconciled against it.
    initial_quantity: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=False,
    )
    division_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("divisions.id"),
        nullable=True,
    )
    line_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("lines.id"),
        nullable=True,
    )

    lot_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    batch_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(nullable=True)

    valuation_rate: Mapped[Decimal | None] = mapped_column(nullable=True)

    def to_dto(self, location_name: str | None = None) -> InventoryInfo:
        return InventoryInfo(
            id=self.id,
            part_id=self.part_id,
            die_id=self.die_id,
            raw_material_code=self.raw_material_code,
            stage=InventoryStage(self.stage),
            status=InventoryStatus(self.status),
            quantity=self.quantity,
            initial_quantity=self.initial_quantity,
            location_id=self.location_id,
            division_id=self.division_id,
            line_id=self.line_id,
            lot_number=self.lot_number,
            batch_number=self.batch_number,
            expiry_date=self.expiry_date,
            valuation_rate=self.valuation_rate,
            created_at=self.created_at,
            updated_at=self.updated_at,
            location_name=location_name,
        )

    def __repr__(self) -> str:
        return f"<Inventory {self.id} {self.stage}/{self.status} qty={self.quantity}>"


class InventoryTransaction(Base):
    """
    One signed quantity movement on an Inventory row.

    Append-only: there is no updated_at column because a row is never
    updated.
    """

    __tablename__ = "inventory_transactions"

    __table_args__ = (
        Index("idx_inv_txn_inventory_created", "inventory_id", "created_at"),
    )

    inventory_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory.id", ondelete="CASCADE"),
        nullable=False,
    )

    transaction_type: Mapped[TransactionType] = mapped_column(String(20), nullable=False)

    # Signed delta
    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False)

    from_status: Mapped[InventoryStatus | None] = mapped_column(String(20), nullable=True)
    to_status: Mapped[InventoryStatus | None] = mapped_column(String(20), nullable=True)
    from_stage: Mapped[InventoryStage | None] = mapped_column(String(20), nullable=True)
    to_stage: Mapped[InventoryStage | None] = mapped_column(String(20), nullable=True)

    reference_type: Mapped[ReferenceType | None] = mapped_column(String(20), nullable=True)
    reference_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        nullable=False,
    )

    def to_dto(self, part_id: str | None = None) -> TransactionInfo:
        return TransactionInfo(
            id=self.id,
            inventory_id=self.inventory_id,
            transaction_type=TransactionType(self.transaction_type),
            quantity=self.quantity,
            from_status=InventoryStatus(self.from_status) if self.from_status else None,
            to_status=InventoryStatus(self.to_status) if self.to_status else None,
            from_stage=InventoryStage(self.from_stage) if self.from_stage else None,
            to_stage=InventoryStage(self.to_stage) if self.to_stage else None,
            reference_type=ReferenceType(self.reference_type) if self.reference_type else None,
            reference_id=self.reference_id,
            notes=self.notes,
            created_by=self.created_by,
            created_at=self.created_at,
            part_id=part_id,
        )

    def __repr__(self) -> str:
        return f"<InventoryTransaction {self.id} {self.transaction_type} {self.quantity:+d}>"
