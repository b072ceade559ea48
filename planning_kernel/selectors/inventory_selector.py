"""
InventorySelector -- stock listings, stage/status summary and ledger reads.

All aggregates are derived from rows at query time; nothing here writes.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from planning_kernel.domain.dtos import (
    InventoryInfo,
    StageStatusSummary,
    TransactionInfo,
)
from planning_kernel.domain.values import InventoryStage, InventoryStatus
from planning_kernel.models.inventory import Inventory, InventoryTransaction
from planning_kernel.models.location import Location
from planning_kernel.selectors.base import BaseSelector


class InventorySelector(BaseSelector):
    """Read-only queries over Inventory and InventoryTransaction."""

    def list_inventory(
        self,
        location_id: UUID | None = None,
        stage: InventoryStage | None = None,
        status: InventoryStatus | None = None,
    ) -> list[InventoryInfo]:
        """Inventory rows, most recently updated first, with location name."""
        stmt = select(Inventory, Location.name).outerjoin(
            Location, Inventory.location_id == Location.id
        )
        if location_id is not None:
            stmt = stmt.where(Inventory.location_id == location_id)
        if stage is not None:
            stmt = stmt.where(Inventory.stage == InventoryStage(stage).value)
        if status is not None:
            stmt = stmt.where(Inventory.status == InventoryStatus(status).value)
        stmt = stmt.order_by(Inventory.updated_at.desc())

        return [
            inventory.to_dto(location_name=location_name)
            for inventory, location_name in self.store.rows(stmt)
        ]

    def list_by_part(self, part_id: str) -> list[InventoryInfo]:
        """Every row holding ``part_id``, ordered by stage."""
        stmt = (
            select(Inventory, Location.name)
            .outerjoin(Location, Inventory.location_id == Location.id)
            .where(Inventory.part_id == part_id)
            .order_by(Inventory.stage, Inventory.status)
        )
        return [
            inventory.to_dto(location_name=location_name)
            for inventory, location_name in self.store.rows(stmt)
        ]

    def stage_status_summary(self) -> list[StageStatusSummary]:
        """Counts, quantities and values grouped by (stage, status)."""
        stmt = (
            select(
                Inventory.stage,
                Inventory.status,
                func.count(Inventory.id).label("item_count"),
                func.sum(Inventory.quantity).label("total_quantity"),
                func.sum(
                    Inventory.quantity * func.coalesce(Inventory.valuation_rate, 0)
                ).label("total_value"),
            )
            .group_by(Inventory.stage, Inventory.status)
            .order_by(Inventory.stage, Inventory.status)
        )
        return [
            StageStatusSummary(
                stage=InventoryStage(row["stage"]),
                status=InventoryStatus(row["status"]),
                item_count=int(row["item_count"]),
                total_quantity=int(row["total_quantity"] or 0),
                total_value=Decimal(str(row["total_value"] or 0)),
            )
            for row in self.store.query(stmt)
        ]

    def transactions(
        self,
        inventory_id: UUID | None = None,
        limit: int = 100,
    ) -> list[TransactionInfo]:
        """Ledger rows newest first, capped at ``limit``, with the row's part_id."""
        stmt = select(InventoryTransaction, Inventory.part_id).outerjoin(
            Inventory, InventoryTransaction.inventory_id == Inventory.id
        )
        if inventory_id is not None:
            stmt = stmt.where(InventoryTransaction.inventory_id == inventory_id)
        stmt = stmt.order_by(InventoryTransaction.created_at.desc()).limit(limit)

        return [
            transaction.to_dto(part_id=part_id)
            for transaction, part_id in self.store.rows(stmt)
        ]

    def ledger_total(self, inventory_id: UUID) -> int:
        """Sum of transaction deltas recorded against one inventory row."""
        stmt = select(
            func.coalesce(func.sum(InventoryTransaction.quantity), 0)
        ).where(InventoryTransaction.inventory_id == inventory_id)
        return int(self.store.scalar(stmt) or 0)
