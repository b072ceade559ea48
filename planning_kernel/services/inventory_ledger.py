"""
InventoryLedger -- staged stock and its append-only transaction ledger.

Responsibility:
    Create and describe inventory rows, move their quantity through
    ``adjust_stock``, and report stage/status summaries and transaction
    history.

Architecture position:
    Kernel > Services.  Reads go through InventorySelector; the quantity
    write and its ledger row go through one EntityStore.transaction().

Invariants enforced:
    - Ledger balance: quantity == initial_quantity + sum(transaction deltas).
      ``update`` never touches quantity; ``adjust_stock`` writes the new
      quantity and exactly one transaction row all-or-nothing.
    - Row lock: ``adjust_stock`` reads the row with SELECT ... FOR UPDATE so
      concurrent adjustments of the same row serialise.
    - Non-negative stock unless ``allow_negative_inventory`` is configured.

Failure modes:
    - NotFoundError: adjust/update/get of an unknown id.
    - ValidationError subclasses: bad input, zero delta, NegativeStockError.
    - ReferentialError: unknown location/division/line id.
    - StorageError: any write failure (nothing is written).  Listing,
      summary and history reads degrade to [].
    - LedgerImbalanceError from verify_ledger.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

from sqlalchemy import insert, select, update

from planning_kernel.config import PlanningConfig
from planning_kernel.db.store import EntityStore
from planning_kernel.domain.clock import Clock
from planning_kernel.domain.dtos import (
    InventoryInfo,
    StageStatusSummary,
    StockAdjustment,
    TransactionInfo,
)
from planning_kernel.domain.validation import (
    coerce_date,
    coerce_decimal,
    coerce_enum,
    coerce_int,
    coerce_uuid,
    is_blank,
    reject_unknown,
    require_text,
)
from planning_kernel.domain.values import (
    InventoryStage,
    InventoryStatus,
    ReferenceType,
    TransactionType,
)
from planning_kernel.exceptions import (
    InvalidFieldValueError,
    LedgerImbalanceError,
    MissingFieldError,
    NegativeStockError,
    NotFoundError,
)
from planning_kernel.logging_config import LogContext, get_logger
from planning_kernel.models.division import Division
from planning_kernel.models.inventory import Inventory, InventoryTransaction
from planning_kernel.models.line import Line
from planning_kernel.models.location import Location
from planning_kernel.selectors.inventory_selector import InventorySelector
from planning_kernel.services.base import BaseService

logger = get_logger("services.inventory")

ZERO = Decimal("0")

_DESCRIPTIVE = frozenset(
    {
        "part_id",
        "die_id",
        "raw_material_code",
        "stage",
        "status",
        "location_id",
        "division_id",
        "line_id",
        "lot_number",
        "batch_number",
        "expiry_date",
        "valuation_rate",
    }
)

_OPTIONAL_TEXT = (
    "part_id",
    "die_id",
    "raw_material_code",
    "lot_number",
    "batch_number",
)

_REFERENCES = (
    ("location_id", Location),
    ("division_id", Division),
    ("line_id", Line),
)


class InventoryLedger(BaseService):
    """
    Staged inventory with an auditable stock ledger.

    Contract:
        ``create`` returns the new id.  Quantity moves only through
        ``adjust_stock``; every movement leaves one InventoryTransaction.
    """

    entity_type = "Inventory"
    model = Inventory

    def __init__(
        self,
        store: EntityStore,
        clock: Clock | None = None,
        config: PlanningConfig | None = None,
    ):
        super().__init__(store, clock)
        self.config = config or PlanningConfig()
        self.selector = InventorySelector(store)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, inventory_id: UUID) -> InventoryInfo:
        return self._get_or_raise(inventory_id).to_dto()

    def list(
        self,
        location_id: UUID | None = None,
        stage: InventoryStage | str | None = None,
        status: InventoryStatus | str | None = None,
    ) -> list[InventoryInfo]:
        """Inventory rows, most recently updated first.  Store failures yield []."""
        if stage is not None:
            stage = coerce_enum(self.entity_type, InventoryStage, "stage", stage)
        if status is not None:
            status = coerce_enum(self.entity_type, InventoryStatus, "status", status)
        return self._degrade(
            "list",
            lambda: self.selector.list_inventory(location_id, stage, status),
        )

    def list_by_part(self, part_id: str) -> list[InventoryInfo]:
        """Every row holding ``part_id`` across stages."""
        return self._degrade("list_by_part", lambda: self.selector.list_by_part(part_id))

    def _load_listing(self) -> list[InventoryInfo]:
        return self.list()

    def get_summary(self) -> list[StageStatusSummary]:
        """
        Totals per (stage, status), ordered by stage then status.

        total_value treats a missing valuation_rate as zero.  Store failures
        yield [].
        """
        return self._degrade("get_summary", self.selector.stage_status_summary)

    def get_transactions(self, inventory_id: UUID | None = None) -> list[TransactionInfo]:
        """
        Ledger rows newest first, capped at ``transaction_history_limit``.

        With ``inventory_id`` only that row's history is returned.  Store
        failures yield [].
        """
        limit = self.config.transaction_history_limit
        return self._degrade(
            "get_transactions",
            lambda: self.selector.transactions(inventory_id, limit),
        )

    def verify_ledger(self, inventory_id: UUID) -> InventoryInfo:
        """
        Check quantity == initial_quantity + sum of ledger deltas.

        Raises:
            NotFoundError: unknown id.
            LedgerImbalanceError: the row and its ledger disagree.
        """
        inventory = self._get_or_raise(inventory_id)
        ledger_quantity = inventory.initial_quantity + self.selector.ledger_total(inventory.id)
        if inventory.quantity != ledger_quantity:
            logger.error(
                "ledger_imbalance_detected",
                extra={
                    "inventory_id": str(inventory_id),
                    "recorded_quantity": inventory.quantity,
                    "ledger_quantity": ledger_quantity,
                },
            )
            raise LedgerImbalanceError(
                inventory_id=str(inventory_id),
                recorded_quantity=inventory.quantity,
                ledger_quantity=ledger_quantity,
            )
        return inventory.to_dto()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, **data: Any) -> UUID:
        """
        Create an inventory row and return its id.

        ``location_id`` is required.  ``quantity`` defaults to 0 and becomes
        the row's initial_quantity; later movements go through adjust_stock.
        """
        reject_unknown(self.entity_type, data, _DESCRIPTIVE | {"quantity"})
        if is_blank(data.get("location_id")):
            raise MissingFieldError(self.entity_type, "location_id")

        values = self._clean(data)
        quantity = data.get("quantity")
        quantity = 0 if quantity is None else coerce_int(
            self.entity_type, "quantity", quantity, minimum=0
        )
        self._check_references(values)

        now = self.clock.now()
        inventory = Inventory(
            id=self.store.generate_id(),
            quantity=quantity,
            initial_quantity=quantity,
            created_at=now,
            updated_at=now,
            **values,
        )
        self.store.add(inventory)

        with LogContext.bind(inventory_id=str(inventory.id)):
            logger.info(
                "inventory_created",
                extra={
                    "part_id": inventory.part_id,
                    "stage": inventory.stage,
                    "status": inventory.status,
                    "quantity": quantity,
                },
            )
        self._changed("created", inventory.id)
        return inventory.id

    def update(self, inventory_id: UUID, **changes: Any) -> InventoryInfo:
        """Rewrite descriptive fields.  quantity is rejected; use adjust_stock."""
        inventory = self._get_or_raise(inventory_id)
        if not changes:
            return inventory.to_dto()

        reject_unknown(self.entity_type, changes, _DESCRIPTIVE)
        if "location_id" in changes and is_blank(changes["location_id"]):
            raise MissingFieldError(self.entity_type, "location_id")

        values = self._clean(changes)
        self._check_references(
            {
                field: value
                for field, value in values.items()
                if field in dict(_REFERENCES) and value != getattr(inventory, field)
            }
        )

        values["updated_at"] = self.clock.now()
        self.store.update(inventory, values)

        logger.info(
            "inventory_updated",
            extra={"inventory_id": str(inventory_id), "fields": sorted(changes)},
        )
        self._changed("updated", inventory.id)
        return inventory.to_dto()

    def adjust_stock(
        self,
        inventory_id: UUID,
        delta_quantity: int,
        reason: str,
        user_id: str,
    ) -> StockAdjustment:
        """
        Move on-hand quantity by ``delta_quantity`` and record it in the ledger.

        The row is read under a row lock, then the new quantity and one
        ``adjustment`` transaction (from_status == to_status == the row's
        status, reference_type ``manual``, notes = reason) are written in a
        single store transaction.  If either write fails neither persists.

        Raises:
            NotFoundError: unknown id.
            InvalidFieldValueError: zero or non-integer delta.
            MissingFieldError: blank user_id.
            NegativeStockError: the result would be negative and
                allow_negative_inventory is off.
            StorageError: the write failed; nothing was applied.
        """
        delta = coerce_int(self.entity_type, "delta_quantity", delta_quantity)
        if delta == 0:
            raise InvalidFieldValueError(
                self.entity_type, "delta_quantity", delta, "must not be zero"
            )
        if is_blank(user_id):
            raise MissingFieldError(self.entity_type, "user_id")

        inventory = self._lock_for_adjustment(inventory_id)
        row_id = inventory.id
        status = inventory.status
        stage = inventory.stage
        old_quantity = inventory.quantity
        new_quantity = old_quantity + delta
        if new_quantity < 0 and not self.config.allow_negative_inventory:
            raise NegativeStockError(
                inventory_id=str(inventory_id),
                current_quantity=old_quantity,
                delta_quantity=delta,
            )

        now = self.clock.now()
        transaction_id = self.store.generate_id()
        self.store.transaction(
            [
                update(Inventory)
                .where(Inventory.id == row_id)
                .values(quantity=new_quantity, updated_at=now),
                insert(InventoryTransaction).values(
                    id=transaction_id,
                    inventory_id=row_id,
                    transaction_type=TransactionType.ADJUSTMENT.value,
                    quantity=delta,
                    from_status=status,
                    to_status=status,
                    from_stage=stage,
                    to_stage=stage,
                    reference_type=ReferenceType.MANUAL.value,
                    notes=reason,
                    created_by=str(user_id),
                    created_at=now,
                ),
            ]
        )
        # Next attribute access reloads the row.
        self.session.expire(inventory)

        with LogContext.bind(inventory_id=str(row_id), actor_id=str(user_id)):
            logger.info(
                "stock_adjusted",
                extra={
                    "transaction_id": str(transaction_id),
                    "old_quantity": old_quantity,
                    "new_quantity": new_quantity,
                    "delta_quantity": delta,
                },
            )
        self._changed("stock_adjusted", row_id)
        return StockAdjustment(
            inventory_id=row_id,
            transaction_id=transaction_id,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
            delta_quantity=delta,
            status=InventoryStatus(status),
        )

    def _lock_for_adjustment(self, inventory_id: UUID) -> Inventory:
        stmt = (
            select(Inventory)
            .where(Inventory.id == inventory_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        rows = self.store.scalars(stmt)
        if not rows:
            raise NotFoundError(self.entity_type, str(inventory_id))
        return rows[0]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _clean(self, data: Mapping[str, Any]) -> dict[str, Any]:
        name = self.entity_type
        values: dict[str, Any] = {}

        for field in _OPTIONAL_TEXT:
            if field in data:
                raw = data[field]
                values[field] = None if is_blank(raw) else require_text(name, data, field)

        if "stage" in data:
            raw = data["stage"]
            values["stage"] = (
                InventoryStage.RAW_MATERIAL if is_blank(raw)
                else coerce_enum(name, InventoryStage, "stage", raw)
            ).value
        if "status" in data:
            raw = data["status"]
            values["status"] = (
                InventoryStatus.AVAILABLE if is_blank(raw)
                else coerce_enum(name, InventoryStatus, "status", raw)
            ).value

        if "location_id" in data:
            values["location_id"] = coerce_uuid(name, "location_id", data["location_id"])
        for field in ("division_id", "line_id"):
            if field in data:
                raw = data[field]
                values[field] = None if is_blank(raw) else coerce_uuid(name, field, raw)

        if "expiry_date" in data:
            raw = data["expiry_date"]
            values["expiry_date"] = None if is_blank(raw) else coerce_date(name, "expiry_date", raw)
        if "valuation_rate" in data:
            raw = data["valuation_rate"]
            values["valuation_rate"] = (
                None if is_blank(raw)
                else coerce_decimal(name, "valuation_rate", raw, minimum=ZERO)
            )
        return values

    def _check_references(self, values: Mapping[str, Any]) -> None:
        for field, model in _REFERENCES:
            if values.get(field) is not None:
                self._require_reference(model, field, values[field])
