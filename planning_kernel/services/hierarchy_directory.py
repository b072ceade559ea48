"""
Hierarchy directory -- Location, Division and Line maintenance.

Responsibility:
    Create, update, soft-delete and list the three tiers of the plant
    hierarchy.  Each tier is one directory service; ``HierarchyDirectory``
    bundles them over a shared store and clock.

Architecture position:
    Kernel > Services.  Reads listings through HierarchySelector; writes
    through the EntityStore.

Invariants enforced:
    - Rows are never deleted.  deactivate/reactivate follow
      DIRECTORY_WORKFLOW and flip ``is_active``.
    - A parent id (location_id, division_id) must resolve before any write
      (ReferentialError).
    - ``is_active`` is not updatable through ``update``.
    - An empty update performs no write and leaves ``updated_at`` alone.

Failure modes:
    - MissingFieldError / InvalidFieldValueError / UnknownFieldError on bad
      input.
    - NotFoundError when the target id does not exist.
    - StorageError on duplicate codes and store failures (writes only;
      listings degrade to []).
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

from planning_kernel.db.store import EntityStore
from planning_kernel.domain.clock import Clock
from planning_kernel.domain.dtos import DivisionInfo, LineInfo, LocationInfo
from planning_kernel.domain.lifecycle import DIRECTORY_WORKFLOW, require_transition
from planning_kernel.domain.validation import (
    coerce_bool,
    coerce_decimal,
    coerce_uuid,
    is_blank,
    reject_unknown,
    require_text,
)
from planning_kernel.domain.values import LifecycleState
from planning_kernel.exceptions import InvalidFieldValueError, MissingFieldError
from planning_kernel.logging_config import get_logger
from planning_kernel.models.division import Division
from planning_kernel.models.line import Line
from planning_kernel.models.location import Location
from planning_kernel.selectors.hierarchy_selector import HierarchySelector
from planning_kernel.services.base import BaseService

logger = get_logger("services.hierarchy")

ZERO = Decimal("0")
ONE = Decimal("1")
HOURS_PER_WEEK = Decimal("168")


class _DirectoryService(BaseService):
    """
    Shared create/update/lifecycle logic for one hierarchy tier.

    Subclasses declare their fields and implement ``_clean`` (field
    normalisation) and ``list``.
    """

    parent_field: str | None = None
    parent_model: type | None = None

    # Fields update() accepts; is_active is deliberately absent.
    updatable_fields: frozenset[str] = frozenset()

    def __init__(self, store: EntityStore, clock: Clock | None = None):
        super().__init__(store, clock)
        self.selector = HierarchySelector(store)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @abstractmethod
    def list(self, parent_id: UUID | None = None) -> list[Any]:
        """Active rows of this tier, optionally under one parent."""

    def get(self, entity_id: UUID) -> Any:
        """Return one row (active or not); NotFoundError when absent."""
        return self._get_or_raise(entity_id).to_dto()

    def _load_listing(self) -> list[Any]:
        return self.list()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, **data: Any) -> UUID:
        """
        Create a row and return its new id.

        ``code`` and ``name`` (and the parent id, for divisions and lines)
        are required.  ``is_active`` defaults to True.
        """
        reject_unknown(self.entity_type, data, self.updatable_fields | {"is_active"})
        values = self._clean(data, current=None)
        for field in self._required_fields():
            if field not in values:
                raise MissingFieldError(self.entity_type, field)
        if self.parent_field is not None:
            self._require_reference(
                self.parent_model, self.parent_field, values[self.parent_field]
            )

        is_active = data.get("is_active")
        now = self.clock.now()
        entity = self.model(
            id=self.store.generate_id(),
            is_active=True if is_active is None else coerce_bool(self.entity_type, "is_active", is_active),
            created_at=now,
            updated_at=now,
            **values,
        )
        self.store.add(entity)

        logger.info(
            f"{self.entity_type.lower()}_created",
            extra={"entity_id": str(entity.id), "code": entity.code},
        )
        self._changed("created", entity.id)
        return entity.id

    def update(self, entity_id: UUID, **changes: Any) -> Any:
        """Rewrite only the supplied fields; returns the updated row."""
        entity = self._get_or_raise(entity_id)
        if not changes:
            return entity.to_dto()

        reject_unknown(self.entity_type, changes, self.updatable_fields)
        values = self._clean(changes, current=entity)
        if (
            self.parent_field is not None
            and self.parent_field in values
            and values[self.parent_field] != getattr(entity, self.parent_field)
        ):
            self._require_reference(
                self.parent_model, self.parent_field, values[self.parent_field]
            )

        values["updated_at"] = self.clock.now()
        self.store.update(entity, values)

        logger.info(
            f"{self.entity_type.lower()}_updated",
            extra={"entity_id": str(entity_id), "fields": sorted(changes)},
        )
        self._changed("updated", entity.id)
        return entity.to_dto()

    def deactivate(self, entity_id: UUID) -> Any:
        """Hide the row from listings.  The row stays resolvable by id."""
        return self._transition(entity_id, "deactivate")

    def reactivate(self, entity_id: UUID) -> Any:
        return self._transition(entity_id, "reactivate")

    def _transition(self, entity_id: UUID, action: str) -> Any:
        entity = self._get_or_raise(entity_id)
        transition = require_transition(
            DIRECTORY_WORKFLOW,
            self.entity_type,
            entity_id,
            entity.lifecycle_state.value,
            action,
        )
        self.store.update(
            entity,
            {
                "is_active": transition.to_state == LifecycleState.ACTIVE.value,
                "updated_at": self.clock.now(),
            },
        )

        logger.info(
            f"{self.entity_type.lower()}_{action}d",
            extra={"entity_id": str(entity_id), "action": action},
        )
        self._changed(f"{action}d", entity.id)
        return entity.to_dto()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _required_fields(self) -> tuple[str, ...]:
        fields = ("code", "name")
        if self.parent_field is not None:
            fields = (self.parent_field,) + fields
        return fields

    def _clean(self, data: Mapping[str, Any], current: Any) -> dict[str, Any]:
        """Validate and normalise the common fields present in ``data``."""
        values: dict[str, Any] = {}
        if self.parent_field is not None and self.parent_field in data:
            if is_blank(data[self.parent_field]):
                raise MissingFieldError(self.entity_type, self.parent_field)
            values[self.parent_field] = coerce_uuid(
                self.entity_type, self.parent_field, data[self.parent_field]
            )
        for field in ("code", "name"):
            if field in data:
                values[field] = require_text(self.entity_type, data, field)
        return values


class LocationDirectory(_DirectoryService):
    """Plant locations, the root tier."""

    entity_type = "Location"
    model = Location
    updatable_fields = frozenset({"code", "name", "address"})

    def list(self, parent_id: UUID | None = None) -> list[LocationInfo]:
        """Active locations ordered by name.  Locations have no parent."""
        return self._degrade("list", self.selector.list_locations)

    def _clean(self, data: Mapping[str, Any], current: Any) -> dict[str, Any]:
        values = super()._clean(data, current)
        if "address" in data:
            address = data["address"]
            values["address"] = None if is_blank(address) else str(address).strip()
        return values


class DivisionDirectory(_DirectoryService):
    """Divisions within a location."""

    entity_type = "Division"
    model = Division
    parent_field = "location_id"
    parent_model = Location
    updatable_fields = frozenset({"location_id", "code", "name"})

    def list(self, parent_id: UUID | None = None) -> list[DivisionInfo]:
        """Active divisions ordered by name, with their location's name and code."""
        return self._degrade("list", lambda: self.selector.list_divisions(parent_id))


class LineDirectory(_DirectoryService):
    """Production lines within a division, with their capacity parameters."""

    entity_type = "Line"
    model = Line
    parent_field = "division_id"
    parent_model = Division
    updatable_fields = frozenset(
        {
            "division_id",
            "code",
            "name",
            "press_tonnage",
            "shut_height_min",
            "shut_height_max",
            "is_continuous",
            "gross_hours_per_week",
            "absenteeism_factor",
            "unplanned_downtime_buffer",
        }
    )

    def list(self, parent_id: UUID | None = None) -> list[LineInfo]:
        """Active lines ordered by name, with division and location names and codes."""
        return self._degrade("list", lambda: self.selector.list_lines(parent_id))

    def _clean(self, data: Mapping[str, Any], current: Any) -> dict[str, Any]:
        values = super()._clean(data, current)
        name = self.entity_type

        for field in ("press_tonnage", "shut_height_min", "shut_height_max"):
            if field in data:
                raw = data[field]
                values[field] = None if is_blank(raw) else coerce_decimal(name, field, raw, minimum=ZERO)

        if "is_continuous" in data:
            values["is_continuous"] = coerce_bool(name, "is_continuous", data["is_continuous"])

        if "gross_hours_per_week" in data:
            values["gross_hours_per_week"] = coerce_decimal(
                name, "gross_hours_per_week", data["gross_hours_per_week"],
                minimum=ZERO, maximum=HOURS_PER_WEEK,
            )
        for field in ("absenteeism_factor", "unplanned_downtime_buffer"):
            if field in data:
                values[field] = coerce_decimal(name, field, data[field], minimum=ZERO, maximum=ONE)

        low = values.get("shut_height_min", getattr(current, "shut_height_min", None))
        high = values.get("shut_height_max", getattr(current, "shut_height_max", None))
        if low is not None and high is not None and low > high:
            raise InvalidFieldValueError(
                name, "shut_height_min", low, f"exceeds shut_height_max {high}"
            )
        return values


class HierarchyDirectory:
    """
    The three hierarchy tiers over one store and clock.

    Usage:
        directory = HierarchyDirectory(EntityStore(session))
        mun = directory.locations.create(code="MUN", name="Mundhawa")
        fmd = directory.divisions.create(location_id=mun, code="FMD", name="Forging")
    """

    def __init__(self, store: EntityStore, clock: Clock | None = None):
        self.locations = LocationDirectory(store, clock)
        self.divisions = DivisionDirectory(store, clock)
        self.lines = LineDirectory(store, clock)

    def refresh(self) -> None:
        """Reload every tier's in-memory listing."""
        for directory in (self.locations, self.divisions, self.lines):
            directory.refresh()
