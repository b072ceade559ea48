"""
DowntimeLedger -- scheduled line downtime and the capacity it removes.

Responsibility:
    Record downtime windows against lines, move them through the approval
    lifecycle, and compute the capacity-hours a line loses over a date
    range.

Architecture position:
    Kernel > Services.  Listings and window reads go through
    DowntimeSelector; weighting is the pure ``domain.impact`` module.

Invariants enforced:
    - New records are pending.  approve and cancel follow
      DOWNTIME_WORKFLOW; approved and cancelled are terminal.
    - An approved record always carries approved_by.
    - Only pending records can be edited, and the merged record is
      re-validated before the write.
    - compute_impact counts approved records only.  Pending records show up
      in forecast_impact, never in the committed figure.

Failure modes:
    - MissingFieldError / InvalidFieldValueError / UnknownFieldError.
    - ReferentialError when line_id does not resolve.
    - LifecycleTransitionError for approve/cancel/update outside pending.
    - StorageError from compute_impact and every write.  Only list()
      degrades to [].
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

from planning_kernel.db.store import EntityStore
from planning_kernel.domain.clock import Clock
from planning_kernel.domain.dtos import (
    DowntimeContribution,
    DowntimeImpact,
    DowntimeInfo,
)
from planning_kernel.domain.impact import (
    impact_hours,
    total_impact,
    window_end,
    window_start,
)
from planning_kernel.domain.lifecycle import DOWNTIME_WORKFLOW, require_transition
from planning_kernel.domain.validation import (
    coerce_bound,
    coerce_date,
    coerce_datetime,
    coerce_decimal,
    coerce_enum,
    coerce_uuid,
    is_blank,
    reject_unknown,
    require_present,
    require_text,
)
from planning_kernel.domain.values import (
    DowntimeCategory,
    DowntimeStatus,
    DurationUnit,
    ImpactType,
    Recurrence,
)
from planning_kernel.exceptions import (
    InvalidFieldValueError,
    LifecycleTransitionError,
    MissingFieldError,
)
from planning_kernel.logging_config import LogContext, get_logger
from planning_kernel.models.downtime import LineDowntime
from planning_kernel.models.line import Line
from planning_kernel.selectors.downtime_selector import DowntimeSelector
from planning_kernel.services.base import BaseService

logger = get_logger("services.downtime")

# A date, a datetime or an ISO-8601 string; date-only values cover the whole day
Bound = date | datetime | str

ZERO = Decimal("0")
HUNDRED = Decimal("100")

_REQUIRED = (
    "line_id",
    "reason",
    "start_date_time",
    "end_date_time",
    "duration",
    "created_by",
)

_EDITABLE = frozenset(
    {
        "line_id",
        "reason",
        "category",
        "start_date_time",
        "end_date_time",
        "duration",
        "duration_unit",
        "recurrence",
        "recurrence_end_date",
        "impact_type",
        "capacity_reduction_percent",
        "notes",
    }
)


class DowntimeLedger(BaseService):
    """
    Downtime records and their impact on line capacity.

    Contract:
        ``create`` returns the new id; ``update``, ``approve`` and ``cancel``
        return the resulting DowntimeInfo.  Impact figures are Decimal
        capacity-hours.
    """

    entity_type = "LineDowntime"
    model = LineDowntime

    def __init__(self, store: EntityStore, clock: Clock | None = None):
        super().__init__(store, clock)
        self.selector = DowntimeSelector(store)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, downtime_id: UUID) -> DowntimeInfo:
        return self._get_or_raise(downtime_id).to_dto()

    def list(
        self,
        line_id: UUID | None = None,
        start: Bound | None = None,
        end: Bound | None = None,
        include_cancelled: bool = False,
    ) -> list[DowntimeInfo]:
        """
        Downtime records, newest start first.

        Cancelled records are hidden unless ``include_cancelled``.  ``start``
        bounds start_date_time from below and ``end`` bounds end_date_time
        from above, both inclusive.  Bounds may be ISO-8601 strings; an
        unparseable bound raises InvalidFieldValueError.  Store failures yield [].
        """
        lower = self._lower_bound(start) if start is not None else None
        upper = self._upper_bound(end) if end is not None else None
        return self._degrade(
            "list",
            lambda: self.selector.list_downtime(
                line_id=line_id,
                start=lower,
                end=upper,
                include_cancelled=include_cancelled,
            ),
        )

    def _load_listing(self) -> list[DowntimeInfo]:
        return self.list()

    # ------------------------------------------------------------------
    # Impact
    # ------------------------------------------------------------------

    def compute_impact(
        self,
        line_id: UUID,
        start: Bound,
        end: Bound,
    ) -> Decimal:
        """
        Capacity-hours lost on ``line_id`` to approved downtime in [start, end].

        A record counts when its whole window lies inside the range.  Full
        impact contributes its duration, partial impact contributes
        duration * capacity_reduction_percent / 100.  Returns Decimal 0 when
        nothing matches.  Store failures propagate.
        """
        return self.impact_breakdown(line_id, start, end).total_hours

    def forecast_impact(
        self,
        line_id: UUID,
        start: Bound,
        end: Bound,
    ) -> Decimal:
        """As compute_impact, but pending records count too."""
        return self._impact(
            line_id,
            start,
            end,
            (DowntimeStatus.APPROVED, DowntimeStatus.PENDING),
        ).total_hours

    def impact_breakdown(
        self,
        line_id: UUID,
        start: Bound,
        end: Bound,
    ) -> DowntimeImpact:
        """The committed impact figure with each approved record's contribution."""
        return self._impact(line_id, start, end, (DowntimeStatus.APPROVED,))

    def _impact(
        self,
        line_id: UUID,
        start: Bound,
        end: Bound,
        statuses: tuple[DowntimeStatus, ...],
    ) -> DowntimeImpact:
        lower = self._lower_bound(start)
        upper = self._upper_bound(end)
        records = self.selector.records_in_window(line_id, lower, upper, statuses)

        contributions = tuple(
            DowntimeContribution(
                downtime_id=record.id,
                status=record.status,
                impact_type=record.impact_type,
                duration=record.duration,
                capacity_reduction_percent=record.capacity_reduction_percent,
                impact_hours=impact_hours(
                    record.impact_type,
                    record.duration,
                    record.capacity_reduction_percent,
                ),
            )
            for record in records
        )
        total = total_impact(
            (c.impact_type, c.duration, c.capacity_reduction_percent)
            for c in contributions
        )

        logger.debug(
            "downtime_impact_computed",
            extra={
                "line_id": str(line_id),
                "window_start": lower,
                "window_end": upper,
                "statuses": [s.value for s in statuses],
                "record_count": len(contributions),
                "total_hours": total,
            },
        )
        return DowntimeImpact(
            line_id=line_id,
            window_start=lower,
            window_end=upper,
            total_hours=total,
            contributions=contributions,
        )

    def _lower_bound(self, value: Bound) -> datetime:
        return window_start(coerce_bound(self.entity_type, "start", value))

    def _upper_bound(self, value: Bound) -> datetime:
        return window_end(coerce_bound(self.entity_type, "end", value))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, **data: Any) -> UUID:
        """
        Record a downtime window as pending and return its id.

        Required: line_id, reason, start_date_time, end_date_time, duration,
        created_by.  A partial impact needs capacity_reduction_percent.
        """
        reject_unknown(self.entity_type, data, _EDITABLE | {"created_by"})
        for field in _REQUIRED:
            require_present(self.entity_type, data, field)

        values = self._clean(data)
        values["created_by"] = require_text(self.entity_type, data, "created_by")
        self._check_record(values)
        self._require_reference(Line, "line_id", values["line_id"])

        now = self.clock.now()
        downtime = LineDowntime(
            id=self.store.generate_id(),
            status=DowntimeStatus.PENDING.value,
            approved_by=None,
            created_at=now,
            updated_at=now,
            **values,
        )
        self.store.add(downtime)

        with LogContext.bind(line_id=str(downtime.line_id), actor_id=values["created_by"]):
            logger.info(
                "downtime_created",
                extra={
                    "downtime_id": str(downtime.id),
                    "category": downtime.category,
                    "impact_type": downtime.impact_type,
                    "duration": downtime.duration,
                },
            )
        self._changed("created", downtime.id)
        return downtime.id

    def update(self, downtime_id: UUID, **changes: Any) -> DowntimeInfo:
        """
        Edit a pending record.  status and approved_by change only through
        approve/cancel.
        """
        downtime = self._get_or_raise(downtime_id)
        if not changes:
            return downtime.to_dto()

        reject_unknown(self.entity_type, changes, _EDITABLE)
        if downtime.status != DowntimeStatus.PENDING.value:
            raise LifecycleTransitionError(
                entity_type=self.entity_type,
                entity_id=str(downtime_id),
                state=downtime.status,
                action="update",
            )
        for field in _REQUIRED:
            if field in changes and is_blank(changes[field]):
                raise MissingFieldError(self.entity_type, field)

        values = self._clean(changes)
        merged = {field: getattr(downtime, field) for field in _EDITABLE}
        merged.update(values)
        self._check_record(merged)
        if "line_id" in values and values["line_id"] != downtime.line_id:
            self._require_reference(Line, "line_id", values["line_id"])

        values["updated_at"] = self.clock.now()
        self.store.update(downtime, values)

        logger.info(
            "downtime_updated",
            extra={"downtime_id": str(downtime_id), "fields": sorted(changes)},
        )
        self._changed("updated", downtime.id)
        return downtime.to_dto()

    def approve(self, downtime_id: UUID, approved_by: str) -> DowntimeInfo:
        """pending -> approved.  ``approved_by`` names the approving user."""
        if is_blank(approved_by):
            raise MissingFieldError(self.entity_type, "approved_by")
        return self._transition(
            downtime_id, "approve", {"approved_by": str(approved_by).strip()}
        )

    def cancel(self, downtime_id: UUID) -> DowntimeInfo:
        """pending -> cancelled.  The record stays for history."""
        return self._transition(downtime_id, "cancel", {})

    def _transition(
        self,
        downtime_id: UUID,
        action: str,
        values: dict[str, Any],
    ) -> DowntimeInfo:
        downtime = self._get_or_raise(downtime_id)
        transition = require_transition(
            DOWNTIME_WORKFLOW,
            self.entity_type,
            downtime_id,
            downtime.status,
            action,
        )
        values = dict(values, status=transition.to_state, updated_at=self.clock.now())
        self.store.update(downtime, values)

        with LogContext.bind(line_id=str(downtime.line_id), actor_id=values.get("approved_by")):
            logger.info(
                f"downtime_{transition.to_state}",
                extra={"downtime_id": str(downtime_id), "from_state": transition.from_state},
            )
        self._changed(transition.to_state, downtime.id)
        return downtime.to_dto()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _clean(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Normalise the editable fields present in ``data``."""
        name = self.entity_type
        values: dict[str, Any] = {}

        if "line_id" in data:
            values["line_id"] = coerce_uuid(name, "line_id", data["line_id"])
        if "reason" in data:
            values["reason"] = require_text(name, data, "reason")
        for field in ("start_date_time", "end_date_time"):
            if field in data:
                values[field] = coerce_datetime(name, field, data[field])
        if "duration" in data:
            values["duration"] = coerce_decimal(name, "duration", data["duration"], minimum=ZERO)

        if "category" in data:
            raw = data["category"]
            values["category"] = (
                DowntimeCategory.OTHER if is_blank(raw)
                else coerce_enum(name, DowntimeCategory, "category", raw)
            ).value
        if "duration_unit" in data:
            raw = data["duration_unit"]
            values["duration_unit"] = (
                DurationUnit.HOURS if is_blank(raw)
                else coerce_enum(name, DurationUnit, "duration_unit", raw)
            ).value
        if "impact_type" in data:
            raw = data["impact_type"]
            values["impact_type"] = (
                ImpactType.FULL if is_blank(raw)
                else coerce_enum(name, ImpactType, "impact_type", raw)
            ).value
        if "recurrence" in data:
            raw = data["recurrence"]
            values["recurrence"] = (
                None if is_blank(raw) else coerce_enum(name, Recurrence, "recurrence", raw).value
            )

        if "recurrence_end_date" in data:
            raw = data["recurrence_end_date"]
            values["recurrence_end_date"] = (
                None if is_blank(raw) else coerce_date(name, "recurrence_end_date", raw)
            )
        if "capacity_reduction_percent" in data:
            raw = data["capacity_reduction_percent"]
            values["capacity_reduction_percent"] = (
                None if is_blank(raw)
                else coerce_decimal(
                    name, "capacity_reduction_percent", raw, minimum=ZERO, maximum=HUNDRED
                )
            )
        if "notes" in data:
            raw = data["notes"]
            values["notes"] = None if is_blank(raw) else str(raw)
        return values

    def _check_record(self, record: Mapping[str, Any]) -> None:
        """Cross-field rules over a complete (created or merged) record."""
        name = self.entity_type
        start = record["start_date_time"]
        end = record["end_date_time"]
        if end < start:
            raise InvalidFieldValueError(
                name, "end_date_time", end, "must not be before start_date_time"
            )

        impact_type = record.get("impact_type") or ImpactType.FULL.value
        if (
            impact_type == ImpactType.PARTIAL
            and record.get("capacity_reduction_percent") is None
        ):
            raise MissingFieldError(name, "capacity_reduction_percent")

        recurrence_end = record.get("recurrence_end_date")
        if recurrence_end is not None and recurrence_end < start.date():
            raise InvalidFieldValueError(
                name, "recurrence_end_date", recurrence_end,
                "must not be before the start date",
            )
