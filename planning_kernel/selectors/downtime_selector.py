"""
DowntimeSelector -- listing and window queries over LineDowntime.

Window semantics are containment: a record matches [lower, upper] when
``start_date_time >= lower`` and ``end_date_time <= upper``.  A record that
straddles a bound is not in the window.
"""

from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlalchemy import select

from planning_kernel.domain.dtos import DowntimeInfo
from planning_kernel.domain.values import DowntimeStatus
from planning_kernel.models.division import Division
from planning_kernel.models.downtime import LineDowntime
from planning_kernel.models.line import Line
from planning_kernel.models.location import Location
from planning_kernel.selectors.base import BaseSelector


class DowntimeSelector(BaseSelector):
    """Read-only queries over scheduled downtime."""

    def list_downtime(
        self,
        line_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        include_cancelled: bool = False,
    ) -> list[DowntimeInfo]:
        """
        Downtime records newest-start first, with line/division/location names.

        Args:
            line_id: Restrict to one line.
            start: Inclusive lower bound on start_date_time.
            end: Inclusive upper bound on end_date_time.
            include_cancelled: Also return cancelled records.
        """
        stmt = (
            select(LineDowntime, Line.name, Line.code, Division.name, Location.name)
            .outerjoin(Line, LineDowntime.line_id == Line.id)
            .outerjoin(Division, Line.division_id == Division.id)
            .outerjoin(Location, Division.location_id == Location.id)
        )
        if not include_cancelled:
            stmt = stmt.where(LineDowntime.status != DowntimeStatus.CANCELLED.value)
        if line_id is not None:
            stmt = stmt.where(LineDowntime.line_id == line_id)
        if start is not None:
            stmt = stmt.where(LineDowntime.start_date_time >= start)
        if end is not None:
            stmt = stmt.where(LineDowntime.end_date_time <= end)
        stmt = stmt.order_by(LineDowntime.start_date_time.desc(), LineDowntime.created_at.desc())

        return [
            downtime.to_dto(
                line_name=line_name,
                line_code=line_code,
                division_name=division_name,
                location_name=location_name,
            )
            for downtime, line_name, line_code, division_name, location_name
            in self.store.rows(stmt)
        ]

    def records_in_window(
        self,
        line_id: UUID,
        lower: datetime,
        upper: datetime,
        statuses: Iterable[DowntimeStatus],
    ) -> list[DowntimeInfo]:
        """Records of one line in the given statuses lying inside [lower, upper]."""
        stmt = (
            select(LineDowntime)
            .where(LineDowntime.line_id == line_id)
            .where(LineDowntime.status.in_([s.value for s in statuses]))
            .where(LineDowntime.start_date_time >= lower)
            .where(LineDowntime.end_date_time <= upper)
            .order_by(LineDowntime.start_date_time)
        )
        return [downtime.to_dto() for downtime in self.store.scalars(stmt)]
