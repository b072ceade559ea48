"""
HierarchySelector -- display listings of locations, divisions and lines.

Listings show active rows only, ordered by name.  Parents are joined with
outer joins so a row whose parent was deactivated still lists with its
parent's name.
"""

from uuid import UUID

from sqlalchemy import select

from planning_kernel.domain.dtos import DivisionInfo, LineInfo, LocationInfo
from planning_kernel.models.division import Division
from planning_kernel.models.line import Line
from planning_kernel.models.location import Location
from planning_kernel.selectors.base import BaseSelector


class HierarchySelector(BaseSelector):
    """Read-only queries over the Location -> Division -> Line graph."""

    def list_locations(self) -> list[LocationInfo]:
        stmt = (
            select(Location)
            .where(Location.is_active.is_(True))
            .order_by(Location.name, Location.code)
        )
        return [location.to_dto() for location in self.store.scalars(stmt)]

    def list_divisions(self, location_id: UUID | None = None) -> list[DivisionInfo]:
        stmt = (
            select(Division, Location.name, Location.code)
            .outerjoin(Location, Division.location_id == Location.id)
            .where(Division.is_active.is_(True))
        )
        if location_id is not None:
            stmt = stmt.where(Division.location_id == location_id)
        stmt = stmt.order_by(Division.name, Division.code)

        return [
            division.to_dto(location_name=location_name, location_code=location_code)
            for division, location_name, location_code in self.store.rows(stmt)
        ]

    def list_lines(self, division_id: UUID | None = None) -> list[LineInfo]:
        stmt = (
            select(Line, Division.name, Division.code, Location.name, Location.code)
            .outerjoin(Division, Line.division_id == Division.id)
            .outerjoin(Location, Division.location_id == Location.id)
            .where(Line.is_active.is_(True))
        )
        if division_id is not None:
            stmt = stmt.where(Line.division_id == division_id)
        stmt = stmt.order_by(Line.name, Line.code)

        return [
            line.to_dto(
                division_name=division_name,
                division_code=division_code,
                location_name=location_name,
                location_code=location_code,
            )
            for line, division_name, division_code, location_name, location_code
            in self.store.rows(stmt)
        ]
