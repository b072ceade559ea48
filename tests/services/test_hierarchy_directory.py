"""
Tests for the hierarchy directory (Location -> Division -> Line).

Covers:
- Create with required fields, parent references and defaults
- Listings: active only, ordered by name, parent names via outer joins
- Update semantics (partial, empty, unknown fields)
- Soft delete lifecycle
- Observer notification and listing refresh
- Listings degrade to [] when the store fails
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from planning_kernel.db.store import EntityStore
from planning_kernel.exceptions import (
    InvalidFieldValueError,
    LifecycleTransitionError,
    MissingFieldError,
    NotFoundError,
    ReferentialError,
    StorageError,
    UnknownFieldError,
)
from planning_kernel.services.hierarchy_directory import (
    DivisionDirectory,
    LineDirectory,
    _DirectoryService,
)


class TestLocations:
    """Location directory."""

    def test_create_and_get(self, hierarchy, clock):
        location_id = hierarchy.locations.create(code="MUN", name="Mundhawa")

        info = hierarchy.locations.get(location_id)
        assert info.code == "MUN"
        assert info.name == "Mundhawa"
        assert info.address is None
        assert info.is_active is True
        assert info.created_at == clock.now()
        assert info.updated_at == clock.now()

    def test_create_requires_code(self, hierarchy):
        with pytest.raises(MissingFieldError) as exc_info:
            hierarchy.locations.create(name="Mundhawa")
        assert exc_info.value.field == "code"

    def test_create_rejects_blank_name(self, hierarchy):
        with pytest.raises(MissingFieldError) as exc_info:
            hierarchy.locations.create(code="MUN", name="   ")
        assert exc_info.value.field == "name"

    def test_create_rejects_unknown_field(self, hierarchy):
        with pytest.raises(UnknownFieldError) as exc_info:
            hierarchy.locations.create(code="MUN", name="Mundhawa", colour="red")
        assert exc_info.value.fields == ["colour"]

    def test_duplicate_code_is_storage_error(self, hierarchy):
        hierarchy.locations.create(code="MUN", name="Mundhawa")
        with pytest.raises(StorageError):
            hierarchy.locations.create(code="MUN", name="Mundhawa again")

        # The failed insert rolled back only its own SAVEPOINT.
        assert [loc.code for loc in hierarchy.locations.list()] == ["MUN"]

    def test_get_unknown_raises(self, hierarchy):
        with pytest.raises(NotFoundError) as exc_info:
            hierarchy.locations.get(uuid4())
        assert exc_info.value.entity_type == "Location"

    def test_list_is_active_only_and_ordered_by_name(self, hierarchy):
        hierarchy.locations.create(code="STR", name="Stuttgart")
        aug = hierarchy.locations.create(code="AUG", name="Augsburg")
        hierarchy.locations.create(code="MUN", name="Mundhawa")
        hierarchy.locations.deactivate(aug)

        assert [loc.name for loc in hierarchy.locations.list()] == ["Mundhawa", "Stuttgart"]

    def test_deactivated_location_still_resolves_by_id(self, hierarchy, location_id):
        hierarchy.locations.deactivate(location_id)

        info = hierarchy.locations.get(location_id)
        assert info.is_active is False


class TestDivisions:
    """Division directory."""

    def test_create_with_location_join(self, hierarchy, location_id):
        """Creating FMD under MUN lists it with the location's name and code."""
        division_id = hierarchy.divisions.create(
            location_id=location_id, code="FMD", name="Forging"
        )

        listing = hierarchy.divisions.list()
        assert len(listing) == 1
        division = listing[0]
        assert division.id == division_id
        assert division.is_active is True
        assert division.location_name == "Mundhawa"
        assert division.location_code == "MUN"

    def test_create_requires_location(self, hierarchy):
        with pytest.raises(MissingFieldError) as exc_info:
            hierarchy.divisions.create(code="FMD", name="Forging")
        assert exc_info.value.field == "location_id"

    def test_create_with_unknown_location(self, hierarchy):
        with pytest.raises(ReferentialError) as exc_info:
            hierarchy.divisions.create(location_id=uuid4(), code="FMD", name="Forging")
        assert exc_info.value.field == "location_id"

    def test_create_with_malformed_location_id(self, hierarchy):
        with pytest.raises(InvalidFieldValueError):
            hierarchy.divisions.create(location_id="not-a-uuid", code="FMD", name="Forging")

    def test_same_code_allowed_in_other_location(self, hierarchy, location_id):
        other = hierarchy.locations.create(code="STR", name="Stuttgart")
        hierarchy.divisions.create(location_id=location_id, code="FMD", name="Forging")
        hierarchy.divisions.create(location_id=other, code="FMD", name="Forging")

        assert len(hierarchy.divisions.list()) == 2

    def test_filter_by_location(self, hierarchy, location_id):
        other = hierarchy.locations.create(code="STR", name="Stuttgart")
        hierarchy.divisions.create(location_id=location_id, code="FMD", name="Forging")
        hierarchy.divisions.create(location_id=other, code="MCH", name="Machining")

        listing = hierarchy.divisions.list(location_id)
        assert [d.code for d in listing] == ["FMD"]

    def test_listing_survives_deactivated_parent(self, hierarchy, location_id, division_id):
        hierarchy.locations.deactivate(location_id)

        listing = hierarchy.divisions.list()
        assert [d.location_name for d in listing] == ["Mundhawa"]

    def test_move_to_unknown_location(self, hierarchy, division_id):
        with pytest.raises(ReferentialError):
            hierarchy.divisions.update(division_id, location_id=uuid4())


class TestLines:
    """Line directory and its capacity parameters."""

    def test_defaults(self, hierarchy, line_id):
        line = hierarchy.lines.get(line_id)
        assert line.is_continuous is True
        assert line.gross_hours_per_week == Decimal("168")
        assert line.absenteeism_factor == Decimal("0.05")
        assert line.unplanned_downtime_buffer == Decimal("0.10")
        assert line.press_tonnage == Decimal("2500")

    def test_listing_joins_division_and_location(self, hierarchy, line_id):
        listing = hierarchy.lines.list()
        assert len(listing) == 1
        line = listing[0]
        assert line.division_name == "Forging"
        assert line.division_code == "FMD"
        assert line.location_name == "Mundhawa"
        assert line.location_code == "MUN"

    def test_shut_height_range_checked(self, hierarchy, division_id):
        with pytest.raises(InvalidFieldValueError) as exc_info:
            hierarchy.lines.create(
                division_id=division_id,
                code="P2",
                name="Press 2",
                shut_height_min="900",
                shut_height_max="800",
            )
        assert exc_info.value.field == "shut_height_min"

    def test_absenteeism_factor_bounded(self, hierarchy, line_id):
        with pytest.raises(InvalidFieldValueError):
            hierarchy.lines.update(line_id, absenteeism_factor="1.5")

    def test_float_rejected(self, hierarchy, line_id):
        with pytest.raises(InvalidFieldValueError):
            hierarchy.lines.update(line_id, press_tonnage=2500.0)

    def test_unknown_division(self, hierarchy):
        with pytest.raises(ReferentialError):
            hierarchy.lines.create(division_id=uuid4(), code="P9", name="Press 9")


class TestUpdate:
    """Partial updates."""

    def test_rewrites_only_supplied_fields(self, hierarchy, location_id, clock):
        clock.advance(60)
        info = hierarchy.locations.update(location_id, name="Mundhawa Plant")

        assert info.name == "Mundhawa Plant"
        assert info.code == "MUN"
        assert info.address == "Mundhawa Road, Pune"
        assert info.updated_at == clock.now()
        assert info.created_at < info.updated_at

    def test_empty_update_writes_nothing(self, hierarchy, location_id, clock):
        before = hierarchy.locations.get(location_id)
        clock.advance(60)

        after = hierarchy.locations.update(location_id)
        assert after == before

    def test_unknown_field_rejected(self, hierarchy, location_id):
        with pytest.raises(UnknownFieldError):
            hierarchy.locations.update(location_id, region="south")

    def test_is_active_not_updatable(self, hierarchy, location_id):
        with pytest.raises(UnknownFieldError):
            hierarchy.locations.update(location_id, is_active=False)

    def test_cannot_blank_required_field(self, hierarchy, location_id):
        with pytest.raises(MissingFieldError):
            hierarchy.locations.update(location_id, code="")

    def test_update_unknown_id(self, hierarchy):
        with pytest.raises(NotFoundError):
            hierarchy.locations.update(uuid4(), name="x")


class TestLifecycle:
    """Soft delete through the directory workflow."""

    def test_deactivate_then_reactivate(self, hierarchy, line_id):
        assert hierarchy.lines.deactivate(line_id).is_active is False
        assert hierarchy.lines.list() == []

        assert hierarchy.lines.reactivate(line_id).is_active is True
        assert [line.id for line in hierarchy.lines.list()] == [line_id]

    def test_double_deactivate_rejected(self, hierarchy, location_id):
        hierarchy.locations.deactivate(location_id)
        with pytest.raises(LifecycleTransitionError) as exc_info:
            hierarchy.locations.deactivate(location_id)
        assert exc_info.value.state == "inactive"
        assert exc_info.value.action == "deactivate"

    def test_reactivate_active_rejected(self, hierarchy, location_id):
        with pytest.raises(LifecycleTransitionError):
            hierarchy.locations.reactivate(location_id)

    def test_create_inactive(self, hierarchy):
        location_id = hierarchy.locations.create(code="OLD", name="Old plant", is_active=False)
        assert hierarchy.locations.get(location_id).is_active is False
        assert hierarchy.locations.list() == []


class TestObservers:
    """Listing refresh and change notices."""

    def test_listing_refreshed_before_notify(self, hierarchy):
        seen = []
        hierarchy.locations.subscribe(
            lambda notice: seen.append((notice, [loc.code for loc in hierarchy.locations.listing]))
        )

        location_id = hierarchy.locations.create(code="MUN", name="Mundhawa")

        assert len(seen) == 1
        notice, listing_codes = seen[0]
        assert notice.entity_type == "Location"
        assert notice.action == "created"
        assert notice.entity_id == location_id
        assert listing_codes == ["MUN"]

    def test_every_mutation_notifies(self, hierarchy, location_id):
        actions = []
        hierarchy.locations.subscribe(lambda notice: actions.append(notice.action))

        hierarchy.locations.update(location_id, name="Mundhawa Plant")
        hierarchy.locations.deactivate(location_id)
        hierarchy.locations.reactivate(location_id)

        assert actions == ["updated", "deactivated", "reactivated"]

    def test_unsubscribe(self, hierarchy, location_id):
        actions = []
        unsubscribe = hierarchy.locations.subscribe(lambda notice: actions.append(notice.action))
        unsubscribe()

        hierarchy.locations.update(location_id, name="Mundhawa Plant")
        assert actions == []

    def test_failed_write_does_not_notify(self, hierarchy):
        actions = []
        hierarchy.locations.subscribe(lambda notice: actions.append(notice.action))

        with pytest.raises(MissingFieldError):
            hierarchy.locations.create(code="MUN")
        assert actions == []

    def test_refresh_all(self, hierarchy, line_id):
        hierarchy.refresh()
        assert [loc.code for loc in hierarchy.locations.listing] == ["MUN"]
        assert [d.code for d in hierarchy.divisions.listing] == ["FMD"]
        assert [line.code for line in hierarchy.lines.listing] == ["P1"]


class TestReadFailures:
    """Store failures on listings."""

    class FailingReadStore(EntityStore):
        def rows(self, statement, params=None):
            raise StorageError("query", "database disk image is malformed")

    def test_division_list_degrades_to_empty(self, session, clock, captured_logs):
        divisions = DivisionDirectory(self.FailingReadStore(session), clock)

        assert divisions.list() == []
        assert divisions.refresh() == []

        degraded = [r for r in captured_logs() if r["message"] == "read_degraded"]
        assert len(degraded) == 2
        assert degraded[0]["entity_type"] == "Division"
        assert degraded[0]["operation"] == "list"
        assert degraded[0]["exc_code"] == "STORAGE_ERROR"

    def test_line_list_degrades_to_empty(self, session, clock):
        assert LineDirectory(self.FailingReadStore(session), clock).list() == []

    def test_get_still_propagates(self, session, clock, division_id):
        class FailingGetStore(EntityStore):
            def get(self, model, entity_id):
                raise StorageError("get", "database is locked")

        divisions = DivisionDirectory(FailingGetStore(session), clock)
        with pytest.raises(StorageError):
            divisions.get(division_id)


def test_directory_base_requires_list(store):
    with pytest.raises(TypeError):
        _DirectoryService(store)
