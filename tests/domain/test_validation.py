"""Tests for the field validation helpers used at service boundaries."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from planning_kernel.domain.validation import (
    coerce_bool,
    coerce_bound,
    coerce_date,
    coerce_datetime,
    coerce_decimal,
    coerce_enum,
    coerce_int,
    coerce_uuid,
    reject_unknown,
    require_text,
)
from planning_kernel.domain.values import InventoryStage
from planning_kernel.exceptions import (
    InvalidFieldValueError,
    MissingFieldError,
    UnknownFieldError,
)


class TestText:

    def test_strips(self):
        assert require_text("Line", {"code": "  P1 "}, "code") == "P1"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_is_missing(self, value):
        with pytest.raises(MissingFieldError) as exc_info:
            require_text("Line", {"code": value}, "code")
        assert exc_info.value.field == "code"

    def test_unknown_fields_listed_sorted(self):
        with pytest.raises(UnknownFieldError) as exc_info:
            reject_unknown("Inventory", ["quantity", "colour", "stage"], ["stage"])
        assert exc_info.value.fields == ["colour", "quantity"]


class TestNumbers:

    @pytest.mark.parametrize("value", ["12.5", 12, Decimal("12.5")])
    def test_decimal_accepts(self, value):
        assert coerce_decimal("Line", "press_tonnage", value) == Decimal(str(value))

    @pytest.mark.parametrize("value", [1.5, True, "abc", "NaN", "Infinity", None])
    def test_decimal_rejects(self, value):
        with pytest.raises(InvalidFieldValueError):
            coerce_decimal("Line", "press_tonnage", value)

    def test_decimal_bounds(self):
        with pytest.raises(InvalidFieldValueError, match="<= 1"):
            coerce_decimal("Line", "absenteeism_factor", "1.2", maximum=Decimal("1"))

    @pytest.mark.parametrize("value", [True, 1.0, "5"])
    def test_int_rejects_non_integers(self, value):
        with pytest.raises(InvalidFieldValueError):
            coerce_int("Inventory", "quantity", value)

    def test_int_minimum(self):
        with pytest.raises(InvalidFieldValueError):
            coerce_int("Inventory", "quantity", -1, minimum=0)


class TestTimes:

    def test_iso_string_with_offset_normalised(self):
        result = coerce_datetime("LineDowntime", "start_date_time", "2024-03-10T11:30:00+05:30")
        assert result == datetime(2024, 3, 10, 6, 0, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_naive_taken_as_utc(self):
        result = coerce_datetime("LineDowntime", "start_date_time", datetime(2024, 3, 10, 6, 0))
        assert result.tzinfo == timezone.utc

    def test_date_is_midnight(self):
        result = coerce_datetime("LineDowntime", "start_date_time", date(2024, 3, 10))
        assert result == datetime(2024, 3, 10, tzinfo=timezone.utc)

    def test_garbage_rejected(self):
        with pytest.raises(InvalidFieldValueError):
            coerce_datetime("LineDowntime", "start_date_time", "next tuesday")

    def test_date_from_string(self):
        assert coerce_date("Inventory", "expiry_date", "2024-12-31") == date(2024, 12, 31)

    def test_date_rejects_number(self):
        with pytest.raises(InvalidFieldValueError):
            coerce_date("Inventory", "expiry_date", 20241231)

    def test_bound_date_only_string_stays_a_date(self):
        result = coerce_bound("LineDowntime", "start", " 2024-03-01 ")
        assert result == date(2024, 3, 1)
        assert not isinstance(result, datetime)

    def test_bound_date_time_string_is_utc(self):
        result = coerce_bound("LineDowntime", "end", "2024-03-31T23:00:00+05:30")
        assert result == datetime(2024, 3, 31, 17, 30, tzinfo=timezone.utc)

    def test_bound_passes_dates_through(self):
        day = date(2024, 3, 1)
        assert coerce_bound("LineDowntime", "start", day) is day

    @pytest.mark.parametrize("value", ["soon", 20240301, None])
    def test_bound_rejects_garbage(self, value):
        with pytest.raises(InvalidFieldValueError) as exc_info:
            coerce_bound("LineDowntime", "start", value)
        assert exc_info.value.field == "start"


class TestOther:

    def test_enum(self):
        assert coerce_enum("Inventory", InventoryStage, "stage", "forged") is InventoryStage.FORGED

    def test_enum_error_lists_allowed(self):
        with pytest.raises(InvalidFieldValueError, match="raw_material"):
            coerce_enum("Inventory", InventoryStage, "stage", "painted")

    def test_uuid_from_string(self):
        value = uuid4()
        assert coerce_uuid("Division", "location_id", str(value)) == value

    def test_uuid_rejects_garbage(self):
        with pytest.raises(InvalidFieldValueError):
            coerce_uuid("Division", "location_id", "not-a-uuid")

    @pytest.mark.parametrize("value,expected", [(True, True), (0, False), (1, True)])
    def test_bool(self, value, expected):
        assert coerce_bool("Line", "is_continuous", value) is expected

    def test_bool_rejects_string(self):
        with pytest.raises(InvalidFieldValueError):
            coerce_bool("Line", "is_continuous", "yes")
