"""
Field validation helpers for service boundaries.

Pure checks with no I/O.  Each helper either returns the normalised value or
raises a typed ValidationError naming the entity and field.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Mapping, TypeVar
from uuid import UUID

from planning_kernel.exceptions import (
    InvalidFieldValueError,
    MissingFieldError,
    UnknownFieldError,
)

E = TypeVar("E", bound=Enum)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_text(entity_type: str, data: Mapping[str, Any], field: str) -> str:
    """Return ``data[field]`` stripped, or raise MissingFieldError if absent/blank."""
    value = data.get(field)
    if is_blank(value):
        raise MissingFieldError(entity_type, field)
    return str(value).strip()


def require_present(entity_type: str, data: Mapping[str, Any], field: str) -> Any:
    value = data.get(field)
    if is_blank(value):
        raise MissingFieldError(entity_type, field)
    return value


def reject_unknown(
    entity_type: str,
    fields: Iterable[str],
    allowed: Iterable[str],
) -> None:
    """Raise UnknownFieldError naming every field outside ``allowed``."""
    unknown = sorted(set(fields) - set(allowed))
    if unknown:
        raise UnknownFieldError(entity_type, unknown)


def coerce_enum(entity_type: str, enum_cls: type[E], field: str, value: Any) -> E:
    """Return ``value`` as a member of ``enum_cls``."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidFieldValueError(
            entity_type, field, value, f"must be one of: {allowed}"
        ) from None


def coerce_decimal(
    entity_type: str,
    field: str,
    value: Any,
    minimum: Decimal | None = None,
    maximum: Decimal | None = None,
) -> Decimal:
    """Return ``value`` as a Decimal within the optional bounds.  Floats are rejected."""
    if isinstance(value, (float, bool)):
        raise InvalidFieldValueError(entity_type, field, value, "must be a Decimal, int or string")
    try:
        result = Decimal(str(value).strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidFieldValueError(entity_type, field, value, "not a number") from None
    if not result.is_finite():
        raise InvalidFieldValueError(entity_type, field, value, "must be finite")
    if minimum is not None and result < minimum:
        raise InvalidFieldValueError(entity_type, field, value, f"must be >= {minimum}")
    if maximum is not None and result > maximum:
        raise InvalidFieldValueError(entity_type, field, value, f"must be <= {maximum}")
    return result


def coerce_int(entity_type: str, field: str, value: Any, minimum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldValueError(entity_type, field, value, "must be an integer")
    if minimum is not None and value < minimum:
        raise InvalidFieldValueError(entity_type, field, value, f"must be >= {minimum}")
    return value


def coerce_datetime(entity_type: str, field: str, value: Any) -> datetime:
    """
    Accept a datetime, a date (midnight) or an ISO-8601 string.

    The result is timezone-aware UTC; naive input is taken to be UTC.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            pass
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    raise InvalidFieldValueError(entity_type, field, value, "not a date-time")


def coerce_date(entity_type: str, field: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidFieldValueError(entity_type, field, value, "not a date")


def coerce_uuid(entity_type: str, field: str, value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise InvalidFieldValueError(entity_type, field, value, "not a UUID") from None


def coerce_bool(entity_type: str, field: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value in (0, 1):
        return bool(value)
    raise InvalidFieldValueError(entity_type, field, value, "must be true or false")


def coerce_bound(entity_type: str, field: str, value: Any) -> date | datetime:
    """
    Accept a query range bound as a date, a datetime or an ISO-8601 string.

    A date-only string stays a ``date`` so the bound keeps its whole-day
    meaning; any other string goes through ``coerce_datetime``.
    """
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            return coerce_datetime(entity_type, field, text)
    if isinstance(value, date):
        return value
    raise InvalidFieldValueError(entity_type, field, value, "not a date or date-time")
