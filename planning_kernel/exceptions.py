"""
Typed Exception Hierarchy for the Planning Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the console UI, import jobs, tests) must react to failures by KIND,
not by parsing message strings:

    try:
        ledger.adjust_stock(inventory_id, -30, "shipment", "u1")
    except NegativeStockError as e:
        show_warning(f"Only {e.current_quantity} on hand")
    except NotFoundError as e:
        show_error(e.code, e.entity_id)

Every exception carries:
  1. a CODE class attribute (machine-readable, API-safe)
  2. structured attributes describing the failure (not just a message)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PlanningKernelError (base)
    |
    +-- ValidationError
    |   +-- MissingFieldError
    |   +-- InvalidFieldValueError
    |   +-- UnknownFieldError
    |   +-- LifecycleTransitionError
    |   +-- NegativeStockError
    |
    +-- NotFoundError
    |
    +-- ReferentialError
    |
    +-- StorageError
    |
    +-- ImmutabilityViolationError
    |
    +-- LedgerImbalanceError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                   | When Raised
----------------|------------------------|------------------------------------------
Validation      | VALIDATION_ERROR       | Generic input rejection
                | MISSING_FIELD          | Required field absent or blank
                | INVALID_FIELD_VALUE    | Out-of-range / wrong-type / bad enum value
                | UNKNOWN_FIELD          | Update names a field that cannot change
                | INVALID_TRANSITION     | Lifecycle action not allowed from state
                | NEGATIVE_STOCK         | Adjustment would leave negative on-hand
----------------|------------------------|------------------------------------------
Lookup          | NOT_FOUND              | Target identifier does not exist
----------------|------------------------|------------------------------------------
References      | REFERENTIAL_INTEGRITY  | Foreign id (line_id, location_id...) unknown
----------------|------------------------|------------------------------------------
Storage         | STORAGE_ERROR          | Underlying read/write failure
----------------|------------------------|------------------------------------------
Ledger          | IMMUTABILITY_VIOLATION | UPDATE/DELETE of an inventory transaction
                | LEDGER_IMBALANCE       | quantity != initial + sum(transactions)

===============================================================================
PROPAGATION
===============================================================================

Write paths (create / update / approve / cancel / adjust_stock) never catch
these.  Listing reads catch StorageError at the service boundary, log it and
return an empty result.
"""

from typing import Any


class PlanningKernelError(Exception):
    """
    Base exception for all planning kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PLANNING_KERNEL_ERROR"


# Validation exceptions


class ValidationError(PlanningKernelError):
    """Input was rejected before any write took place."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class MissingFieldError(ValidationError):
    """A required field is absent or blank."""

    code: str = "MISSING_FIELD"

    def __init__(self, entity_type: str, field: str):
        self.entity_type = entity_type
        super().__init__(f"{entity_type}: '{field}' is required", field=field)


class InvalidFieldValueError(ValidationError):
    """A field value is out of range, of the wrong type, or not an allowed value."""

    code: str = "INVALID_FIELD_VALUE"

    def __init__(self, entity_type: str, field: str, value: Any, reason: str):
        self.entity_type = entity_type
        self.value = value
        self.reason = reason
        super().__init__(
            f"{entity_type}: invalid value {value!r} for '{field}': {reason}",
            field=field,
        )


class UnknownFieldError(ValidationError):
    """An update named a field that does not exist or cannot be changed."""

    code: str = "UNKNOWN_FIELD"

    def __init__(self, entity_type: str, fields: list[str]):
        self.entity_type = entity_type
        self.fields = fields
        super().__init__(
            f"{entity_type}: cannot update field(s) {', '.join(sorted(fields))}",
            field=fields[0] if fields else None,
        )


class LifecycleTransitionError(ValidationError):
    """The requested lifecycle action is not allowed from the current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, entity_type: str, entity_id: str, state: str, action: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.state = state
        self.action = action
        super().__init__(
            f"{entity_type} {entity_id}: cannot {action} from state '{state}'",
            field="status",
        )


class NegativeStockError(ValidationError):
    """A stock adjustment would leave a negative on-hand quantity."""

    code: str = "NEGATIVE_STOCK"

    def __init__(self, inventory_id: str, current_quantity: int, delta_quantity: int):
        self.inventory_id = inventory_id
        self.current_quantity = current_quantity
        self.delta_quantity = delta_quantity
        super().__init__(
            f"Inventory {inventory_id}: adjustment {delta_quantity} would leave "
            f"{current_quantity + delta_quantity} on hand",
            field="quantity",
        )


# Lookup exceptions


class NotFoundError(PlanningKernelError):
    """The operation targets an identifier that does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class ReferentialError(PlanningKernelError):
    """A foreign identifier does not resolve to an existing row."""

    code: str = "REFERENTIAL_INTEGRITY"

    def __init__(self, entity_type: str, field: str, referenced_id: str):
        self.entity_type = entity_type
        self.field = field
        self.referenced_id = referenced_id
        super().__init__(
            f"{entity_type}: '{field}' references unknown id {referenced_id}"
        )


# Storage exceptions


class StorageError(PlanningKernelError):
    """The underlying store failed to read or write."""

    code: str = "STORAGE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage failure during {operation}: {detail}")


# Ledger exceptions


class ImmutabilityViolationError(PlanningKernelError):
    """An append-only ledger row was about to be modified or deleted."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{entity_type} {entity_id}: {reason}")


class LedgerImbalanceError(PlanningKernelError):
    """An inventory quantity does not match its transaction ledger."""

    code: str = "LEDGER_IMBALANCE"

    def __init__(self, inventory_id: str, recorded_quantity: int, ledger_quantity: int):
        self.inventory_id = inventory_id
        self.recorded_quantity = recorded_quantity
        self.ledger_quantity = ledger_quantity
        super().__init__(
            f"Inventory {inventory_id}: quantity {recorded_quantity} does not "
            f"match ledger total {ledger_quantity}"
        )
