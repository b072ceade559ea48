"""
ORM-Level Immutability Enforcement for the stock-transaction ledger.

===============================================================================
WHY THIS EXISTS
===============================================================================

InventoryTransaction rows are the audit trail behind every quantity on an
Inventory row.  Once written they are never edited and never removed on
their own; a correction is a NEW adjustment with the opposite sign.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _check_transaction_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_transaction_delete() ---------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Removing an Inventory row removes its transactions through the foreign key's
ON DELETE CASCADE at the database level, which does not pass through these
listeners.

===============================================================================
USAGE
===============================================================================

Called by create_tables(), or once at application startup:

    from planning_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from planning_kernel.exceptions import ImmutabilityViolationError
from planning_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_transaction_immutability(mapper, connection, target):
    """Prevent any update to an InventoryTransaction row."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "InventoryTransaction",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="InventoryTransaction",
        entity_id=str(target.id),
        reason="Inventory transactions are append-only and cannot be modified",
    )


def _check_transaction_delete(mapper, connection, target):
    """Prevent deleting an InventoryTransaction row on its own."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "InventoryTransaction",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="InventoryTransaction",
        entity_id=str(target.id),
        reason="Inventory transactions cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register the ledger immutability listeners (idempotent).

    Call this after the models are imported but before any writes.
    """
    from planning_kernel.models.inventory import InventoryTransaction

    if not event.contains(InventoryTransaction, "before_update", _check_transaction_immutability):
        event.listen(InventoryTransaction, "before_update", _check_transaction_immutability)
    if not event.contains(InventoryTransaction, "before_delete", _check_transaction_delete):
        event.listen(InventoryTransaction, "before_delete", _check_transaction_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if it is not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove the ledger immutability listeners.

    WARNING: Only use this in tests that must bypass the ledger rules.
    """
    from planning_kernel.models.inventory import InventoryTransaction

    _safe_remove_listener(InventoryTransaction, "before_update", _check_transaction_immutability)
    _safe_remove_listener(InventoryTransaction, "before_delete", _check_transaction_delete)
