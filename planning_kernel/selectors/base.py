"""
Module: planning_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
    Selectors are the read side of the directory and ledgers: joins,
    filters and aggregates that return DTOs.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and domain/.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors only call EntityStore read methods
      (query, rows, scalars, scalar, get).
    - DTO return convention: selectors return frozen dataclasses or computed
      values, never ORM instances.

Failure modes:
    - StorageError from the store.  Selectors do not catch it; the owning
      service decides whether a read degrades to an empty result.
"""

from abc import ABC

from planning_kernel.db.store import EntityStore


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept an EntityStore from the caller, perform read-only
        queries, and return DTOs or computed results.
    """

    def __init__(self, store: EntityStore):
        self.store = store
