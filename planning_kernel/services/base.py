"""
BaseService -- abstract base for the directory and ledger services.

Responsibility:
    Provides the common constructor, the injected store and clock, the
    in-memory ``listing`` that UI collaborators render, and observer
    notification after every successful mutation.

Architecture position:
    Kernel > Services -- imperative shell.  Every service in
    ``planning_kernel/services/`` that performs writes extends this class.

Invariants enforced:
    - Transaction boundaries: services write through the EntityStore, which
      wraps each write in a SAVEPOINT.  They never commit or roll back the
      caller's transaction.
    - Refresh-then-notify: after a mutation the service reloads ``listing``
      and only then calls observers, so an observer always sees the new
      state.

Failure modes:
    - Exceptions raised by an observer propagate to the mutating caller.
      The write has already been applied to the caller's transaction.
"""

from abc import ABC
from typing import Any, Callable, Generic, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from planning_kernel.db.base import Base
from planning_kernel.db.store import EntityStore
from planning_kernel.domain.clock import Clock, SystemClock
from planning_kernel.domain.dtos import ChangeNotice
from planning_kernel.exceptions import NotFoundError, ReferentialError, StorageError
from planning_kernel.logging_config import get_logger

ModelType = TypeVar("ModelType", bound=Base)

Listener = Callable[[ChangeNotice], None]

logger = get_logger("services.base")


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts an EntityStore from the caller and performs every read and
        write through it.  Subclasses set ``entity_type`` and ``model`` and
        override ``_load_listing``.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    entity_type: str = ""
    model: type[Base]

    def __init__(self, store: EntityStore, clock: Clock | None = None):
        self.store = store
        self.clock = clock or SystemClock()
        self.listing: list[Any] = []
        self._listeners: list[Listener] = []

    @property
    def session(self) -> Session:
        return self.store.session

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for ChangeNotices; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def refresh(self) -> list[Any]:
        """Reload the in-memory listing from the store."""
        self.listing = self._load_listing()
        return self.listing

    def _load_listing(self) -> list[Any]:
        return []

    def _changed(self, action: str, entity_id: UUID) -> None:
        self.refresh()
        notice = ChangeNotice(
            entity_type=self.entity_type,
            action=action,
            entity_id=entity_id,
        )
        for listener in list(self._listeners):
            listener(notice)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_or_raise(self, entity_id: UUID) -> ModelType:
        """Load this service's entity by id, raising NotFoundError."""
        entity = self.store.get(self.model, entity_id)
        if entity is None:
            raise NotFoundError(self.entity_type, str(entity_id))
        return entity

    def _require_reference(
        self,
        model: type[Base],
        field: str,
        referenced_id: Any,
    ) -> None:
        """Raise ReferentialError unless ``referenced_id`` names a ``model`` row."""
        if self.store.get(model, referenced_id) is None:
            raise ReferentialError(self.entity_type, field, str(referenced_id))

    def _degrade(self, operation: str, read: Callable[[], list[Any]]) -> list[Any]:
        """Run a listing read; a StorageError is logged and yields []."""
        try:
            return read()
        except StorageError:
            logger.warning(
                "read_degraded",
                extra={"entity_type": self.entity_type, "operation": operation},
                exc_info=True,
            )
            return []
