"""
Module: planning_kernel.db.store
Responsibility: The store capability injected into every directory and
    ledger.  Exposes query / execute / transaction / generate_id over a
    caller-owned SQLAlchemy Session and translates every SQLAlchemy failure
    into StorageError.
Architecture position: Kernel > DB.  May import from db/base.py and
    exceptions.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - All-or-nothing writes: execute(), add(), update() and transaction() each
      run inside a SAVEPOINT.  A failure rolls back only that unit and leaves
      the caller's outer transaction usable.
    - No business logic: the store never validates, defaults, or filters.
    - The store never commits.  The caller (session_scope() or a test
      harness) owns the outer transaction.

Failure modes:
    - StorageError on any SQLAlchemyError (constraint violation, I/O failure,
      lost connection).  The original exception is chained as __cause__.
    - Non-storage exceptions raised inside atomic() roll back the SAVEPOINT
      and propagate unchanged.
"""

from contextlib import contextmanager
from typing import Any, Callable, Generator, Sequence, TypeVar
from uuid import UUID, uuid4

from sqlalchemy.engine import Row, RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Executable

from planning_kernel.db.base import Base
from planning_kernel.exceptions import StorageError
from planning_kernel.logging_config import get_logger

logger = get_logger("db.store")

ModelType = TypeVar("ModelType", bound=Base)

# A statement, or a (statement, params) pair
Statement = Executable | tuple[Executable, dict[str, Any]]


class EntityStore:
    """
    Query/execute/transaction capability over one SQLAlchemy session.

    Contract:
        Services receive an EntityStore in their constructor and perform
        every read and write through it.  Substituting a store bound to an
        in-memory SQLite session gives a complete fake for tests.

    Guarantees:
        - query() returns plain row mappings, rows() returns tuples and
          scalars() returns the first column (ORM entities for select(Model)).
        - transaction() applies all statements or none of them.
        - generate_id() returns a fresh, globally unique UUID.
    """

    def __init__(
        self,
        session: Session,
        id_factory: Callable[[], UUID] = uuid4,
    ):
        self._session = session
        self._id_factory = id_factory

    @property
    def session(self) -> Session:
        return self._session

    def generate_id(self) -> UUID:
        return self._id_factory()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(
        self,
        statement: Executable,
        params: dict[str, Any] | None = None,
    ) -> list[RowMapping]:
        """Run a read statement and return its rows as mappings."""
        try:
            result = self._session.execute(statement, params or {})
            return list(result.mappings().all())
        except SQLAlchemyError as exc:
            raise self._storage_error("query", exc) from exc

    def rows(
        self,
        statement: Executable,
        params: dict[str, Any] | None = None,
    ) -> list[Row]:
        """Run a read statement and return its rows as tuples."""
        try:
            return list(self._session.execute(statement, params or {}).all())
        except SQLAlchemyError as exc:
            raise self._storage_error("query", exc) from exc

    def scalars(
        self,
        statement: Executable,
        params: dict[str, Any] | None = None,
    ) -> list[Any]:
        """Run a read statement and return the first column of each row."""
        try:
            return list(self._session.execute(statement, params or {}).scalars().all())
        except SQLAlchemyError as exc:
            raise self._storage_error("query", exc) from exc

    def scalar(
        self,
        statement: Executable,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Run a read statement and return a single value (or None)."""
        try:
            return self._session.execute(statement, params or {}).scalar()
        except SQLAlchemyError as exc:
            raise self._storage_error("query", exc) from exc

    def get(self, model: type[ModelType], entity_id: UUID) -> ModelType | None:
        """Load one entity by primary key, or None."""
        try:
            return self._session.get(model, entity_id)
        except SQLAlchemyError as exc:
            raise self._storage_error("get", exc) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @contextmanager
    def atomic(self, operation: str = "transaction") -> Generator[Session, None, None]:
        """
        Run a block inside a SAVEPOINT.

        On success the SAVEPOINT is released (the outer transaction stays
        open).  On any exception it is rolled back; SQLAlchemy failures are
        re-raised as StorageError, everything else propagates unchanged.
        """
        try:
            with self._session.begin_nested():
                yield self._session
        except SQLAlchemyError as exc:
            raise self._storage_error(operation, exc) from exc

    def execute(
        self,
        statement: Executable,
        params: dict[str, Any] | None = None,
    ) -> None:
        """Run a single write statement atomically."""
        with self.atomic("execute") as session:
            session.execute(statement, params or {})

    def add(self, entity: ModelType) -> ModelType:
        """Insert one ORM entity and flush it."""
        with self.atomic("insert") as session:
            session.add(entity)
            session.flush()
        return entity

    def update(self, entity: ModelType, values: dict[str, Any]) -> ModelType:
        """
        Assign attribute values on a loaded entity and flush them atomically.

        Values are assigned inside the SAVEPOINT so that a failed flush
        rolls back (and expires) exactly these changes.
        """
        with self.atomic("update") as session:
            for name, value in values.items():
                setattr(entity, name, value)
            session.flush()
        return entity

    def flush(self) -> None:
        """Flush pending ORM changes inside a SAVEPOINT."""
        with self.atomic("flush") as session:
            session.flush()

    def transaction(self, statements: Sequence[Statement]) -> None:
        """
        Apply an ordered list of statements all-or-nothing.

        Each element is either a statement or a ``(statement, params)`` pair.
        """
        with self.atomic("transaction") as session:
            for item in statements:
                if isinstance(item, tuple):
                    statement, params = item
                else:
                    statement, params = item, {}
                session.execute(statement, params)
        logger.debug("store_transaction_applied", extra={"statements": len(statements)})

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _storage_error(self, operation: str, exc: SQLAlchemyError) -> StorageError:
        logger.error(
            "storage_failure",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        detail = str(getattr(exc, "orig", None) or exc)
        return StorageError(operation=operation, detail=detail)
