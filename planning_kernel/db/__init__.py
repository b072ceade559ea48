"""Database layer - engine, base classes, store capability, and ledger guards."""

from planning_kernel.db.base import UUID, Base, TrackedBase, UTCDateTime, UUIDString
from planning_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from planning_kernel.db.store import EntityStore

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "drop_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UTCDateTime",
    "UUID",
    "EntityStore",
]
