"""
Pytest fixtures for the planning kernel test suite.

Provides:
- A database session per test, rolled back at teardown
- A DeterministicClock and the directory / ledger services wired to it
- Structured log capture

Environment Variables:
- DATABASE_URL: SQLAlchemy connection URL.  If not set, an in-memory SQLite
  database is used.
"""

import json
import logging
import os
from datetime import datetime, timezone
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from planning_kernel.config import PlanningConfig
from planning_kernel.db.engine import (
    create_tables,
    drop_tables,
    init_engine_from_url,
    reset_engine,
)
from planning_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from planning_kernel.db.store import EntityStore
from planning_kernel.domain.clock import DeterministicClock
from planning_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from planning_kernel.services.downtime_ledger import DowntimeLedger
from planning_kernel.services.hierarchy_directory import HierarchyDirectory
from planning_kernel.services.inventory_ledger import InventoryLedger

DEFAULT_DATABASE_URL = "sqlite://"

TEST_USER_ID = "planner-01"


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture planning_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, inventory_ledger):
            inventory_ledger.adjust_stock(...)
            logs = captured_logs()
            assert any(r["message"] == "stock_adjusted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("planning_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Session-scoped DB infrastructure (create engine + tables ONCE per suite)
# =============================================================================


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session, drop once at end.

    Immutability listeners are registered once and remain active.
    """
    drop_tables()
    create_tables()
    register_immutability_listeners()
    yield
    unregister_immutability_listeners()
    drop_tables()


# =============================================================================
# Per-test session with automatic rollback
# =============================================================================


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    Uses the SQLAlchemy 2.0 ``join_transaction_mode`` pattern:
    - Opens a dedicated connection with an outer transaction
    - Creates a session that *joins* the outer transaction
    - Any ``session.commit()`` inside the test releases a savepoint
    - At teardown the outer transaction is rolled back, undoing ALL data
      changes made during the test
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(session) -> EntityStore:
    return EntityStore(session)


@pytest.fixture
def config() -> PlanningConfig:
    return PlanningConfig()


@pytest.fixture
def hierarchy(store, clock) -> HierarchyDirectory:
    return HierarchyDirectory(store, clock)


@pytest.fixture
def downtime_ledger(store, clock) -> DowntimeLedger:
    return DowntimeLedger(store, clock)


@pytest.fixture
def inventory_ledger(store, clock, config) -> InventoryLedger:
    return InventoryLedger(store, clock, config)


# =============================================================================
# Hierarchy data
# =============================================================================


@pytest.fixture
def location_id(hierarchy):
    return hierarchy.locations.create(code="MUN", name="Mundhawa", address="Mundhawa Road, Pune")


@pytest.fixture
def division_id(hierarchy, location_id):
    return hierarchy.divisions.create(location_id=location_id, code="FMD", name="Forging")


@pytest.fixture
def line_id(hierarchy, division_id):
    return hierarchy.lines.create(
        division_id=division_id,
        code="P1",
        name="Press 1",
        press_tonnage="2500",
    )


@pytest.fixture
def test_user_id() -> str:
    return TEST_USER_ID
