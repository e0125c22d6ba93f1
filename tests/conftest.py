"""Shared test fixtures for all test modules."""

import contextlib
from datetime import UTC, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker

from subledger.core import database as db_module
from subledger.core.database import Base, get_db
from subledger.models.payment_event import PaymentEvent, PaymentEventStatus

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Fixed instant used as "now" across handler and status tests
FIXED_NOW = datetime(2026, 3, 15, 8, 30, 12, 345000, tzinfo=UTC)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for direct repository testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


def add_event(db, **kwargs) -> PaymentEvent:
    """Insert a ledger row directly, allowing ``created_at`` to be set."""
    defaults = {
        "transaction_key": "tx_default",
        "amount": 9900,
        "status": PaymentEventStatus.PAID.value,
        "start_at": FIXED_NOW,
        "end_at": FIXED_NOW,
        "end_grace_at": FIXED_NOW,
        "next_schedule_at": None,
        "next_schedule_id": None,
    }
    defaults.update(kwargs)
    event = PaymentEvent(**defaults)
    db.add(event)
    db.commit()
    db.refresh(event)
    return event
