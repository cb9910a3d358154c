"""
Shared test fixtures.

Provides a controllable clock, sample keys and records, an in-memory
database session, and resets the module-global configuration and logger
between tests.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from api_key_core.api_key import APIKey
from api_key_core.config import reset_config
from api_key_core.db import Base
from api_key_core.utils.hash_utils import sha256_text
from api_key_core.utils.logger import reset_logging


class FrozenClock:
    """Callable stand-in for utc_now() that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def reset_globals():
    """Drop cached configuration and logger so environment patches take effect."""
    reset_config()
    reset_logging()
    yield
    reset_config()
    reset_logging()


@pytest.fixture
def clock():
    """Freeze the package clock at 2026-01-01T12:00:00Z."""
    frozen = FrozenClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))
    with patch("api_key_core.utils.time_utils.utc_now", new=frozen):
        yield frozen


@pytest.fixture(scope="session")
def db_engine():
    """SQLite in-memory engine shared across the test session."""
    engine = create_engine("sqlite://", echo=False)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Session:
    """
    Create a database session for each test.

    Tables are created before and dropped after every test so that each
    test starts from an empty ``api_keys`` table.
    """
    Base.metadata.create_all(db_engine)
    session = sessionmaker(bind=db_engine)()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(db_engine)


@pytest.fixture
def owner_id() -> str:
    """Standard owner ID for testing."""
    return "owner-7f3c2a10"


@pytest.fixture
def api_key(owner_id) -> APIKey:
    """A freshly created key with a known secret."""
    return APIKey.create(owner_id, "test-secret-123", {"name": "Test Key"})


@pytest.fixture
def sample_record() -> dict:
    """A stored record as it would come back from the database."""
    return {
        "id": "3f2b8c4e-1d6a-4b7e-9a0c-5e8f7d6c4b3a",
        "owner_id": "owner-7f3c2a10",
        "name": "Stored Key",
        "api_key": sha256_text("stored-secret"),
        "timestamp": "2025-12-01T08:30:00.000Z",
        "restricted": False,
        "valid_until": None,
        "settings": {
            "rateLimit": {"amount": 50, "frequency": "minutes"},
            "ipWhitelist": {"enabled": True, "addresses": ["10.0.0.0/24", "192.168.1.7"]},
            "domainWhitelist": {"enabled": False, "domains": ["*.example.com"]},
            "allowedMethods": ["GET", "POST"],
            "metadata": {"team": "billing", "tier": 2},
            "quota": None,
        },
    }
