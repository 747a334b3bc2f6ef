# tests/conftest.py
"""
Pytest configuration and shared fixtures.

Accounts: in-memory store, fresh AuthService, session context
HTTP: TestClient with dependency overrides (no shared state between tests)
"""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Make "from lostbuddy.main import app" work when tests run from CI/workdir
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from lostbuddy.main import app  # noqa: E402
from lostbuddy.db import MemoryKeyValueStore  # noqa: E402
from lostbuddy.accounts.auth import AuthService, get_auth_service  # noqa: E402
from lostbuddy.accounts.auth_routes import get_session_context  # noqa: E402
from lostbuddy.accounts.session import SessionContext  # noqa: E402
from lostbuddy.accounts.store import AccountStore  # noqa: E402


FIXED_NOW_MS = 1_700_000_000_000


class RefusingStore(MemoryKeyValueStore):
    """In-memory store whose writes and deletes can be switched off."""

    def __init__(self, refuse_set: bool = False, refuse_remove: bool = False):
        super().__init__()
        self.refuse_set = refuse_set
        self.refuse_remove = refuse_remove

    def set(self, key, value):
        if self.refuse_set:
            return False
        return super().set(key, value)

    def remove(self, key):
        if self.refuse_remove:
            return False
        return super().remove(key)


# ============================================================
# Storage & Service Fixtures
# ============================================================

@pytest.fixture
def kv():
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def account_store(kv):
    return AccountStore(kv)


@pytest.fixture
def service(account_store):
    """AuthService with a fixed clock."""
    return AuthService(account_store, clock=lambda: FIXED_NOW_MS)


@pytest.fixture
def context():
    """In-memory session slot."""
    return SessionContext()


@pytest.fixture
def persisted_context(kv):
    """Session slot persisted in the same store as the accounts."""
    return SessionContext(kv)


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def asha():
    """Registration form for the canonical sample user."""
    return {
        "name": "Asha Rao",
        "mobile": "9876543210",
        "email": "Asha@Test.com",
        "city": "Pune",
        "password": "secret1",
        "confirm_password": "secret1",
    }


@pytest.fixture
def registered(service, asha):
    """Service with Asha already registered."""
    result = service.register(**asha)
    assert result.ok, result.message
    return result.account


# ============================================================
# HTTP Fixtures
# ============================================================

@pytest.fixture
def test_client(kv, service):
    """TestClient wired to the per-test store and service."""
    app.dependency_overrides[get_auth_service] = lambda: service
    app.dependency_overrides[get_session_context] = lambda: SessionContext(kv)
    with patch.dict(os.environ, {"AUTH_ENDPOINTS_ENABLED": "on"}):
        with TestClient(app) as c:
            yield c
    app.dependency_overrides.clear()


@pytest.fixture
def mock_supabase():
    """Mock Supabase client with empty default responses."""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value.data = []
    mock_client.table.return_value.upsert.return_value.execute.return_value.data = []
    mock_client.table.return_value.delete.return_value.eq.return_value.execute.return_value.data = []
    return mock_client


# ============================================================
# Markers
# ============================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that exercise the HTTP app end to end"
    )
