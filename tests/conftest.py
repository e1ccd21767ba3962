"""
tests/conftest.py -- Shared test fixtures for identity service tests.

This module provides:
  - store / token_service / auth_service: isolated unit-test objects backed by
    a plain in-memory SQLite database and a fixed clock
  - _patch_lifespan(): wires test objects into app.state, bypassing real startup
  - api_client: TestClient over the real FastAPI app for integration tests

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.

bcrypt runs at 4 rounds in tests; the default cost of 12 makes each hash take
a noticeable fraction of a second.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

# CRITICAL: Set DEBUG before any core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import AccountStore
from auth.tokens import TokenService

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789"
TEST_TTL = 3600
TEST_ROUNDS = 4
FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret_key=TEST_SECRET, ttl_seconds=TEST_TTL)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def auth_service(store: AccountStore, token_service: TokenService, clock: FakeClock) -> AuthService:
    return AuthService(store, token_service, bcrypt_rounds=TEST_ROUNDS, clock=clock)


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(store: AccountStore, auth_service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test objects into app.state so TestClient routes see an
    isolated database and a known signing key.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = store
        app.state.auth_service = auth_service
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request: pytest.FixtureRequest) -> Generator[tuple[TestClient, AccountStore], None, None]:
    """Yield (client, store) for API integration tests.

    One database per test module. Tests inside a module share it, so each
    test registers accounts under names no other test in the module uses.
    The database name includes the module name to keep modules apart.
    """
    db_name = request.module.__name__.replace(".", "_")
    db_url = f"sqlite:///file:test_{db_name}?mode=memory&cache=shared&uri=true"
    account_store = AccountStore(db_url=db_url)
    service = AuthService(
        account_store,
        TokenService(secret_key=TEST_SECRET, ttl_seconds=TEST_TTL),
        bcrypt_rounds=TEST_ROUNDS,
    )

    app.router.lifespan_context = _patch_lifespan(account_store, service)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, account_store

    account_store.close()
