"""
tests/conftest.py -- Shared test fixtures for the SSO test suite.

This module provides:
  - hasher / issuer: real bcrypt (cost 4) and JWT primitives
  - Fake per-capability stores for service unit tests
  - sql_store: a SqlStore on a temp-file SQLite database
  - api_client: TestClient with a patched lifespan and a provisioned app

Design: file-backed SQLite under tmp_path rather than ':memory:'. The store
runs queries in worker threads (asyncio.to_thread) and TestClient runs the
app in its own thread; a plain ':memory:' database is per-connection and
would present a blank schema to each thread.

Environment variables must be set before any api/ or core/ import so
get_settings() picks them up on first (cached) use.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before importing api.main -- Settings is cached on first use.
os.environ.setdefault("ENV", "local")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
# The suite logs in far more than 10 times a minute from one client address.
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app as fastapi_app
from auth.models import App
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import SqlStore
from auth.tokens import TokenIssuer
from tests.fakes import APP_ONE, APP_TWO, TEST_TTL, FakeAppStore, FakeUserStore

# ---------------------------------------------------------------------------
# Primitive fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    """bcrypt at the minimum cost -- same algorithm, fast enough for a suite."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer()


@pytest.fixture
def user_store() -> FakeUserStore:
    return FakeUserStore()


@pytest.fixture
def app_store() -> FakeAppStore:
    return FakeAppStore(APP_ONE, APP_TWO)


@pytest.fixture
def service(user_store, app_store, hasher, issuer) -> AuthService:
    """AuthService over in-memory fakes, each capability supplied separately."""
    return AuthService(
        user_saver=user_store,
        user_provider=user_store,
        app_provider=app_store,
        admin_provider=user_store,
        token_ttl=TEST_TTL,
        hasher=hasher,
        issuer=issuer,
    )


@pytest.fixture
def sql_store(tmp_path) -> Generator[SqlStore, None, None]:
    store = SqlStore(f"sqlite:///{tmp_path / 'sso_test.db'}")
    yield store
    store.close()


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _patch_lifespan(store: SqlStore, hasher: PasswordHasher):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store into app.state so TestClient routes see an isolated
    database rather than the one named by DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.auth_service = AuthService(
            user_saver=store,
            user_provider=store,
            app_provider=store,
            admin_provider=store,
            token_ttl=TEST_TTL,
            hasher=hasher,
            issuer=TokenIssuer(),
        )
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(tmp_path_factory, hasher) -> Generator[tuple[TestClient, SqlStore, App], None, None]:
    """Yield (client, store, app) for API integration tests.

    One client and one database per test module. `app` is a provisioned
    client app with a random secret; tests that need a second app create it
    through the store.
    """
    db_path = tmp_path_factory.mktemp("api") / "sso_api.db"
    store = SqlStore(f"sqlite:///{db_path}")
    client_app = store.create_app("test-app")

    fastapi_app.router.lifespan_context = _patch_lifespan(store, hasher)

    with TestClient(fastapi_app, raise_server_exceptions=True) as client:
        yield client, store, client_app

    store.close()
