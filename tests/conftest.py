"""
tests/conftest.py -- Shared test fixtures for the student auth test suite.

This module provides:
  - _make_test_store(): isolated named shared-memory SQLite StudentStore
  - _patch_lifespan(): wires a test ServiceContext into app.state, bypassing real startup
  - api_client: module-scoped (TestClient, StudentStore) for HTTP integration tests
  - store / service: fresh in-memory store and AuthService per test for unit tests
  - registration: factory for unique, valid register payloads

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the API client because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread.

Env defaults must be set before any auth/core import:
  DEBUG=true              -- get_settings() auto-generates both JWT secrets
  RATE_LIMIT_ENABLED=false -- many logins from one client must not hit 429
  BCRYPT_ROUNDS=4         -- minimum cost keeps the suite fast
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import -- settings are read at import time.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.context import ServiceContext
from api.main import app
from auth.service import AuthService
from auth.store import StudentStore
from core.config import get_settings

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_store(db_suffix: str) -> StudentStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return StudentStore(db_url=f"sqlite:///file:test_students_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: StudentStore):
    """Return an async context manager that replaces the real lifespan.

    The store is owned (and closed) by the fixture, not by the lifespan.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.context = ServiceContext.open(get_settings(), store=store)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, StudentStore], None, None]:
    """Yield (client, store) for API integration tests.

    One TestClient per test module for speed; tests keep themselves
    independent by registering students with unique emails / ids.
    """
    store = _make_test_store(request.module.__name__.rsplit(".", 1)[-1])
    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, store

    store.close()


@pytest.fixture
def store() -> Generator[StudentStore, None, None]:
    """Fresh in-memory StudentStore per test."""
    s = StudentStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def service(store: StudentStore) -> AuthService:
    return AuthService(store)


@pytest.fixture
def registration() -> Callable[..., dict]:
    """Return a factory producing a valid, unique register payload (wire names).

    Keyword overrides replace individual fields, e.g. registration(year=9).
    """

    def _make(**overrides) -> dict:
        tag = uuid.uuid4().hex[:10]
        payload = {
            "name": "Test Student",
            "email": f"student-{tag}@example.com",
            "password": "pw123-secret",
            "studentId": f"S-{tag}",
            "course": "CS",
            "year": 2,
        }
        payload.update(overrides)
        return payload

    return _make
