"""Global test fixtures and shared test infrastructure.

Provides:
- Environment variable defaults (must be set before any app import)
- FakeResult / FakeScalarResult matching SQLAlchemy Result interface
- FakeAsyncSession matching SQLAlchemy AsyncSession interface
- Execute handler helpers (entity_handler, sequence_handler)
- Factories for settings, bearer tokens, profiles and submissions
- Shared pytest fixtures for the app, the fake session and auth headers
"""

from __future__ import annotations

import os

# Environment defaults: importing acrecap.main builds a module-level app from
# the process environment, so keep it free of real backends.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.pop("DATABASE_URL", None)
os.environ.pop("REDIS_URL", None)

import time
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import UUID, uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from acrecap.core.settings import Settings
from acrecap.db.session import get_db
from acrecap.main import create_app
from acrecap.models.profile import Profile
from acrecap.models.submission import Submission


JWT_SECRET = "test-jwt-secret"
ADMIN_EMAIL = "boss@acrecap.in"

SAMPLE_SUBMISSION: dict[str, Any] = {
    "name": "Ravi Kumar",
    "mobile": "9876543210",
    "email": "ravi@example.com",
    "city": "Pune",
    "business_name": "Kumar Traders",
    "business_type": "Retail",
    "annual_turnover": "50L-1Cr",
    "years_in_business": "5",
    "loan_amount": "1500000",
    "loan_purpose": "Working capital",
    "tenure": "24",
    "pan_number": "ABCDE1234F",
    "gst_number": None,
}


# ---------------------------------------------------------------------------
# Sentinel
# ---------------------------------------------------------------------------

_UNSET = object()


# ---------------------------------------------------------------------------
# FakeResult / FakeScalarResult: mimics sqlalchemy.engine.Result
# ---------------------------------------------------------------------------


class FakeScalarResult:
    """Mimics the object returned by ``Result.scalars()``."""

    def __init__(self, items: list | None = None) -> None:
        self._items = list(items or [])

    def all(self) -> list:
        return list(self._items)

    def first(self):
        return self._items[0] if self._items else None


class FakeResult:
    """Mimics ``sqlalchemy.engine.Result``.

    Parameters
    ----------
    scalar:
        Value returned by ``.scalar_one_or_none()`` / ``.scalar_one()``.
    items:
        List of model instances for ``.scalars().all()`` / ``.scalars().first()``.
    """

    def __init__(self, *, scalar: Any = _UNSET, items: list | None = None) -> None:
        self._scalar = scalar
        self._items = items or []

    def scalar_one_or_none(self):
        if self._scalar is _UNSET:
            return None
        return self._scalar

    def scalar_one(self):
        if self._scalar is _UNSET or self._scalar is None:
            from sqlalchemy.exc import NoResultFound

            raise NoResultFound()
        return self._scalar

    def scalars(self) -> FakeScalarResult:
        return FakeScalarResult(self._items)


# ---------------------------------------------------------------------------
# FakeAsyncSession: mimics sqlalchemy.ext.asyncio.AsyncSession
# ---------------------------------------------------------------------------


class FakeAsyncSession:
    """Fake ``AsyncSession`` implementing the methods production code calls.

    Configure responses via ``on_execute``, ``on_execute_return``, and ``on_get``.
    Every statement passed to ``execute()`` is kept in ``statements``.
    """

    def __init__(self) -> None:
        self.added: list[Any] = []
        self.committed: bool = False
        self.commit_count: int = 0
        self.rolled_back: bool = False
        self.statements: list[Any] = []
        self._execute_handlers: list[Callable] = []
        self._get_store: dict[tuple, Any] = {}
        self._default_result = FakeResult()

    # -- Configuration helpers (called from test setup) --

    def on_execute(self, handler: Callable) -> FakeAsyncSession:
        """Register a handler: ``handler(stmt) -> FakeResult | None``."""
        self._execute_handlers.append(handler)
        return self

    def on_execute_return(self, result: FakeResult) -> FakeAsyncSession:
        """Always return *result* for any ``execute()`` call."""
        self._execute_handlers.append(lambda _stmt: result)
        return self

    def on_get(self, model_class: type, pk: Any, value: Any) -> FakeAsyncSession:
        """Pre-configure ``db.get(model_class, pk)`` to return *value*."""
        self._get_store[(model_class, str(pk))] = value
        return self

    # -- AsyncSession interface --

    async def execute(self, stmt, *args, **kwargs):
        self.statements.append(stmt)
        for handler in self._execute_handlers:
            result = handler(stmt)
            if result is not None:
                return result
        return self._default_result

    def add(self, obj: Any) -> None:
        self.added.append(obj)
        if hasattr(obj, "id") and getattr(obj, "id", None) is None:
            obj.id = uuid4()
        # Mirror the identity map so later get() calls see new rows.
        if getattr(obj, "id", None) is not None:
            self._get_store.setdefault((type(obj), str(obj.id)), obj)

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.committed = True
        self.commit_count += 1

    async def rollback(self) -> None:
        self.rolled_back = True

    async def get(self, model: type, pk: Any):
        return self._get_store.get((model, str(pk)))

    async def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Execute handler helpers
# ---------------------------------------------------------------------------


def entity_handler(entity_class: type, result: FakeResult) -> Callable:
    """Return *result* when the query targets *entity_class*.

    Routes based on ``stmt.column_descriptions[0]["entity"]``.
    """

    def _handler(stmt):
        descriptions = getattr(stmt, "column_descriptions", None)
        if descriptions and descriptions[0].get("entity") is entity_class:
            return result
        return None

    return _handler


def sequence_handler(results: list[FakeResult]) -> Callable:
    """Return results sequentially, one per ``execute()`` call."""
    iterator = iter(results)

    def _handler(_stmt):
        try:
            return next(iterator)
        except StopIteration:
            return None

    return _handler


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "WARNING",
        "ADMIN_EMAILS": ADMIN_EMAIL,
        "SUPABASE_JWT_SECRET": JWT_SECRET,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_token(
    user_id: UUID | str,
    email: str | None = "user@example.com",
    *,
    secret: str = JWT_SECRET,
    audience: str = "authenticated",
    expires_in: int = 3600,
    **claims: Any,
) -> str:
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "aud": audience,
        "exp": int(time.time()) + expires_in,
    }
    if email is not None:
        payload["email"] = email
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id: UUID | str, email: str | None = "user@example.com", **claims: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, email, **claims)}"}


def make_profile(
    *,
    email: str = "user@example.com",
    role: str = "user",
    **overrides: Any,
) -> Profile:
    now = datetime.now(timezone.utc)
    defaults: dict[str, Any] = dict(
        id=uuid4(),
        email=email,
        full_name="Test User",
        phone="9876543210",
        role=role,
        created_at=now,
        updated_at=now,
    )
    defaults.update(overrides)
    return Profile(**defaults)


def make_submission(*, status: str = "pending", user_id: UUID | None = None, **overrides: Any) -> Submission:
    now = datetime.now(timezone.utc)
    defaults: dict[str, Any] = dict(SAMPLE_SUBMISSION)
    defaults.update(
        id=uuid4(),
        created_at=now,
        updated_at=now,
        user_id=user_id,
        status=status,
    )
    defaults.update(overrides)
    return Submission(**defaults)


# ---------------------------------------------------------------------------
# Shared pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def fake_db() -> FakeAsyncSession:
    return FakeAsyncSession()


@pytest.fixture
def client(app, fake_db) -> TestClient:
    """Client whose ``get_db`` yields the shared ``fake_db``."""

    async def _get_db():
        yield fake_db

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def unconfigured_client(app) -> TestClient:
    """Client for an app with no DATABASE_URL: data endpoints answer 503."""
    return TestClient(app)


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def user_headers(user_id) -> dict[str, str]:
    return auth_headers(user_id, "user@example.com")


@pytest.fixture
def admin_id() -> UUID:
    return uuid4()


@pytest.fixture
def admin_headers(admin_id) -> dict[str, str]:
    return auth_headers(admin_id, ADMIN_EMAIL)
