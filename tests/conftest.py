"""Shared pytest fixtures: async test client, fake DB session, fake Redis."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.auth.dependencies import get_current_user
from app.auth.jwt import create_access_token
from app.database import get_db
from app.main import app


class FakeAsyncSession:
    def __init__(self) -> None:
        self.add = MagicMock()
        self.add_all = MagicMock()
        self.delete = AsyncMock()
        self.flush = AsyncMock()
        self.refresh = AsyncMock()
        self.commit = AsyncMock()
        self.rollback = AsyncMock()
        self.close = AsyncMock()
        self.execute = AsyncMock()
        self.scalar = AsyncMock(return_value=None)
        self.get = AsyncMock(return_value=None)


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self._counter: dict[str, int] = {}
        self.incr = AsyncMock(side_effect=self._incr)
        self.expire = AsyncMock(return_value=True)
        self.setex = AsyncMock(side_effect=self._setex)
        self.get = AsyncMock(side_effect=self._get)

    async def _incr(self, key: str) -> int:
        value = self._counter.get(key, 0) + 1
        self._counter[key] = value
        return value

    async def _setex(self, key: str, _ttl: int, value: str) -> bool:
        self.store[key] = value
        return True

    async def _get(self, key: str) -> str | None:
        return self.store.get(key)

    def reset_counters(self) -> None:
        self._counter.clear()


def make_user(**overrides: Any) -> SimpleNamespace:
    now = datetime.now(UTC)
    values = {
        "id": 1,
        "name": "Admin",
        "email": "admin@soleilfarm.vn",
        "hashed_password": "",
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
    """A lightweight async-session stub for dependency overrides and service tests."""
    return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Reusable fake Redis client backing rate limits and token revocation."""
    return FakeRedis()


@pytest.fixture(autouse=True)
def _reset_app_state() -> Any:
    yield
    app.state.redis = None


@asynccontextmanager
async def _noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
    yield


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async client with lifespan disabled and DB + current user mocked."""

    async def override_get_db() -> AsyncGenerator[Any, None]:
        yield fake_db_session

    async def override_current_user() -> Any:
        return make_user()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _noop_lifespan

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.router.lifespan_context = original_lifespan
    app.dependency_overrides.clear()


@pytest.fixture
async def auth_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async client with DB override only (real auth dependencies active)."""

    async def override_get_db() -> AsyncGenerator[Any, None]:
        yield fake_db_session

    app.dependency_overrides[get_db] = override_get_db
    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _noop_lifespan

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.router.lifespan_context = original_lifespan
    app.dependency_overrides.clear()


@pytest.fixture
def user_stub() -> SimpleNamespace:
    return make_user()


@pytest.fixture
def auth_user_id() -> int:
    return 1


@pytest.fixture
def access_token(auth_user_id: int) -> str:
    return create_access_token(str(auth_user_id), expires_minutes=30)
