from __future__ import annotations

from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from app.auth.jwt import AuthError, create_access_token, create_refresh_token, decode_token
from app.auth.revocation import is_revoked, revoke_all
from app.main import app
from app.services.auth_service import AuthService


@pytest.mark.asyncio
async def test_missing_jwt_rejected_on_protected_endpoint(auth_client: AsyncClient) -> None:
    response = await auth_client.get("/api/v1/crop-cycles")
    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "auth_required"


def test_jwt_create_decode_roundtrip(auth_user_id: int) -> None:
    token = create_access_token(str(auth_user_id), expires_minutes=5)
    payload = decode_token(token, expected_type="access")
    assert payload["sub"] == str(auth_user_id)
    assert payload["typ"] == "access"
    assert payload["jti"]


def test_decode_invalid_token_raises_auth_error() -> None:
    with pytest.raises(AuthError):
        decode_token("invalid.token.payload", expected_type="access")


def test_refresh_token_rejected_as_access_token() -> None:
    token = create_refresh_token("1")
    with pytest.raises(AuthError) as exc_info:
        decode_token(token, expected_type="access")
    assert exc_info.value.code == "token_type_invalid"


@pytest.mark.asyncio
async def test_me_with_valid_token(
    auth_client: AsyncClient, fake_db_session: Any, user_stub: Any, access_token: str
) -> None:
    fake_db_session.get = AsyncMock(return_value=user_stub)

    response = await auth_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access_token}"})

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "admin@soleilfarm.vn"


@pytest.mark.asyncio
async def test_inactive_user_rejected(
    auth_client: AsyncClient, fake_db_session: Any, user_stub: Any, access_token: str
) -> None:
    user_stub.is_active = False
    fake_db_session.get = AsyncMock(return_value=user_stub)

    response = await auth_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access_token}"})

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "user_invalid"


@pytest.mark.asyncio
async def test_logout_revokes_current_token(
    auth_client: AsyncClient,
    fake_db_session: Any,
    fake_redis: Any,
    user_stub: Any,
    access_token: str,
) -> None:
    app.state.redis = fake_redis
    fake_db_session.get = AsyncMock(return_value=user_stub)
    headers = {"Authorization": f"Bearer {access_token}"}

    first = await auth_client.post("/api/v1/auth/logout", headers=headers)
    assert first.status_code == 200
    assert any(key.startswith("auth:revoked:jti:") for key in fake_redis.store)

    second = await auth_client.get("/api/v1/auth/me", headers=headers)
    assert second.status_code == 401
    assert second.json()["detail"]["error"] == "token_revoked"


@pytest.mark.asyncio
async def test_logout_all_cuts_off_earlier_tokens(fake_redis: Any) -> None:
    issued = int(datetime.now(UTC).timestamp()) - 30
    payload = {"sub": "1", "jti": "abc", "iat": issued}

    assert await is_revoked(fake_redis, payload) is False
    await revoke_all(fake_redis, "1")
    assert await is_revoked(fake_redis, payload) is True
    assert await is_revoked(fake_redis, {"sub": "2", "jti": "def", "iat": issued}) is False


@pytest.mark.asyncio
async def test_revocation_is_skipped_without_redis() -> None:
    assert await is_revoked(None, {"sub": "1", "jti": "abc", "iat": 0}) is False


@pytest.mark.asyncio
async def test_login_with_bad_credentials_returns_422(auth_client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def no_user(self: AuthService, email: str) -> None:
        return None

    monkeypatch.setattr(AuthService, "_find_by_email", no_user)

    response = await auth_client.post(
        "/api/v1/auth/login", json={"email": "admin@soleilfarm.vn", "password": "wrong-password"}
    )

    assert response.status_code == 422
    assert "email" in response.json()["errors"]


@pytest.mark.asyncio
async def test_register_password_confirmation_mismatch(
    auth_client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def no_user(self: AuthService, email: str) -> None:
        return None

    monkeypatch.setattr(AuthService, "_find_by_email", no_user)

    response = await auth_client.post(
        "/api/v1/auth/register",
        json={
            "name": "Chị Lan",
            "email": "lan@soleilfarm.vn",
            "password": "password123",
            "password_confirmation": "password124",
        },
    )

    assert response.status_code == 422
    assert response.json()["errors"]["password"] == ["The password confirmation does not match."]


@pytest.mark.asyncio
async def test_register_duplicate_email(auth_client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def existing_user(self: AuthService, email: str) -> Any:
        return SimpleNamespace(id=1, email=email)

    monkeypatch.setattr(AuthService, "_find_by_email", existing_user)

    response = await auth_client.post(
        "/api/v1/auth/register",
        json={
            "name": "Admin",
            "email": "admin@soleilfarm.vn",
            "password": "password123",
            "password_confirmation": "password123",
        },
    )

    assert response.status_code == 422
    assert "email" in response.json()["errors"]


@pytest.mark.asyncio
async def test_refresh_with_access_token_rejected(auth_client: AsyncClient, access_token: str) -> None:
    response = await auth_client.post("/api/v1/auth/refresh", json={"refresh_token": access_token})

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "token_type_invalid"
