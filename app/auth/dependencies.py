"""Authentication dependencies: get_token_payload, get_current_user."""

from __future__ import annotations

import hashlib
from typing import Any

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import AuthError, decode_token
from app.auth.revocation import is_revoked
from app.database import get_db
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _raise_auth(exc: AuthError) -> HTTPException:
	return HTTPException(
		status_code=exc.status_code,
		detail={"error": exc.code, "message": exc.detail},
	)


def extract_identity_hint(request: Request) -> str:
	"""Stable per-caller key for rate limiting, without verifying the token."""
	auth_header = request.headers.get("authorization", "")
	if auth_header.lower().startswith("bearer "):
		token = auth_header[7:].strip()
		return "jwt:" + hashlib.sha256(token.encode("utf-8")).hexdigest()[:32]
	client_host = request.client.host if request.client is not None else "unknown"
	return f"ip:{client_host}"


async def get_token_payload(request: Request) -> dict[str, Any]:
	credentials = await bearer_scheme(request)
	if credentials is None or credentials.scheme.lower() != "bearer":
		raise _raise_auth(AuthError(code="auth_required", detail="Bearer token is required"))

	try:
		payload = decode_token(credentials.credentials, expected_type="access")
	except AuthError as exc:
		raise _raise_auth(exc) from exc

	if await is_revoked(getattr(request.app.state, "redis", None), payload):
		raise _raise_auth(AuthError(code="token_revoked", detail="Token has been revoked"))
	return payload


async def resolve_user(db: AsyncSession, payload: dict[str, Any]) -> User:
	try:
		user_id = int(payload["sub"])
	except (ValueError, KeyError) as exc:
		raise _raise_auth(AuthError(code="token_invalid", detail="Token subject is invalid")) from exc

	user = await db.get(User, user_id)
	if user is None or not user.is_active:
		raise _raise_auth(AuthError(code="user_invalid", detail="User is not active"))
	return user


async def get_current_user(
	payload: dict[str, Any] = Depends(get_token_payload),
	db: AsyncSession = Depends(get_db),
) -> User:
	return await resolve_user(db, payload)
