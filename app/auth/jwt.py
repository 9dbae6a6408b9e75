"""Signed access/refresh tokens.

Every token carries ``sub`` (user id), ``typ``, a unique ``jti`` used by the
revocation list, ``iat`` and ``exp``.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from jose import ExpiredSignatureError, JWTError, jwt

from app.config import get_settings

TokenType = Literal["access", "refresh"]

_REQUIRED_CLAIMS = {
	"require_sub": True,
	"require_jti": True,
	"require_iat": True,
	"require_exp": True,
}


class AuthError(Exception):
	"""Authentication failure carrying a machine-readable code."""

	def __init__(self, code: str, detail: str, status_code: int = 401):
		super().__init__(detail)
		self.code = code
		self.detail = detail
		self.status_code = status_code


def _lifetime(token_type: TokenType, minutes: int | None) -> timedelta:
	if minutes:
		return timedelta(minutes=minutes)
	settings = get_settings()
	if token_type == "refresh":
		return timedelta(minutes=settings.jwt_refresh_token_expire_minutes)
	return timedelta(minutes=settings.jwt_access_token_expire_minutes)


def issue_token(subject: str, token_type: TokenType, minutes: int | None = None) -> str:
	issued_at = datetime.now(UTC)
	settings = get_settings()
	return jwt.encode(
		{
			"sub": subject,
			"typ": token_type,
			"jti": uuid.uuid4().hex,
			"iat": int(issued_at.timestamp()),
			"exp": int((issued_at + _lifetime(token_type, minutes)).timestamp()),
		},
		settings.jwt_secret,
		algorithm=settings.jwt_algorithm,
	)


def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
	return issue_token(subject, "access", expires_minutes)


def create_refresh_token(subject: str, expires_minutes: int | None = None) -> str:
	return issue_token(subject, "refresh", expires_minutes)


def decode_token(token: str, expected_type: TokenType | None = None) -> dict[str, Any]:
	"""Verify signature, expiry and required claims; optionally pin the token type."""
	settings = get_settings()
	try:
		claims = jwt.decode(
			token,
			settings.jwt_secret,
			algorithms=[settings.jwt_algorithm],
			options=_REQUIRED_CLAIMS,
		)
	except ExpiredSignatureError as exc:
		raise AuthError(code="token_expired", detail="Authentication token has expired") from exc
	except JWTError as exc:
		raise AuthError(code="token_invalid", detail="Invalid authentication token") from exc

	if not claims.get("sub"):
		raise AuthError(code="token_invalid", detail="Token subject is missing")
	if expected_type is not None and claims.get("typ") != expected_type:
		raise AuthError(code="token_type_invalid", detail=f"Expected {expected_type} token")
	return claims


def seconds_until_expiry(claims: dict[str, Any]) -> int:
	return max(1, int(claims["exp"] - datetime.now(UTC).timestamp()))
