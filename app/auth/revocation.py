"""Redis-backed token revocation (logout and logout-everywhere)."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog

from app.auth.jwt import seconds_until_expiry
from app.config import get_settings

logger = structlog.get_logger("soleil.auth")


def _jti_key(jti: str) -> str:
	return f"auth:revoked:jti:{jti}"


def _user_key(subject: str) -> str:
	return f"auth:revoked_before:{subject}"


async def revoke_token(redis_client: Any | None, payload: dict[str, Any]) -> bool:
	"""Deny-list one token id until it would have expired anyway."""
	if redis_client is None:
		logger.warning("token_revocation_unavailable", subject=payload.get("sub"))
		return False
	await redis_client.setex(_jti_key(payload["jti"]), seconds_until_expiry(payload), "1")
	logger.info("token_revoked", subject=payload.get("sub"), token_type=payload.get("typ"))
	return True


async def revoke_all(redis_client: Any | None, subject: str) -> bool:
	"""Reject every token for ``subject`` issued up to now."""
	if redis_client is None:
		logger.warning("token_revocation_unavailable", subject=subject)
		return False
	ttl = get_settings().jwt_refresh_token_expire_minutes * 60
	await redis_client.setex(_user_key(subject), ttl, str(int(datetime.now(UTC).timestamp())))
	logger.info("tokens_revoked_for_user", subject=subject)
	return True


async def is_revoked(redis_client: Any | None, payload: dict[str, Any]) -> bool:
	if redis_client is None:
		return False
	if await redis_client.get(_jti_key(payload["jti"])) is not None:
		return True
	revoked_before = await redis_client.get(_user_key(payload["sub"]))
	if revoked_before is None:
		return False
	return int(payload.get("iat", 0)) <= int(revoked_before)
