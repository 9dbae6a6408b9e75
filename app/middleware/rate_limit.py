"""Redis-backed rate limiting middleware."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.auth.dependencies import extract_identity_hint
from app.config import get_settings

_AUTH_PATHS = ("/api/v1/auth/login", "/api/v1/auth/register")


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Per-caller fixed-window limiter backed by Redis atomic counters.

	Credential endpoints get their own, tighter bucket.
	"""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		path = request.url.path
		if not path.startswith("/api/v1"):
			return await call_next(request)

		redis_client = getattr(request.app.state, "redis", None)
		if redis_client is None:
			return await call_next(request)

		settings = get_settings()
		group = "auth" if path.rstrip("/") in _AUTH_PATHS else "api"
		quota = settings.rate_limit_auth_per_minute if group == "auth" else settings.rate_limit_per_minute
		identity = extract_identity_hint(request)

		minute_bucket = datetime.now(UTC).strftime("%Y%m%d%H%M")
		key = f"ratelimit:{group}:{identity}:{minute_bucket}"
		current = await redis_client.incr(key)
		if current == 1:
			await redis_client.expire(key, 65)

		if current > quota:
			structlog.get_logger("soleil.ratelimit").warning(
				"rate_limited", group=group, identity=identity, quota=quota
			)
			return JSONResponse(
				status_code=429,
				content={
					"detail": {
						"error": "rate_limited",
						"message": "Too many requests, please slow down",
						"quota": quota,
					}
				},
				headers={"retry-after": "60"},
			)

		return await call_next(request)
