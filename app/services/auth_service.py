"""User registration, login and token lifecycle."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import func, select

from app.auth.dependencies import pwd_context, resolve_user
from app.auth.jwt import AuthError, create_access_token, create_refresh_token, decode_token
from app.auth.revocation import is_revoked, revoke_all, revoke_token
from app.config import get_settings
from app.errors import ErrorBag, FieldValidationError
from app.models.user import User
from app.schemas.auth import LoginRequest, RegisterRequest
from app.services.base import ServiceBase

logger = structlog.get_logger("soleil.auth")


class AuthService(ServiceBase):
	def __init__(self, db: Any, redis_client: Any | None = None):
		super().__init__(db)
		self.redis = redis_client

	async def register(self, payload: RegisterRequest) -> tuple[User, dict[str, Any]]:
		email = payload.email.strip().lower()
		errors = ErrorBag()
		if payload.password != payload.password_confirmation:
			errors.add("password", "The password confirmation does not match.")
		if len(payload.password) < get_settings().password_min_length:
			errors.add("password", f"The password must be at least {get_settings().password_min_length} characters.")
		if await self._find_by_email(email) is not None:
			errors.add("email", "The email has already been taken.")
		errors.raise_if_any()

		user = User(
			name=payload.name.strip(),
			email=email,
			hashed_password=pwd_context.hash(payload.password),
			is_active=True,
		)
		self.db.add(user)
		await self.db.flush()
		await self.db.refresh(user)
		logger.info("user_registered", user_id=user.id)
		return user, self.issue_tokens(user)

	async def login(self, payload: LoginRequest) -> tuple[User, dict[str, Any]]:
		user = await self._find_by_email(payload.email)
		if user is None or not pwd_context.verify(payload.password, user.hashed_password):
			logger.warning("login_failed", email=payload.email)
			raise FieldValidationError("email", "The provided credentials are incorrect.")
		if not user.is_active:
			logger.warning("login_inactive_user", user_id=user.id)
			raise FieldValidationError("email", "This account has been deactivated.")
		logger.info("login_succeeded", user_id=user.id)
		return user, self.issue_tokens(user)

	async def refresh(self, refresh_token: str) -> tuple[User, dict[str, Any]]:
		payload = decode_token(refresh_token, expected_type="refresh")
		if await is_revoked(self.redis, payload):
			raise AuthError(code="token_revoked", detail="Token has been revoked")
		user = await resolve_user(self.db, payload)
		await revoke_token(self.redis, payload)
		return user, self.issue_tokens(user)

	async def logout(self, token_payload: dict[str, Any]) -> bool:
		return await revoke_token(self.redis, token_payload)

	async def logout_all(self, user: User) -> bool:
		return await revoke_all(self.redis, str(user.id))

	@staticmethod
	def issue_tokens(user: User) -> dict[str, Any]:
		settings = get_settings()
		subject = str(user.id)
		return {
			"access_token": create_access_token(subject),
			"refresh_token": create_refresh_token(subject),
			"token_type": "bearer",
			"expires_in": settings.jwt_access_token_expire_minutes * 60,
		}

	async def _find_by_email(self, email: str) -> User | None:
		return await self.db.scalar(select(User).where(func.lower(User.email) == email.strip().lower()))
