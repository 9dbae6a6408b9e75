"""Authentication routes: register, login, refresh, logout, me."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, get_token_payload
from app.auth.jwt import AuthError
from app.database import get_db
from app.models.user import User
from app.schemas.auth import AuthResult, LoginRequest, RefreshRequest, RegisterRequest, TokenPair, UserRead
from app.schemas.common import DataResponse, MessageResponse
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _service(request: Request, db: AsyncSession) -> AuthService:
	return AuthService(db, getattr(request.app.state, "redis", None))


def _result(user: Any, tokens: dict[str, Any]) -> dict[str, Any]:
	return {"data": AuthResult(user=UserRead.model_validate(user), token=TokenPair(**tokens))}


@router.post("/register", response_model=DataResponse[AuthResult], status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, request: Request, db: AsyncSession = Depends(get_db)) -> Any:
	user, tokens = await _service(request, db).register(payload)
	return _result(user, tokens)


@router.post("/login", response_model=DataResponse[AuthResult])
async def login(payload: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)) -> Any:
	user, tokens = await _service(request, db).login(payload)
	return _result(user, tokens)


@router.post("/refresh", response_model=DataResponse[AuthResult])
async def refresh(payload: RefreshRequest, request: Request, db: AsyncSession = Depends(get_db)) -> Any:
	try:
		user, tokens = await _service(request, db).refresh(payload.refresh_token)
	except AuthError as exc:
		raise HTTPException(
			status_code=exc.status_code,
			detail={"error": exc.code, "message": exc.detail},
		) from exc
	return _result(user, tokens)


@router.get("/me", response_model=DataResponse[UserRead])
async def me(current_user: User = Depends(get_current_user)) -> Any:
	return {"data": UserRead.model_validate(current_user)}


@router.post("/logout", response_model=MessageResponse)
async def logout(
	request: Request,
	token_payload: dict[str, Any] = Depends(get_token_payload),
	_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> Any:
	await _service(request, db).logout(token_payload)
	return {"message": "Logged out successfully."}


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
	request: Request,
	current_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> Any:
	await _service(request, db).logout_all(current_user)
	return {"message": "Logged out from all devices."}
