"""Pydantic request/response schemas for authentication."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	email: EmailStr
	password: str = Field(min_length=8, max_length=128)
	password_confirmation: str


class LoginRequest(BaseModel):
	email: str = Field(min_length=1, max_length=320)
	password: str = Field(min_length=1)

	@field_validator("email")
	@classmethod
	def _normalize_email(cls, value: str) -> str:
		return value.strip().lower()


class RefreshRequest(BaseModel):
	refresh_token: str = Field(min_length=1)


class UserRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	name: str
	email: str
	is_active: bool
	created_at: datetime


class TokenPair(BaseModel):
	access_token: str
	refresh_token: str
	token_type: str = "bearer"
	expires_in: int


class AuthResult(BaseModel):
	user: UserRead
	token: TokenPair
