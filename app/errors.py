"""Domain error types and their HTTP mapping.

Services raise :class:`FieldValidationError` (and its :class:`StateConflictError`
subclass) for anything the client can fix, and :class:`NotFoundError` when the
primary resource of a request does not exist.  Both are plain ``ValueError`` /
``LookupError`` subclasses.  The handlers registered here turn them into the
422/404 bodies clients consume::

    {"message": "...", "errors": {"field": ["...", ...]}}
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = structlog.get_logger("soleil.errors")

NON_FIELD = "non_field_errors"


class FieldValidationError(ValueError):
	"""One or more per-field validation failures."""

	def __init__(self, field: str | None = None, message: str | None = None, *, errors: dict[str, list[str]] | None = None):
		self.errors: dict[str, list[str]] = {key: list(value) for key, value in (errors or {}).items()}
		if field is not None and message is not None:
			self.errors.setdefault(field, []).append(message)
		super().__init__(self.message)

	@property
	def message(self) -> str:
		for messages in self.errors.values():
			if messages:
				return messages[0]
		return "The given data was invalid."


class StateConflictError(FieldValidationError):
	"""The resource is in a status that does not allow the requested operation."""

	def __init__(self, message: str, field: str = "status"):
		super().__init__(field, message)


class NotFoundError(LookupError):
	pass


class ErrorBag:
	"""Collects field errors and raises them together."""

	def __init__(self) -> None:
		self.errors: dict[str, list[str]] = {}

	def add(self, field: str, message: str) -> None:
		self.errors.setdefault(field, []).append(message)

	def __bool__(self) -> bool:
		return bool(self.errors)

	def raise_if_any(self) -> None:
		if self.errors:
			raise FieldValidationError(errors=self.errors)


def _body(message: str, errors: dict[str, list[str]] | None = None) -> dict[str, Any]:
	payload: dict[str, Any] = {"message": message}
	if errors is not None:
		payload["errors"] = errors
	return payload


def _request_errors(exc: RequestValidationError) -> dict[str, list[str]]:
	errors: dict[str, list[str]] = {}
	for error in exc.errors():
		loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
		field = loc[0] if loc else NON_FIELD
		message = str(error.get("msg", "Invalid value"))
		errors.setdefault(field, []).append(message.removeprefix("Value error, "))
	return errors


async def _field_validation_handler(_request: Request, exc: Exception) -> JSONResponse:
	assert isinstance(exc, FieldValidationError)
	return JSONResponse(
		status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
		content=_body(exc.message, exc.errors),
	)


async def _request_validation_handler(_request: Request, exc: Exception) -> JSONResponse:
	assert isinstance(exc, RequestValidationError)
	errors = _request_errors(exc)
	first = next(iter(errors.values()), ["The given data was invalid."])[0]
	return JSONResponse(
		status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
		content=_body(first, errors),
	)


async def _not_found_handler(_request: Request, exc: Exception) -> JSONResponse:
	return JSONResponse(
		status_code=status.HTTP_404_NOT_FOUND,
		content=_body(str(exc) or "Resource not found"),
	)


async def _integrity_handler(request: Request, exc: Exception) -> JSONResponse:
	logger.warning("integrity_conflict", path=request.url.path, error=str(exc.__cause__ or exc))
	message = "The record conflicts with an existing record."
	return JSONResponse(
		status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
		content=_body(message, {NON_FIELD: [message]}),
	)


def register_exception_handlers(app: FastAPI) -> None:
	app.add_exception_handler(FieldValidationError, _field_validation_handler)
	app.add_exception_handler(RequestValidationError, _request_validation_handler)
	app.add_exception_handler(NotFoundError, _not_found_handler)
	app.add_exception_handler(IntegrityError, _integrity_handler)
