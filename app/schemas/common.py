"""Response envelopes, pagination metadata and shared validators."""

from __future__ import annotations

import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
	data: T


class PageMeta(BaseModel):
	current_page: int
	last_page: int
	per_page: int
	total: int
	from_: int | None = Field(default=None, alias="from")
	to: int | None = None

	model_config = ConfigDict(populate_by_name=True)

	@classmethod
	def build(cls, page: int, per_page: int, total: int, count: int) -> PageMeta:
		first = (page - 1) * per_page + 1 if count else None
		return cls(
			current_page=page,
			last_page=max(1, math.ceil(total / per_page)) if per_page else 1,
			per_page=per_page,
			total=total,
			from_=first,
			to=(first + count - 1) if first is not None else None,
		)


class PaginatedResponse(BaseModel, Generic[T]):
	data: list[T]
	meta: PageMeta


class MessageResponse(BaseModel):
	message: str
	data: Any | None = None


def _reject_null(cls: type, value: Any, info: ValidationInfo) -> Any:
	if value is None:
		raise ValueError(f"The {info.field_name} field cannot be null.")
	return value


def reject_null(*fields: str) -> Any:
	"""Reusable validator: partial updates may omit these fields but not null them."""
	return field_validator(*fields, mode="before")(_reject_null)


def paginated(page: Any, schema: type[BaseModel]) -> dict[str, Any]:
	"""Envelope a service ``Page`` as ``{"data": [...], "meta": {...}}``."""
	items = [schema.model_validate(item) for item in page.items]
	return {
		"data": items,
		"meta": PageMeta.build(page.page, page.per_page, page.total, len(items)),
	}
