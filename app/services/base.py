"""Shared service plumbing: record lookups, reference checks and pagination."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.errors import FieldValidationError, NotFoundError

T = TypeVar("T")


@dataclass(slots=True)
class Page(Generic[T]):
	items: list[T]
	total: int
	page: int
	per_page: int


def clamp_per_page(per_page: int | None) -> int:
	settings = get_settings()
	if per_page is None:
		return settings.default_per_page
	return max(1, min(per_page, settings.max_per_page))


class ServiceBase:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def _fetch(self, model: type[T], record_id: int, label: str) -> T:
		record = await self.db.get(model, record_id)
		if record is None:
			raise NotFoundError(f"{label} {record_id} not found")
		return record

	async def _require_reference(
		self,
		model: type[Any],
		record_id: int | None,
		field: str,
		label: str,
		*,
		require_active: bool = False,
	) -> Any:
		"""Resolve a foreign key from a request, failing on the field that named it."""
		if record_id is None:
			return None
		record = await self.db.get(model, record_id)
		if record is None:
			raise FieldValidationError(field, f"The selected {label} does not exist.")
		if require_active and not record.is_active:
			raise FieldValidationError(field, f"The selected {label} is inactive.")
		return record

	async def _paginate(self, stmt: Select[Any], page: int, per_page: int | None) -> Page[Any]:
		page = max(1, page)
		size = clamp_per_page(per_page)
		count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
		total = int(await self.db.scalar(count_stmt) or 0)
		rows = await self.db.execute(stmt.limit(size).offset((page - 1) * size))
		return Page(items=list(rows.scalars().all()), total=total, page=page, per_page=size)

	async def _all(self, stmt: Select[Any]) -> list[Any]:
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())
