"""Reference catalog services: codes, uniqueness and soft deactivation."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, ClassVar

import structlog
from pydantic import BaseModel
from sqlalchemy import func, or_, select

from app.errors import ErrorBag, FieldValidationError, StateConflictError
from app.models.catalog import ActivityType, CropType, Season, SeasonDefinition, UnitOfMeasure
from app.models.crop_cycle import CropCycle
from app.models.enums import ActivityCategoryEnum, CropCycleStatusEnum, UnitTypeEnum
from app.services.base import Page, ServiceBase

logger = structlog.get_logger("soleil.catalog")


class CatalogService(ServiceBase):
	"""CRUD for a code-bearing catalog table.

	Subclasses set ``model``, ``label`` and ``code_prefix`` and may override
	``_validate`` for cross-field or database-backed checks and ``_prepare``
	to derive columns from request values.  Codes are generated as
	``PREFIX-0001`` when a create request omits one.
	"""

	model: ClassVar[type[Any]]
	label: ClassVar[str]
	code_prefix: ClassVar[str | None] = None
	filter_fields: ClassVar[tuple[str, ...]] = ()
	search_fields: ClassVar[tuple[str, ...]] = ("name", "code")

	async def get(self, record_id: int) -> Any:
		return await self._fetch(self.model, record_id, self.label)

	async def list(
		self,
		page: int = 1,
		per_page: int | None = None,
		*,
		active_only: bool = True,
		search: str | None = None,
		**filters: Any,
	) -> Page[Any]:
		stmt = select(self.model)
		if active_only:
			stmt = stmt.where(self.model.is_active.is_(True))
		for field in self.filter_fields:
			value = filters.get(field)
			if value is not None:
				stmt = stmt.where(getattr(self.model, field) == value)
		if search:
			pattern = f"%{search.strip()}%"
			stmt = stmt.where(
				or_(*(getattr(self.model, field).ilike(pattern) for field in self.search_fields))
			)
		stmt = stmt.order_by(self.model.name.asc(), self.model.id.asc())
		return await self._paginate(stmt, page, per_page)

	async def create(self, payload: BaseModel) -> Any:
		values = payload.model_dump()
		await self._validate(values, None)
		if self.code_prefix is not None:
			if values.get("code"):
				await self._ensure_unique_code(values["code"])
			else:
				values["code"] = await self.generate_code()
		record = self.model(**self._prepare(values, None))
		self.db.add(record)
		await self.db.flush()
		await self.db.refresh(record)
		logger.info("catalog_created", catalog=self.label, record_id=record.id)
		return record

	async def update(self, record_id: int, payload: BaseModel) -> Any:
		record = await self.get(record_id)
		changes = payload.model_dump(exclude_unset=True)
		if not changes:
			return record
		await self._validate(changes, record)
		if self.code_prefix is not None and "code" in changes and changes["code"] != record.code:
			await self._ensure_unique_code(changes["code"], exclude_id=record.id)
		for key, value in self._prepare(changes, record).items():
			setattr(record, key, value)
		await self.db.flush()
		await self.db.refresh(record)
		logger.info("catalog_updated", catalog=self.label, record_id=record.id, fields=sorted(changes))
		return record

	async def deactivate(self, record_id: int) -> Any:
		record = await self.get(record_id)
		await self._before_deactivate(record)
		record.is_active = False
		await self.db.flush()
		await self.db.refresh(record)
		logger.info("catalog_deactivated", catalog=self.label, record_id=record.id)
		return record

	async def generate_code(self) -> str:
		count = await self.db.scalar(select(func.count()).select_from(self.model))
		sequence = int(count or 0) + 1
		while True:
			code = f"{self.code_prefix}-{sequence:04d}"
			if not await self._code_exists(code):
				return code
			sequence += 1

	async def _code_exists(self, code: str, exclude_id: int | None = None) -> bool:
		stmt = select(self.model.id).where(self.model.code == code)
		if exclude_id is not None:
			stmt = stmt.where(self.model.id != exclude_id)
		return await self.db.scalar(stmt.limit(1)) is not None

	async def _ensure_unique_code(self, code: str, exclude_id: int | None = None) -> None:
		if await self._code_exists(code, exclude_id):
			raise FieldValidationError("code", "The code has already been taken.")

	async def _validate(self, values: dict[str, Any], record: Any | None) -> None:
		return None

	def _prepare(self, values: dict[str, Any], record: Any | None) -> dict[str, Any]:
		return values

	async def _before_deactivate(self, record: Any) -> None:
		return None


# ═══════════════════════════════════════════════════════════════════════════
# Units of measure
# ═══════════════════════════════════════════════════════════════════════════


class UnitOfMeasureService(CatalogService):
	model = UnitOfMeasure
	label = "Unit of measure"
	filter_fields = ("unit_type",)
	search_fields = ("name", "abbreviation")

	async def by_type(self, unit_type: UnitTypeEnum) -> list[UnitOfMeasure]:
		stmt = (
			select(UnitOfMeasure)
			.where(UnitOfMeasure.unit_type == unit_type, UnitOfMeasure.is_active.is_(True))
			.order_by(UnitOfMeasure.is_base_unit.desc(), UnitOfMeasure.name.asc())
		)
		return await self._all(stmt)

	async def convert(self, value: Decimal, from_unit_id: int, to_unit_id: int) -> dict[str, Any]:
		"""Convert ``value`` between two units of the same dimension via base factors."""
		source = await self._require_reference(UnitOfMeasure, from_unit_id, "from_unit_id", "unit")
		target = await self._require_reference(UnitOfMeasure, to_unit_id, "to_unit_id", "unit")
		if source.unit_type != target.unit_type:
			raise FieldValidationError(
				"to_unit_id",
				f"Cannot convert {source.unit_type} to {target.unit_type}.",
			)
		result = Decimal(value) * Decimal(source.conversion_factor_to_base) / Decimal(target.conversion_factor_to_base)
		return {
			"value": float(value),
			"from_unit_id": source.id,
			"to_unit_id": target.id,
			"result": float(round(result, 6)),
			"from_abbreviation": source.abbreviation,
			"to_abbreviation": target.abbreviation,
		}

	async def _validate(self, values: dict[str, Any], record: Any | None) -> None:
		name = values.get("name", record.name if record is not None else None)
		unit_type = values.get("unit_type", record.unit_type if record is not None else None)
		if "name" not in values and "unit_type" not in values:
			return
		stmt = select(UnitOfMeasure.id).where(
			UnitOfMeasure.name == name,
			UnitOfMeasure.unit_type == unit_type,
		)
		if record is not None:
			stmt = stmt.where(UnitOfMeasure.id != record.id)
		if await self.db.scalar(stmt.limit(1)) is not None:
			raise FieldValidationError("name", "A unit with this name already exists for the unit type.")


# ═══════════════════════════════════════════════════════════════════════════
# Season definitions & seasons
# ═══════════════════════════════════════════════════════════════════════════


class SeasonDefinitionService(CatalogService):
	model = SeasonDefinition
	label = "Season definition"
	code_prefix = "SD"


class SeasonService(CatalogService):
	"""Seasons have no active flag: they are listed by definition/year and hard-deleted."""

	model = Season
	label = "Season"
	filter_fields = ("season_definition_id", "year")

	async def list(
		self,
		page: int = 1,
		per_page: int | None = None,
		*,
		active_only: bool = False,
		search: str | None = None,
		**filters: Any,
	) -> Page[Any]:
		stmt = select(Season)
		if active_only:
			stmt = stmt.join(SeasonDefinition).where(SeasonDefinition.is_active.is_(True))
		for field in self.filter_fields:
			value = filters.get(field)
			if value is not None:
				stmt = stmt.where(getattr(Season, field) == value)
		if search:
			stmt = stmt.where(Season.code.ilike(f"%{search.strip()}%"))
		stmt = stmt.order_by(Season.year.desc(), Season.actual_start_date.desc().nulls_last(), Season.id.desc())
		return await self._paginate(stmt, page, per_page)

	async def create(self, payload: BaseModel) -> Season:
		values = payload.model_dump()
		definition = await self._validate(values, None)
		if values.get("code"):
			await self._ensure_unique_code(values["code"])
		else:
			values["code"] = f"{definition.code}-{values['year']}"
			await self._ensure_unique_code(values["code"])
		season = Season(**values)
		self.db.add(season)
		await self.db.flush()
		await self.db.refresh(season)
		logger.info("season_created", season_id=season.id, code=season.code)
		return season

	async def update(self, record_id: int, payload: BaseModel) -> Season:
		season = await self.get(record_id)
		changes = payload.model_dump(exclude_unset=True)
		if not changes:
			return season
		await self._validate(changes, season)
		if "code" in changes and changes["code"] != season.code:
			await self._ensure_unique_code(changes["code"], exclude_id=season.id)
		for key, value in changes.items():
			setattr(season, key, value)
		await self.db.flush()
		await self.db.refresh(season)
		return season

	async def delete(self, record_id: int) -> None:
		season = await self.get(record_id)
		in_use = await self.db.scalar(
			select(func.count()).select_from(CropCycle).where(CropCycle.season_id == season.id)
		)
		if in_use:
			raise StateConflictError("Cannot delete a season that has crop cycles.", field="season")
		await self.db.delete(season)
		await self.db.flush()
		logger.info("season_deleted", season_id=record_id)

	async def by_year(self, year: int) -> list[Season]:
		stmt = select(Season).where(Season.year == year).order_by(Season.actual_start_date.asc().nulls_last())
		return await self._all(stmt)

	async def current(self, today: date | None = None) -> Season | None:
		today = today or date.today()
		stmt = (
			select(Season)
			.where(
				Season.actual_start_date.is_not(None),
				Season.actual_start_date <= today,
				or_(Season.actual_end_date.is_(None), Season.actual_end_date >= today),
			)
			.order_by(Season.actual_start_date.desc())
			.limit(1)
		)
		return await self.db.scalar(stmt)

	async def _validate(self, values: dict[str, Any], record: Any | None) -> Any:
		errors = ErrorBag()
		definition_id = values.get("season_definition_id", record.season_definition_id if record is not None else None)
		year = values.get("year", record.year if record is not None else None)
		start = values.get("actual_start_date", record.actual_start_date if record is not None else None)
		end = values.get("actual_end_date", record.actual_end_date if record is not None else None)

		definition = None
		if record is None or "season_definition_id" in values:
			definition = await self._require_reference(
				SeasonDefinition, definition_id, "season_definition_id", "season definition", require_active=True
			)
		if start is not None and end is not None and end < start:
			errors.add("actual_end_date", "The actual end date must be on or after the actual start date.")
		if "season_definition_id" in values or "year" in values:
			stmt = select(Season.id).where(Season.season_definition_id == definition_id, Season.year == year)
			if record is not None:
				stmt = stmt.where(Season.id != record.id)
			if await self.db.scalar(stmt.limit(1)) is not None:
				errors.add("year", "This season already exists for the selected year.")
		errors.raise_if_any()
		return definition


# ═══════════════════════════════════════════════════════════════════════════
# Crop & activity types
# ═══════════════════════════════════════════════════════════════════════════


class CropTypeService(CatalogService):
	model = CropType
	label = "Crop type"
	code_prefix = "CT"
	filter_fields = ("category",)
	search_fields = ("name", "code", "variety")

	async def statistics(self, crop_type_id: int) -> dict[str, Any]:
		crop_type = await self.get(crop_type_id)
		rows = await self.db.execute(
			select(CropCycle.status, func.count())
			.where(CropCycle.crop_type_id == crop_type.id)
			.group_by(CropCycle.status)
		)
		counts = {status: int(total) for status, total in rows.all()}
		average = await self.db.scalar(
			select(func.avg(CropCycle.yield_value)).where(
				CropCycle.crop_type_id == crop_type.id,
				CropCycle.status == CropCycleStatusEnum.completed,
				CropCycle.yield_value.is_not(None),
			)
		)
		return {
			"crop_type_id": crop_type.id,
			"total_cycles": sum(counts.values()),
			"active_cycles": counts.get(CropCycleStatusEnum.active, 0),
			"completed_cycles": counts.get(CropCycleStatusEnum.completed, 0),
			"average_yield": round(float(average), 2) if average is not None else None,
		}

	async def _validate(self, values: dict[str, Any], record: Any | None) -> None:
		if values.get("default_yield_unit_id") is not None:
			await self._require_reference(UnitOfMeasure, values["default_yield_unit_id"], "default_yield_unit_id", "yield unit")


class ActivityTypeService(CatalogService):
	model = ActivityType
	label = "Activity type"
	code_prefix = "AT"
	filter_fields = ("category",)

	async def by_category(self, category: ActivityCategoryEnum) -> list[ActivityType]:
		stmt = (
			select(ActivityType)
			.where(ActivityType.category == category, ActivityType.is_active.is_(True))
			.order_by(ActivityType.name.asc())
		)
		return await self._all(stmt)
