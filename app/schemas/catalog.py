"""Pydantic request/response schemas for the reference catalogs."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ActivityCategoryEnum, CropCategoryEnum, UnitTypeEnum
from app.schemas.common import reject_null

# ── Units of measure ────────────────────────────────────────────────────────


class UnitOfMeasureCreate(BaseModel):
	name: str = Field(min_length=1, max_length=50)
	abbreviation: str = Field(min_length=1, max_length=20)
	unit_type: UnitTypeEnum
	conversion_factor_to_base: Decimal = Field(default=Decimal("1"), ge=Decimal("0.000001"), max_digits=15, decimal_places=6)
	is_base_unit: bool = False
	is_active: bool = True


class UnitOfMeasureUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=50)
	abbreviation: str | None = Field(default=None, min_length=1, max_length=20)
	unit_type: UnitTypeEnum | None = None
	conversion_factor_to_base: Decimal | None = Field(default=None, ge=Decimal("0.000001"), max_digits=15, decimal_places=6)
	is_base_unit: bool | None = None
	is_active: bool | None = None

	check_not_null = reject_null("name", "abbreviation", "unit_type", "conversion_factor_to_base", "is_base_unit", "is_active")


class UnitOfMeasureRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	name: str
	abbreviation: str
	unit_type: UnitTypeEnum
	conversion_factor_to_base: float
	is_base_unit: bool
	is_active: bool
	created_at: datetime
	updated_at: datetime


class UnitConversionRead(BaseModel):
	value: float
	from_unit_id: int
	to_unit_id: int
	result: float
	from_abbreviation: str
	to_abbreviation: str


# ── Season definitions ──────────────────────────────────────────────────────


class SeasonDefinitionCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	code: str | None = Field(default=None, min_length=1, max_length=20)
	description: str | None = None
	typical_start_month: int = Field(ge=1, le=12)
	typical_end_month: int = Field(ge=1, le=12)
	is_active: bool = True


class SeasonDefinitionUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	code: str | None = Field(default=None, min_length=1, max_length=20)
	description: str | None = None
	typical_start_month: int | None = Field(default=None, ge=1, le=12)
	typical_end_month: int | None = Field(default=None, ge=1, le=12)
	is_active: bool | None = None

	check_not_null = reject_null("name", "code", "typical_start_month", "typical_end_month", "is_active")


class SeasonDefinitionRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	name: str
	code: str
	description: str | None
	typical_start_month: int
	typical_end_month: int
	is_active: bool
	created_at: datetime
	updated_at: datetime


# ── Seasons ─────────────────────────────────────────────────────────────────


class SeasonCreate(BaseModel):
	season_definition_id: int
	year: int = Field(ge=2000, le=2100)
	code: str | None = Field(default=None, min_length=1, max_length=30)
	actual_start_date: date | None = None
	actual_end_date: date | None = None
	notes: str | None = None


class SeasonUpdate(BaseModel):
	season_definition_id: int | None = None
	year: int | None = Field(default=None, ge=2000, le=2100)
	code: str | None = Field(default=None, min_length=1, max_length=30)
	actual_start_date: date | None = None
	actual_end_date: date | None = None
	notes: str | None = None

	check_not_null = reject_null("season_definition_id", "year", "code")


class SeasonRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	season_definition_id: int
	code: str
	year: int
	actual_start_date: date | None
	actual_end_date: date | None
	notes: str | None
	definition: SeasonDefinitionRead | None = None
	created_at: datetime
	updated_at: datetime


# ── Crop types ──────────────────────────────────────────────────────────────


class CropTypeCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	code: str | None = Field(default=None, min_length=1, max_length=30)
	scientific_name: str | None = Field(default=None, max_length=150)
	variety: str | None = Field(default=None, max_length=100)
	category: CropCategoryEnum
	description: str | None = None
	typical_grow_duration_days: int | None = Field(default=None, ge=1, le=730)
	default_yield_unit_id: int | None = None
	is_active: bool = True


class CropTypeUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	code: str | None = Field(default=None, min_length=1, max_length=30)
	scientific_name: str | None = Field(default=None, max_length=150)
	variety: str | None = Field(default=None, max_length=100)
	category: CropCategoryEnum | None = None
	description: str | None = None
	typical_grow_duration_days: int | None = Field(default=None, ge=1, le=730)
	default_yield_unit_id: int | None = None
	is_active: bool | None = None

	check_not_null = reject_null("name", "code", "category", "is_active")


class CropTypeRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	name: str
	code: str
	scientific_name: str | None
	variety: str | None
	category: CropCategoryEnum
	description: str | None
	typical_grow_duration_days: int | None
	default_yield_unit_id: int | None
	is_active: bool
	created_at: datetime
	updated_at: datetime


class CropTypeStatistics(BaseModel):
	crop_type_id: int
	total_cycles: int
	active_cycles: int
	completed_cycles: int
	average_yield: float | None


# ── Activity types ──────────────────────────────────────────────────────────


class ActivityTypeCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	code: str | None = Field(default=None, min_length=1, max_length=30)
	category: ActivityCategoryEnum
	description: str | None = None
	is_active: bool = True


class ActivityTypeUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	code: str | None = Field(default=None, min_length=1, max_length=30)
	category: ActivityCategoryEnum | None = None
	description: str | None = None
	is_active: bool | None = None

	check_not_null = reject_null("name", "code", "category", "is_active")


class ActivityTypeRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	name: str
	code: str
	category: ActivityCategoryEnum
	description: str | None
	is_active: bool
	created_at: datetime
	updated_at: datetime
