"""Pydantic request/response schemas for crop cycles and stages."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import CropCycleStatusEnum, QualityRatingEnum, StageStatusEnum
from app.schemas.common import reject_null

_YIELD_MAX = Decimal("999999.99")


# ── Crop cycles ─────────────────────────────────────────────────────────────


class CropCycleCreate(BaseModel):
	land_parcel_id: int
	crop_type_id: int
	season_id: int
	planned_start_date: date
	planned_end_date: date
	cycle_code: str | None = Field(default=None, min_length=1, max_length=50)
	notes: str | None = Field(default=None, max_length=1000)


class CropCycleUpdate(BaseModel):
	crop_type_id: int | None = None
	season_id: int | None = None
	planned_start_date: date | None = None
	planned_end_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)

	check_not_null = reject_null("crop_type_id", "season_id", "planned_start_date", "planned_end_date")


class CropCycleActivate(BaseModel):
	notes: str | None = Field(default=None, max_length=1000)


class CropCycleComplete(BaseModel):
	actual_end_date: date | None = None
	yield_value: Decimal | None = Field(default=None, ge=0, le=_YIELD_MAX, decimal_places=2)
	yield_unit_id: int | None = None
	quality_rating: QualityRatingEnum | None = None
	notes: str | None = Field(default=None, max_length=1000)


class CropCycleTerminate(BaseModel):
	"""Body for ``fail`` and ``abandon``; the reason is appended to the notes."""

	reason: str = Field(max_length=500)
	notes: str | None = Field(default=None, max_length=1000)

	@field_validator("reason")
	@classmethod
	def _reason_not_blank(cls, value: str) -> str:
		value = value.strip()
		if not value:
			raise ValueError("The reason field is required.")
		return value


class StageRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	crop_cycle_id: int
	stage_name: str
	sequence_order: int
	planned_start_date: date | None
	planned_end_date: date | None
	actual_start_date: date | None
	actual_end_date: date | None
	status: StageStatusEnum
	notes: str | None
	created_at: datetime
	updated_at: datetime


class CropCycleRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	cycle_code: str
	land_parcel_id: int
	crop_type_id: int
	season_id: int
	status: CropCycleStatusEnum
	planned_start_date: date
	planned_end_date: date
	actual_start_date: date | None
	actual_end_date: date | None
	yield_value: float | None
	yield_unit_id: int | None
	quality_rating: QualityRatingEnum | None
	notes: str | None
	duration_days: int | None
	is_overdue: bool
	stages: list[StageRead] = Field(default_factory=list)
	created_at: datetime
	updated_at: datetime


# ── Stages ──────────────────────────────────────────────────────────────────


class StageCreate(BaseModel):
	stage_name: str = Field(min_length=1, max_length=100)
	sequence_order: int = Field(ge=1, le=20)
	planned_start_date: date | None = None
	planned_end_date: date | None = None
	notes: str | None = None


class StageUpdate(BaseModel):
	stage_name: str | None = Field(default=None, min_length=1, max_length=100)
	sequence_order: int | None = Field(default=None, ge=1, le=20)
	planned_start_date: date | None = None
	planned_end_date: date | None = None
	notes: str | None = None

	check_not_null = reject_null("stage_name", "sequence_order")


class StageStart(BaseModel):
	actual_start_date: date | None = None


class StageComplete(BaseModel):
	actual_end_date: date | None = None
	notes: str | None = None


class StageSkip(BaseModel):
	notes: str | None = None
