"""Pydantic request/response schemas for activity logs."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import reject_null

_VALUE_MAX = Decimal("999999.99")


class ActivityLogCreate(BaseModel):
	activity_type_id: int
	activity_date: date
	crop_cycle_id: int | None = None
	land_parcel_id: int | None = None
	water_source_id: int | None = None
	start_time: time | None = None
	end_time: time | None = None
	description: str | None = Field(default=None, max_length=1000)
	quantity_value: Decimal | None = Field(default=None, ge=0, le=_VALUE_MAX, decimal_places=2)
	quantity_unit_id: int | None = None
	cost_value: Decimal | None = Field(default=None, ge=0, max_digits=15, decimal_places=2)
	cost_unit_id: int | None = None
	performed_by: str | None = Field(default=None, max_length=255)
	weather_conditions: str | None = Field(default=None, max_length=255)


class ActivityLogUpdate(BaseModel):
	activity_type_id: int | None = None
	activity_date: date | None = None
	crop_cycle_id: int | None = None
	land_parcel_id: int | None = None
	water_source_id: int | None = None
	start_time: time | None = None
	end_time: time | None = None
	description: str | None = Field(default=None, max_length=1000)
	quantity_value: Decimal | None = Field(default=None, ge=0, le=_VALUE_MAX, decimal_places=2)
	quantity_unit_id: int | None = None
	cost_value: Decimal | None = Field(default=None, ge=0, max_digits=15, decimal_places=2)
	cost_unit_id: int | None = None
	performed_by: str | None = Field(default=None, max_length=255)
	weather_conditions: str | None = Field(default=None, max_length=255)

	check_not_null = reject_null("activity_type_id", "activity_date")


class ActivityLogRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	activity_type_id: int
	crop_cycle_id: int | None
	land_parcel_id: int | None
	water_source_id: int | None
	activity_date: date
	start_time: time | None
	end_time: time | None
	description: str | None
	quantity_value: float | None
	quantity_unit_id: int | None
	cost_value: float | None
	cost_unit_id: int | None
	performed_by: str | None
	weather_conditions: str | None
	created_at: datetime
	updated_at: datetime
