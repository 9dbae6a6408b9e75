"""Pydantic request/response schemas for land parcels and water sources."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import (
	LandTypeEnum,
	SoilTypeEnum,
	TerrainTypeEnum,
	WaterAccessibilityEnum,
	WaterQualityEnum,
	WaterReliabilityEnum,
	WaterSourceTypeEnum,
)
from app.schemas.common import reject_null

_AREA_MIN = Decimal("0.01")
_AREA_MAX = Decimal("999999.99")


# ── Land parcels ────────────────────────────────────────────────────────────


class LandParcelCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	code: str | None = Field(default=None, min_length=1, max_length=30)
	description: str | None = None
	land_type: LandTypeEnum
	area_value: Decimal = Field(ge=_AREA_MIN, le=_AREA_MAX, decimal_places=2)
	area_unit_id: int
	terrain_type: TerrainTypeEnum | None = None
	soil_type: SoilTypeEnum | None = None
	latitude: float | None = Field(default=None, ge=-90, le=90)
	longitude: float | None = Field(default=None, ge=-180, le=180)
	is_active: bool = True


class LandParcelUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	code: str | None = Field(default=None, min_length=1, max_length=30)
	description: str | None = None
	land_type: LandTypeEnum | None = None
	area_value: Decimal | None = Field(default=None, ge=_AREA_MIN, le=_AREA_MAX, decimal_places=2)
	area_unit_id: int | None = None
	terrain_type: TerrainTypeEnum | None = None
	soil_type: SoilTypeEnum | None = None
	latitude: float | None = Field(default=None, ge=-90, le=90)
	longitude: float | None = Field(default=None, ge=-180, le=180)
	is_active: bool | None = None

	check_not_null = reject_null("name", "code", "land_type", "area_value", "area_unit_id", "is_active")


class LandParcelRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	name: str
	code: str
	description: str | None
	land_type: LandTypeEnum
	area_value: float
	area_unit_id: int
	terrain_type: TerrainTypeEnum | None
	soil_type: SoilTypeEnum | None
	latitude: float | None
	longitude: float | None
	is_active: bool
	created_at: datetime
	updated_at: datetime


class LandParcelStatistics(BaseModel):
	land_parcel_id: int
	total_cycles: int
	planned_cycles: int
	active_cycles: int
	completed_cycles: int
	failed_cycles: int
	abandoned_cycles: int
	average_yield: float | None


# ── Water sources ───────────────────────────────────────────────────────────


class WaterSourceCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	code: str | None = Field(default=None, min_length=1, max_length=30)
	source_type: WaterSourceTypeEnum
	description: str | None = None
	latitude: float | None = Field(default=None, ge=-90, le=90)
	longitude: float | None = Field(default=None, ge=-180, le=180)
	reliability: WaterReliabilityEnum = WaterReliabilityEnum.permanent
	water_quality: WaterQualityEnum | None = None
	is_active: bool = True


class WaterSourceUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	code: str | None = Field(default=None, min_length=1, max_length=30)
	source_type: WaterSourceTypeEnum | None = None
	description: str | None = None
	latitude: float | None = Field(default=None, ge=-90, le=90)
	longitude: float | None = Field(default=None, ge=-180, le=180)
	reliability: WaterReliabilityEnum | None = None
	water_quality: WaterQualityEnum | None = None
	is_active: bool | None = None

	check_not_null = reject_null("name", "code", "source_type", "reliability", "is_active")


class WaterSourceRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	name: str
	code: str
	source_type: WaterSourceTypeEnum
	description: str | None
	latitude: float | None
	longitude: float | None
	reliability: WaterReliabilityEnum
	water_quality: WaterQualityEnum | None
	is_active: bool
	created_at: datetime
	updated_at: datetime


# ── Parcel ↔ water source links ─────────────────────────────────────────────


class WaterSourceAttach(BaseModel):
	water_source_id: int
	accessibility: WaterAccessibilityEnum = WaterAccessibilityEnum.direct
	is_primary_source: bool = False
	notes: str | None = Field(default=None, max_length=500)


class LinkRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	accessibility: WaterAccessibilityEnum
	is_primary_source: bool
	notes: str | None


class LinkedWaterSourceRead(WaterSourceRead):
	link: LinkRead


class LinkedLandParcelRead(LandParcelRead):
	link: LinkRead
