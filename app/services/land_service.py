"""Land parcel and water source catalogs, plus the links between them."""

from __future__ import annotations

from typing import Any

import structlog
from geoalchemy2.elements import WKTElement
from sqlalchemy import func, select

from app.errors import FieldValidationError, NotFoundError, StateConflictError
from app.models.activity import ActivityLog
from app.models.catalog import UnitOfMeasure
from app.models.crop_cycle import CropCycle
from app.models.enums import CropCycleStatusEnum, UnitTypeEnum
from app.models.land import LandParcel, LandParcelWaterSource, WaterSource
from app.schemas.land import WaterSourceAttach
from app.services.base import Page
from app.services.catalog_service import CatalogService

logger = structlog.get_logger("soleil.land")


def geo_point(latitude: float | None, longitude: float | None) -> WKTElement | None:
	if latitude is None or longitude is None:
		return None
	return WKTElement(f"POINT({longitude} {latitude})", srid=4326)


class _GeoCatalogService(CatalogService):
	def _prepare(self, values: dict[str, Any], record: Any | None) -> dict[str, Any]:
		if "latitude" in values or "longitude" in values:
			latitude = values.get("latitude", record.latitude if record is not None else None)
			longitude = values.get("longitude", record.longitude if record is not None else None)
			values = {**values, "location": geo_point(latitude, longitude)}
		return values


class LandParcelService(_GeoCatalogService):
	model = LandParcel
	label = "Land parcel"
	code_prefix = "LD"
	filter_fields = ("land_type", "soil_type", "terrain_type")

	async def _validate(self, values: dict[str, Any], record: Any | None) -> None:
		if "area_unit_id" in values:
			unit = await self._require_reference(UnitOfMeasure, values["area_unit_id"], "area_unit_id", "area unit")
			if unit is not None and unit.unit_type != UnitTypeEnum.area:
				raise FieldValidationError("area_unit_id", "The area unit must be a unit of area.")

	async def _before_deactivate(self, record: Any) -> None:
		active = await self.db.scalar(
			select(func.count())
			.select_from(CropCycle)
			.where(
				CropCycle.land_parcel_id == record.id,
				CropCycle.status == CropCycleStatusEnum.active,
			)
		)
		if active:
			raise StateConflictError("Cannot deactivate a land parcel with an active crop cycle.")

	# ── Water source links ──────────────────────────────────────────────────

	async def list_water_sources(self, parcel_id: int) -> list[LandParcelWaterSource]:
		parcel = await self.get(parcel_id)
		stmt = (
			select(LandParcelWaterSource)
			.where(LandParcelWaterSource.land_parcel_id == parcel.id)
			.order_by(LandParcelWaterSource.is_primary_source.desc(), LandParcelWaterSource.id.asc())
		)
		return await self._all(stmt)

	async def attach_water_source(self, parcel_id: int, payload: WaterSourceAttach) -> LandParcelWaterSource:
		parcel = await self.get(parcel_id)
		source = await self._require_reference(WaterSource, payload.water_source_id, "water_source_id", "water source")
		existing = await self.db.scalar(
			select(LandParcelWaterSource.id).where(
				LandParcelWaterSource.land_parcel_id == parcel.id,
				LandParcelWaterSource.water_source_id == source.id,
			)
		)
		if existing is not None:
			raise FieldValidationError("water_source_id", "This water source is already attached to the land parcel.")
		link = LandParcelWaterSource(
			land_parcel_id=parcel.id,
			water_source_id=source.id,
			accessibility=payload.accessibility,
			is_primary_source=payload.is_primary_source,
			notes=payload.notes,
		)
		self.db.add(link)
		await self.db.flush()
		await self.db.refresh(link)
		logger.info("water_source_attached", land_parcel_id=parcel.id, water_source_id=source.id)
		return link

	async def detach_water_source(self, parcel_id: int, water_source_id: int) -> None:
		parcel = await self.get(parcel_id)
		link = await self.db.scalar(
			select(LandParcelWaterSource).where(
				LandParcelWaterSource.land_parcel_id == parcel.id,
				LandParcelWaterSource.water_source_id == water_source_id,
			)
		)
		if link is None:
			raise NotFoundError(f"Water source {water_source_id} is not attached to land parcel {parcel.id}")
		await self.db.delete(link)
		await self.db.flush()
		logger.info("water_source_detached", land_parcel_id=parcel.id, water_source_id=water_source_id)

	# ── Related records ─────────────────────────────────────────────────────

	async def crop_cycles(self, parcel_id: int, page: int = 1, per_page: int | None = None) -> Page[CropCycle]:
		parcel = await self.get(parcel_id)
		stmt = (
			select(CropCycle)
			.where(CropCycle.land_parcel_id == parcel.id)
			.order_by(CropCycle.planned_start_date.desc())
		)
		return await self._paginate(stmt, page, per_page)

	async def activity_logs(self, parcel_id: int, page: int = 1, per_page: int | None = None) -> Page[ActivityLog]:
		parcel = await self.get(parcel_id)
		stmt = (
			select(ActivityLog)
			.where(ActivityLog.land_parcel_id == parcel.id)
			.order_by(ActivityLog.activity_date.desc(), ActivityLog.start_time.desc().nulls_last())
		)
		return await self._paginate(stmt, page, per_page)

	async def statistics(self, parcel_id: int) -> dict[str, Any]:
		parcel = await self.get(parcel_id)
		rows = await self.db.execute(
			select(CropCycle.status, func.count())
			.where(CropCycle.land_parcel_id == parcel.id)
			.group_by(CropCycle.status)
		)
		counts = {status: int(total) for status, total in rows.all()}
		average = await self.db.scalar(
			select(func.avg(CropCycle.yield_value)).where(
				CropCycle.land_parcel_id == parcel.id,
				CropCycle.status == CropCycleStatusEnum.completed,
				CropCycle.yield_value.is_not(None),
			)
		)
		return {
			"land_parcel_id": parcel.id,
			"total_cycles": sum(counts.values()),
			"planned_cycles": counts.get(CropCycleStatusEnum.planned, 0),
			"active_cycles": counts.get(CropCycleStatusEnum.active, 0),
			"completed_cycles": counts.get(CropCycleStatusEnum.completed, 0),
			"failed_cycles": counts.get(CropCycleStatusEnum.failed, 0),
			"abandoned_cycles": counts.get(CropCycleStatusEnum.abandoned, 0),
			"average_yield": round(float(average), 2) if average is not None else None,
		}


class WaterSourceService(_GeoCatalogService):
	model = WaterSource
	label = "Water source"
	code_prefix = "NN"
	filter_fields = ("source_type", "reliability", "water_quality")

	async def land_parcels(self, water_source_id: int) -> list[LandParcelWaterSource]:
		source = await self.get(water_source_id)
		stmt = (
			select(LandParcelWaterSource)
			.where(LandParcelWaterSource.water_source_id == source.id)
			.order_by(LandParcelWaterSource.id.asc())
		)
		return await self._all(stmt)
