"""Activity log recording and queries."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

import structlog
from sqlalchemy import select

from app.errors import ErrorBag, FieldValidationError
from app.models.activity import ActivityLog
from app.models.catalog import ActivityType, UnitOfMeasure
from app.models.crop_cycle import CropCycle
from app.models.land import LandParcel, WaterSource
from app.schemas.activity import ActivityLogCreate, ActivityLogUpdate
from app.services.base import Page, ServiceBase

logger = structlog.get_logger("soleil.activity_logs")

_REFERENCES: tuple[tuple[str, type[Any], str], ...] = (
	("crop_cycle_id", CropCycle, "crop cycle"),
	("land_parcel_id", LandParcel, "land parcel"),
	("water_source_id", WaterSource, "water source"),
	("quantity_unit_id", UnitOfMeasure, "quantity unit"),
	("cost_unit_id", UnitOfMeasure, "cost unit"),
)


class ActivityLogService(ServiceBase):
	"""Records field work.  Logs can be corrected but never deleted."""

	async def get(self, log_id: int) -> ActivityLog:
		return await self._fetch(ActivityLog, log_id, "Activity log")

	async def record(self, payload: ActivityLogCreate) -> ActivityLog:
		values = payload.model_dump()
		resolved = await self._validate(values, None)
		cycle = resolved.get("crop_cycle_id")
		if values.get("land_parcel_id") is None and cycle is not None:
			values["land_parcel_id"] = cycle.land_parcel_id

		log = ActivityLog(**values)
		self.db.add(log)
		await self.db.flush()
		await self.db.refresh(log)
		logger.info(
			"activity_recorded",
			activity_log_id=log.id,
			activity_type_id=log.activity_type_id,
			crop_cycle_id=log.crop_cycle_id,
			land_parcel_id=log.land_parcel_id,
		)
		return log

	async def update(self, log_id: int, payload: ActivityLogUpdate) -> ActivityLog:
		log = await self.get(log_id)
		changes = payload.model_dump(exclude_unset=True)
		if not changes:
			return log
		resolved = await self._validate(changes, log)
		cycle = resolved.get("crop_cycle_id")
		if cycle is not None and "land_parcel_id" not in changes and log.land_parcel_id is None:
			changes["land_parcel_id"] = cycle.land_parcel_id

		for key, value in changes.items():
			setattr(log, key, value)
		await self.db.flush()
		await self.db.refresh(log)
		logger.info("activity_updated", activity_log_id=log.id, fields=sorted(changes))
		return log

	# ── Queries ─────────────────────────────────────────────────────────────

	async def list(
		self,
		page: int = 1,
		per_page: int | None = None,
		*,
		activity_type_id: int | None = None,
		land_parcel_id: int | None = None,
		crop_cycle_id: int | None = None,
		water_source_id: int | None = None,
		start_date: date | None = None,
		end_date: date | None = None,
		performed_by: str | None = None,
	) -> Page[ActivityLog]:
		stmt = select(ActivityLog)
		if activity_type_id is not None:
			stmt = stmt.where(ActivityLog.activity_type_id == activity_type_id)
		if land_parcel_id is not None:
			stmt = stmt.where(ActivityLog.land_parcel_id == land_parcel_id)
		if crop_cycle_id is not None:
			stmt = stmt.where(ActivityLog.crop_cycle_id == crop_cycle_id)
		if water_source_id is not None:
			stmt = stmt.where(ActivityLog.water_source_id == water_source_id)
		if start_date is not None:
			stmt = stmt.where(ActivityLog.activity_date >= start_date)
		if end_date is not None:
			stmt = stmt.where(ActivityLog.activity_date <= end_date)
		if performed_by:
			stmt = stmt.where(ActivityLog.performed_by.ilike(f"%{performed_by.strip()}%"))
		stmt = stmt.order_by(ActivityLog.activity_date.desc(), ActivityLog.start_time.desc().nulls_last(), ActivityLog.id.desc())
		return await self._paginate(stmt, page, per_page)

	async def by_date(self, activity_date: date) -> list[ActivityLog]:
		stmt = (
			select(ActivityLog)
			.where(ActivityLog.activity_date == activity_date)
			.order_by(ActivityLog.start_time.asc().nulls_last(), ActivityLog.id.asc())
		)
		return await self._all(stmt)

	async def by_performer(self, performer: str, page: int = 1, per_page: int | None = None) -> Page[ActivityLog]:
		stmt = (
			select(ActivityLog)
			.where(ActivityLog.performed_by == performer)
			.order_by(ActivityLog.activity_date.desc(), ActivityLog.id.desc())
		)
		return await self._paginate(stmt, page, per_page)

	async def recent(self, days: int = 7, page: int = 1, per_page: int | None = None) -> Page[ActivityLog]:
		since = date.today() - timedelta(days=days)
		stmt = (
			select(ActivityLog)
			.where(ActivityLog.activity_date >= since)
			.order_by(ActivityLog.activity_date.desc(), ActivityLog.start_time.desc().nulls_last(), ActivityLog.id.desc())
		)
		return await self._paginate(stmt, page, per_page)

	# ── Validation ──────────────────────────────────────────────────────────

	async def _validate(self, values: dict[str, Any], log: ActivityLog | None) -> dict[str, Any]:
		"""Check references and cross-field rules on the merged record.

		Returns the referenced rows that were resolved, keyed by field name.
		"""
		errors = ErrorBag()
		resolved: dict[str, Any] = {}

		if log is None or "activity_type_id" in values:
			try:
				await self._require_reference(
					ActivityType, values.get("activity_type_id"), "activity_type_id", "activity type", require_active=True
				)
			except FieldValidationError as exc:
				errors.errors.update(exc.errors)

		for field, model, label in _REFERENCES:
			if values.get(field) is None:
				continue
			try:
				resolved[field] = await self._require_reference(model, values[field], field, label)
			except FieldValidationError as exc:
				errors.errors.update(exc.errors)

		def merged(field: str) -> Any:
			if field in values:
				return values[field]
			return getattr(log, field) if log is not None else None

		if merged("quantity_value") is not None and merged("quantity_unit_id") is None:
			errors.add("quantity_unit_id", "A quantity unit is required when a quantity value is given.")
		if merged("cost_value") is not None and merged("cost_unit_id") is None:
			errors.add("cost_unit_id", "A cost unit is required when a cost value is given.")

		start, end = merged("start_time"), merged("end_time")
		if start is not None and end is not None and end <= start:
			errors.add("end_time", "The end time must be after the start time.")

		errors.raise_if_any()
		return resolved
