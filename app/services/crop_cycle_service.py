"""Crop cycle planning and lifecycle transitions."""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.errors import ErrorBag, FieldValidationError, StateConflictError
from app.models.activity import ActivityLog
from app.models.catalog import CropType, Season, UnitOfMeasure
from app.models.crop_cycle import CropCycle
from app.models.enums import OPEN_CYCLE_STATUSES, CropCycleStatusEnum
from app.models.land import LandParcel
from app.schemas.crop_cycle import (
	CropCycleActivate,
	CropCycleComplete,
	CropCycleCreate,
	CropCycleTerminate,
	CropCycleUpdate,
)
from app.services.base import Page, ServiceBase

logger = structlog.get_logger("soleil.crop_cycles")

# Which statuses each lifecycle action may start from.
_TRANSITIONS: dict[str, frozenset[CropCycleStatusEnum]] = {
	"activate": frozenset({CropCycleStatusEnum.planned}),
	"complete": frozenset({CropCycleStatusEnum.active}),
	"fail": frozenset({CropCycleStatusEnum.planned, CropCycleStatusEnum.active}),
	"abandon": frozenset({CropCycleStatusEnum.planned, CropCycleStatusEnum.active}),
}

_SORTABLE = {
	"planned_start_date": CropCycle.planned_start_date,
	"planned_end_date": CropCycle.planned_end_date,
	"status": CropCycle.status,
	"cycle_code": CropCycle.cycle_code,
	"created_at": CropCycle.created_at,
}


def _append_note(existing: str | None, note: str | None) -> str | None:
	if not note:
		return existing
	if not existing:
		return note
	return f"{existing}\n{note}"


class CropCycleService(ServiceBase):
	"""Guards crop cycle writes: references, date order, overlap and status."""

	# ── Queries ─────────────────────────────────────────────────────────────

	async def get(self, cycle_id: int) -> CropCycle:
		return await self._fetch(CropCycle, cycle_id, "Crop cycle")

	async def list(
		self,
		page: int = 1,
		per_page: int | None = None,
		*,
		status: CropCycleStatusEnum | None = None,
		land_parcel_id: int | None = None,
		crop_type_id: int | None = None,
		season_id: int | None = None,
		start_date: date | None = None,
		end_date: date | None = None,
		search: str | None = None,
		sort_by: str = "planned_start_date",
		descending: bool = True,
	) -> Page[CropCycle]:
		stmt = select(CropCycle).options(selectinload(CropCycle.stages))
		if status is not None:
			stmt = stmt.where(CropCycle.status == status)
		if land_parcel_id is not None:
			stmt = stmt.where(CropCycle.land_parcel_id == land_parcel_id)
		if crop_type_id is not None:
			stmt = stmt.where(CropCycle.crop_type_id == crop_type_id)
		if season_id is not None:
			stmt = stmt.where(CropCycle.season_id == season_id)
		if start_date is not None:
			stmt = stmt.where(CropCycle.planned_start_date >= start_date)
		if end_date is not None:
			stmt = stmt.where(CropCycle.planned_end_date <= end_date)
		if search:
			stmt = stmt.where(CropCycle.cycle_code.ilike(f"%{search.strip()}%"))
		column = _SORTABLE.get(sort_by, CropCycle.planned_start_date)
		stmt = stmt.order_by(column.desc() if descending else column.asc(), CropCycle.id.desc())
		return await self._paginate(stmt, page, per_page)

	async def activity_logs(self, cycle_id: int, page: int = 1, per_page: int | None = None) -> Page[ActivityLog]:
		cycle = await self.get(cycle_id)
		stmt = (
			select(ActivityLog)
			.where(ActivityLog.crop_cycle_id == cycle.id)
			.order_by(ActivityLog.activity_date.desc(), ActivityLog.start_time.desc().nulls_last())
		)
		return await self._paginate(stmt, page, per_page)

	# ── Writes ──────────────────────────────────────────────────────────────

	async def create(self, payload: CropCycleCreate) -> CropCycle:
		errors = ErrorBag()
		parcel = await self._reference(errors, LandParcel, payload.land_parcel_id, "land_parcel_id", "land parcel")
		await self._reference(errors, CropType, payload.crop_type_id, "crop_type_id", "crop type")
		await self._reference(errors, Season, payload.season_id, "season_id", "season")
		if payload.planned_end_date <= payload.planned_start_date:
			errors.add("planned_end_date", "The planned end date must be after the planned start date.")
		if payload.cycle_code and await self._cycle_code_exists(payload.cycle_code):
			errors.add("cycle_code", "The cycle code has already been taken.")
		errors.raise_if_any()

		await self._ensure_no_overlap(parcel.id, payload.planned_start_date, payload.planned_end_date)

		cycle = CropCycle(
			cycle_code=payload.cycle_code or await self.generate_cycle_code(parcel, payload.planned_start_date.year),
			land_parcel_id=parcel.id,
			crop_type_id=payload.crop_type_id,
			season_id=payload.season_id,
			status=CropCycleStatusEnum.planned,
			planned_start_date=payload.planned_start_date,
			planned_end_date=payload.planned_end_date,
			notes=payload.notes,
		)
		self.db.add(cycle)
		await self.db.flush()
		await self.db.refresh(cycle)
		logger.info("crop_cycle_created", crop_cycle_id=cycle.id, cycle_code=cycle.cycle_code)
		return cycle

	async def update(self, cycle_id: int, payload: CropCycleUpdate) -> CropCycle:
		cycle = await self.get(cycle_id)
		if cycle.is_terminal:
			raise StateConflictError(f"A {cycle.status} crop cycle can no longer be modified.")

		changes = payload.model_dump(exclude_unset=True)
		if not changes:
			return cycle

		errors = ErrorBag()
		if "crop_type_id" in changes:
			await self._reference(errors, CropType, changes["crop_type_id"], "crop_type_id", "crop type")
		if "season_id" in changes:
			await self._reference(errors, Season, changes["season_id"], "season_id", "season")
		start = changes.get("planned_start_date", cycle.planned_start_date)
		end = changes.get("planned_end_date", cycle.planned_end_date)
		dates_changed = "planned_start_date" in changes or "planned_end_date" in changes
		if dates_changed and end <= start:
			errors.add("planned_end_date", "The planned end date must be after the planned start date.")
		errors.raise_if_any()

		if dates_changed:
			await self._ensure_no_overlap(
				cycle.land_parcel_id, start, end, exclude_id=cycle.id, field="planned_start_date"
			)

		for key, value in changes.items():
			setattr(cycle, key, value)
		await self.db.flush()
		await self.db.refresh(cycle)
		logger.info("crop_cycle_updated", crop_cycle_id=cycle.id, fields=sorted(changes))
		return cycle

	async def delete(self, cycle_id: int) -> None:
		cycle = await self.get(cycle_id)
		if cycle.status != CropCycleStatusEnum.planned:
			raise StateConflictError("Only planned crop cycles can be deleted.")
		await self.db.delete(cycle)
		await self.db.flush()
		logger.info("crop_cycle_deleted", crop_cycle_id=cycle_id)

	# ── Lifecycle ───────────────────────────────────────────────────────────

	async def activate(self, cycle_id: int, payload: CropCycleActivate | None = None) -> CropCycle:
		cycle = await self.get(cycle_id)
		self._guard_transition(cycle, "activate")
		cycle.status = CropCycleStatusEnum.active
		cycle.actual_start_date = date.today()
		if payload is not None:
			cycle.notes = _append_note(cycle.notes, payload.notes)
		return await self._save_transition(cycle, "crop_cycle_activated")

	async def complete(self, cycle_id: int, payload: CropCycleComplete) -> CropCycle:
		cycle = await self.get(cycle_id)
		self._guard_transition(cycle, "complete")

		actual_end = payload.actual_end_date or date.today()
		errors = ErrorBag()
		if payload.yield_value is not None and payload.yield_value < 0:
			errors.add("yield_value", "The yield value must be at least 0.")
		if payload.yield_unit_id is not None:
			await self._reference(errors, UnitOfMeasure, payload.yield_unit_id, "yield_unit_id", "yield unit", require_active=False)
		if cycle.actual_start_date is not None and actual_end < cycle.actual_start_date:
			errors.add("actual_end_date", "The actual end date cannot be before the actual start date.")
		errors.raise_if_any()

		cycle.status = CropCycleStatusEnum.completed
		cycle.actual_end_date = actual_end
		cycle.yield_value = payload.yield_value
		cycle.yield_unit_id = payload.yield_unit_id
		cycle.quality_rating = payload.quality_rating
		cycle.notes = _append_note(cycle.notes, payload.notes)
		return await self._save_transition(cycle, "crop_cycle_completed")

	async def fail(self, cycle_id: int, payload: CropCycleTerminate) -> CropCycle:
		return await self._terminate(cycle_id, payload, "fail", CropCycleStatusEnum.failed, "Failed")

	async def abandon(self, cycle_id: int, payload: CropCycleTerminate) -> CropCycle:
		return await self._terminate(cycle_id, payload, "abandon", CropCycleStatusEnum.abandoned, "Abandoned")

	# ── Helpers ─────────────────────────────────────────────────────────────

	async def generate_cycle_code(self, parcel: LandParcel, year: int) -> str:
		"""``<PARCEL CODE>-<YEAR>-<NN>``, numbered per parcel and year."""
		prefix = f"{parcel.code}-{year}-"
		count = await self.db.scalar(
			select(func.count()).select_from(CropCycle).where(CropCycle.cycle_code.like(f"{prefix}%"))
		)
		sequence = int(count or 0) + 1
		while True:
			code = f"{prefix}{sequence:02d}"
			if not await self._cycle_code_exists(code):
				return code
			sequence += 1

	async def find_overlapping(
		self,
		land_parcel_id: int,
		start: date,
		end: date,
		exclude_id: int | None = None,
	) -> CropCycle | None:
		"""First open cycle on the parcel whose planned range touches ``[start, end]``."""
		stmt = select(CropCycle).where(
			CropCycle.land_parcel_id == land_parcel_id,
			CropCycle.status.in_(OPEN_CYCLE_STATUSES),
			CropCycle.planned_start_date <= end,
			CropCycle.planned_end_date >= start,
		)
		if exclude_id is not None:
			stmt = stmt.where(CropCycle.id != exclude_id)
		return await self.db.scalar(stmt.order_by(CropCycle.planned_start_date.asc()).limit(1))

	async def _ensure_no_overlap(
		self,
		land_parcel_id: int,
		start: date,
		end: date,
		exclude_id: int | None = None,
		field: str = "land_parcel_id",
	) -> None:
		conflict = await self.find_overlapping(land_parcel_id, start, end, exclude_id)
		if conflict is not None:
			raise FieldValidationError(
				field,
				f"The land parcel already has crop cycle {conflict.cycle_code} planned "
				f"from {conflict.planned_start_date} to {conflict.planned_end_date}.",
			)

	async def _reference(
		self,
		errors: ErrorBag,
		model: type[Any],
		record_id: int,
		field: str,
		label: str,
		require_active: bool = True,
	) -> Any:
		try:
			return await self._require_reference(model, record_id, field, label, require_active=require_active)
		except FieldValidationError as exc:
			for key, messages in exc.errors.items():
				for message in messages:
					errors.add(key, message)
			return None

	async def _cycle_code_exists(self, code: str) -> bool:
		return await self.db.scalar(select(CropCycle.id).where(CropCycle.cycle_code == code).limit(1)) is not None

	@staticmethod
	def _guard_transition(cycle: CropCycle, action: str) -> None:
		allowed = _TRANSITIONS[action]
		if cycle.status not in allowed:
			expected = " or ".join(sorted(status.value for status in allowed))
			raise StateConflictError(
				f"Cannot {action} a {cycle.status} crop cycle; it must be {expected}."
			)

	async def _terminate(
		self,
		cycle_id: int,
		payload: CropCycleTerminate,
		action: str,
		status: CropCycleStatusEnum,
		heading: str,
	) -> CropCycle:
		cycle = await self.get(cycle_id)
		self._guard_transition(cycle, action)
		cycle.status = status
		cycle.actual_end_date = date.today()
		cycle.notes = _append_note(cycle.notes, f"{heading}: {payload.reason}")
		cycle.notes = _append_note(cycle.notes, payload.notes)
		return await self._save_transition(cycle, f"crop_cycle_{status.value}")

	async def _save_transition(self, cycle: CropCycle, event: str) -> CropCycle:
		await self.db.flush()
		await self.db.refresh(cycle)
		logger.info(event, crop_cycle_id=cycle.id, status=cycle.status.value)
		return cycle
