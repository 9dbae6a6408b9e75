"""Crop cycle stage ordering and progression."""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog
from sqlalchemy import select

from app.errors import ErrorBag, FieldValidationError, StateConflictError
from app.models.crop_cycle import CropCycle, CropCycleStage
from app.models.enums import CropCycleStatusEnum, StageStatusEnum
from app.schemas.crop_cycle import StageComplete, StageCreate, StageSkip, StageStart, StageUpdate
from app.services.base import ServiceBase

logger = structlog.get_logger("soleil.stages")

_SETTLED = frozenset({StageStatusEnum.completed, StageStatusEnum.skipped})


class CropCycleStageService(ServiceBase):
	async def get(self, stage_id: int) -> CropCycleStage:
		return await self._fetch(CropCycleStage, stage_id, "Crop cycle stage")

	async def list_stages(self, cycle_id: int) -> list[CropCycleStage]:
		cycle = await self._get_cycle(cycle_id)
		stmt = (
			select(CropCycleStage)
			.where(CropCycleStage.crop_cycle_id == cycle.id)
			.order_by(CropCycleStage.sequence_order.asc())
		)
		return await self._all(stmt)

	async def add_stage(self, cycle_id: int, payload: StageCreate) -> CropCycleStage:
		cycle = await self._get_cycle(cycle_id)
		if cycle.is_terminal:
			raise StateConflictError(
				f"Stages cannot be added to a {cycle.status} crop cycle.", field="crop_cycle_id"
			)

		errors = ErrorBag()
		if await self._sequence_taken(cycle.id, payload.sequence_order):
			errors.add("sequence_order", "This sequence order is already used in the crop cycle.")
		self._check_dates(errors, payload.planned_start_date, payload.planned_end_date)
		errors.raise_if_any()

		stage = CropCycleStage(
			crop_cycle_id=cycle.id,
			stage_name=payload.stage_name,
			sequence_order=payload.sequence_order,
			planned_start_date=payload.planned_start_date,
			planned_end_date=payload.planned_end_date,
			status=StageStatusEnum.pending,
			notes=payload.notes,
		)
		self.db.add(stage)
		await self.db.flush()
		await self.db.refresh(stage)
		logger.info("stage_added", crop_cycle_id=cycle.id, stage_id=stage.id, sequence_order=stage.sequence_order)
		return stage

	async def update_stage(self, stage_id: int, payload: StageUpdate) -> CropCycleStage:
		stage = await self.get(stage_id)
		cycle = await self._get_cycle(stage.crop_cycle_id)
		self._ensure_editable(stage, cycle)

		changes = payload.model_dump(exclude_unset=True)
		if not changes:
			return stage

		errors = ErrorBag()
		sequence = changes.get("sequence_order")
		if sequence is not None and sequence != stage.sequence_order:
			if await self._sequence_taken(cycle.id, sequence, exclude_id=stage.id):
				errors.add("sequence_order", "This sequence order is already used in the crop cycle.")
		self._check_dates(
			errors,
			changes.get("planned_start_date", stage.planned_start_date),
			changes.get("planned_end_date", stage.planned_end_date),
		)
		errors.raise_if_any()

		for key, value in changes.items():
			setattr(stage, key, value)
		await self.db.flush()
		await self.db.refresh(stage)
		return stage

	async def start_stage(self, stage_id: int, payload: StageStart | None = None) -> CropCycleStage:
		stage = await self.get(stage_id)
		cycle = await self._get_cycle(stage.crop_cycle_id)
		if stage.status != StageStatusEnum.pending:
			raise StateConflictError(f"Only pending stages can be started; this stage is {stage.status}.")
		if cycle.status != CropCycleStatusEnum.active:
			raise StateConflictError(
				f"Stages can only be started on an active crop cycle; the cycle is {cycle.status}.",
				field="crop_cycle_id",
			)
		previous = await self._previous_stage(stage)
		if previous is not None and previous.status not in _SETTLED:
			raise StateConflictError(
				f"The previous stage ({previous.stage_name}) must be completed or skipped first.",
				field="sequence_order",
			)
		stage.status = StageStatusEnum.in_progress
		stage.actual_start_date = (payload.actual_start_date if payload else None) or date.today()
		return await self._save(stage, "stage_started")

	async def complete_stage(self, stage_id: int, payload: StageComplete | None = None) -> CropCycleStage:
		stage = await self.get(stage_id)
		if stage.status != StageStatusEnum.in_progress:
			raise StateConflictError(f"Only in-progress stages can be completed; this stage is {stage.status}.")
		actual_end = (payload.actual_end_date if payload else None) or date.today()
		if stage.actual_start_date is not None and actual_end < stage.actual_start_date:
			raise FieldValidationError("actual_end_date", "The actual end date cannot be before the actual start date.")
		stage.status = StageStatusEnum.completed
		stage.actual_end_date = actual_end
		if payload is not None and payload.notes:
			stage.notes = payload.notes
		return await self._save(stage, "stage_completed")

	async def skip_stage(self, stage_id: int, payload: StageSkip | None = None) -> CropCycleStage:
		stage = await self.get(stage_id)
		cycle = await self._get_cycle(stage.crop_cycle_id)
		if cycle.is_terminal:
			raise StateConflictError(f"Stages of a {cycle.status} crop cycle cannot change.", field="crop_cycle_id")
		if stage.status != StageStatusEnum.pending:
			raise StateConflictError(f"Only pending stages can be skipped; this stage is {stage.status}.")
		stage.status = StageStatusEnum.skipped
		if payload is not None and payload.notes:
			stage.notes = payload.notes
		return await self._save(stage, "stage_skipped")

	async def delete_stage(self, stage_id: int) -> None:
		stage = await self.get(stage_id)
		cycle = await self._get_cycle(stage.crop_cycle_id)
		self._ensure_editable(stage, cycle)
		await self.db.delete(stage)
		await self.db.flush()
		logger.info("stage_deleted", crop_cycle_id=cycle.id, stage_id=stage_id)

	async def _get_cycle(self, cycle_id: int) -> CropCycle:
		return await self._fetch(CropCycle, cycle_id, "Crop cycle")

	async def _previous_stage(self, stage: Any) -> CropCycleStage | None:
		stmt = (
			select(CropCycleStage)
			.where(
				CropCycleStage.crop_cycle_id == stage.crop_cycle_id,
				CropCycleStage.sequence_order < stage.sequence_order,
			)
			.order_by(CropCycleStage.sequence_order.desc())
			.limit(1)
		)
		return await self.db.scalar(stmt)

	async def _sequence_taken(self, cycle_id: int, sequence_order: int, exclude_id: int | None = None) -> bool:
		stmt = select(CropCycleStage.id).where(
			CropCycleStage.crop_cycle_id == cycle_id,
			CropCycleStage.sequence_order == sequence_order,
		)
		if exclude_id is not None:
			stmt = stmt.where(CropCycleStage.id != exclude_id)
		return await self.db.scalar(stmt.limit(1)) is not None

	@staticmethod
	def _ensure_editable(stage: Any, cycle: Any) -> None:
		if cycle.is_terminal:
			raise StateConflictError(f"Stages of a {cycle.status} crop cycle cannot change.", field="crop_cycle_id")
		if stage.status in _SETTLED:
			raise StateConflictError(f"A {stage.status} stage cannot be modified.")

	@staticmethod
	def _check_dates(errors: ErrorBag, start: date | None, end: date | None) -> None:
		if start is not None and end is not None and end <= start:
			errors.add("planned_end_date", "The planned end date must be after the planned start date.")

	async def _save(self, stage: CropCycleStage, event: str) -> CropCycleStage:
		await self.db.flush()
		await self.db.refresh(stage)
		logger.info(event, crop_cycle_id=stage.crop_cycle_id, stage_id=stage.id, status=stage.status.value)
		return stage
