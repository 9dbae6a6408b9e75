"""Crop cycle stage routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.schemas.common import DataResponse, MessageResponse
from app.schemas.crop_cycle import StageComplete, StageRead, StageSkip, StageStart, StageUpdate
from app.services.stage_service import CropCycleStageService

router = APIRouter(
	prefix="/crop-cycle-stages",
	tags=["crop-cycle-stages"],
	dependencies=[Depends(get_current_user)],
)


@router.api_route("/{stage_id}", methods=["PUT", "PATCH"], response_model=DataResponse[StageRead])
async def update_stage(stage_id: int, payload: StageUpdate, db: AsyncSession = Depends(get_db)) -> Any:
	stage = await CropCycleStageService(db).update_stage(stage_id, payload)
	return {"data": StageRead.model_validate(stage)}


@router.delete("/{stage_id}", response_model=MessageResponse)
async def delete_stage(stage_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	await CropCycleStageService(db).delete_stage(stage_id)
	return {"message": "Stage deleted."}


@router.post("/{stage_id}/start", response_model=DataResponse[StageRead])
async def start_stage(
	stage_id: int,
	payload: StageStart | None = Body(default=None),
	db: AsyncSession = Depends(get_db),
) -> Any:
	stage = await CropCycleStageService(db).start_stage(stage_id, payload)
	return {"data": StageRead.model_validate(stage)}


@router.post("/{stage_id}/complete", response_model=DataResponse[StageRead])
async def complete_stage(
	stage_id: int,
	payload: StageComplete | None = Body(default=None),
	db: AsyncSession = Depends(get_db),
) -> Any:
	stage = await CropCycleStageService(db).complete_stage(stage_id, payload)
	return {"data": StageRead.model_validate(stage)}


@router.post("/{stage_id}/skip", response_model=DataResponse[StageRead])
async def skip_stage(
	stage_id: int,
	payload: StageSkip | None = Body(default=None),
	db: AsyncSession = Depends(get_db),
) -> Any:
	stage = await CropCycleStageService(db).skip_stage(stage_id, payload)
	return {"data": StageRead.model_validate(stage)}
