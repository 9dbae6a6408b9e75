"""Crop cycle routes: CRUD, lifecycle actions, stages and activity logs."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.enums import CropCycleStatusEnum
from app.routes.params import PageParams
from app.schemas.activity import ActivityLogRead
from app.schemas.common import DataResponse, MessageResponse, PaginatedResponse, paginated
from app.schemas.crop_cycle import (
	CropCycleActivate,
	CropCycleComplete,
	CropCycleCreate,
	CropCycleRead,
	CropCycleTerminate,
	CropCycleUpdate,
	StageCreate,
	StageRead,
)
from app.services.crop_cycle_service import CropCycleService
from app.services.stage_service import CropCycleStageService

router = APIRouter(
	prefix="/crop-cycles",
	tags=["crop-cycles"],
	dependencies=[Depends(get_current_user)],
)


def _envelope(cycle: Any) -> dict[str, Any]:
	return {"data": CropCycleRead.model_validate(cycle)}


@router.get("", response_model=PaginatedResponse[CropCycleRead])
async def list_crop_cycles(
	params: PageParams = Depends(),
	status_filter: CropCycleStatusEnum | None = Query(default=None, alias="status"),
	land_parcel_id: int | None = None,
	crop_type_id: int | None = None,
	season_id: int | None = None,
	start_date: date | None = None,
	end_date: date | None = None,
	search: str | None = None,
	sort_by: str = "planned_start_date",
	sort_order: str = "desc",
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await CropCycleService(db).list(
		params.page,
		params.per_page,
		status=status_filter,
		land_parcel_id=land_parcel_id,
		crop_type_id=crop_type_id,
		season_id=season_id,
		start_date=start_date,
		end_date=end_date,
		search=search,
		sort_by=sort_by,
		descending=sort_order.lower() != "asc",
	)
	return paginated(page, CropCycleRead)


@router.post("", response_model=DataResponse[CropCycleRead], status_code=status.HTTP_201_CREATED)
async def create_crop_cycle(payload: CropCycleCreate, db: AsyncSession = Depends(get_db)) -> Any:
	cycle = await CropCycleService(db).create(payload)
	return _envelope(cycle)


@router.get("/{cycle_id}", response_model=DataResponse[CropCycleRead])
async def get_crop_cycle(cycle_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	return _envelope(await CropCycleService(db).get(cycle_id))


@router.api_route("/{cycle_id}", methods=["PUT", "PATCH"], response_model=DataResponse[CropCycleRead])
async def update_crop_cycle(cycle_id: int, payload: CropCycleUpdate, db: AsyncSession = Depends(get_db)) -> Any:
	return _envelope(await CropCycleService(db).update(cycle_id, payload))


@router.delete("/{cycle_id}", response_model=MessageResponse)
async def delete_crop_cycle(cycle_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	await CropCycleService(db).delete(cycle_id)
	return {"message": "Crop cycle deleted."}


# ── Lifecycle ───────────────────────────────────────────────────────────────


@router.post("/{cycle_id}/activate", response_model=DataResponse[CropCycleRead])
async def activate_crop_cycle(
	cycle_id: int,
	payload: CropCycleActivate | None = Body(default=None),
	db: AsyncSession = Depends(get_db),
) -> Any:
	return _envelope(await CropCycleService(db).activate(cycle_id, payload))


@router.post("/{cycle_id}/complete", response_model=DataResponse[CropCycleRead])
async def complete_crop_cycle(
	cycle_id: int,
	payload: CropCycleComplete,
	db: AsyncSession = Depends(get_db),
) -> Any:
	return _envelope(await CropCycleService(db).complete(cycle_id, payload))


@router.post("/{cycle_id}/fail", response_model=DataResponse[CropCycleRead])
async def fail_crop_cycle(
	cycle_id: int,
	payload: CropCycleTerminate,
	db: AsyncSession = Depends(get_db),
) -> Any:
	return _envelope(await CropCycleService(db).fail(cycle_id, payload))


@router.post("/{cycle_id}/abandon", response_model=DataResponse[CropCycleRead])
async def abandon_crop_cycle(
	cycle_id: int,
	payload: CropCycleTerminate,
	db: AsyncSession = Depends(get_db),
) -> Any:
	return _envelope(await CropCycleService(db).abandon(cycle_id, payload))


# ── Stages & activity ───────────────────────────────────────────────────────


@router.get("/{cycle_id}/stages", response_model=DataResponse[list[StageRead]])
async def list_stages(cycle_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	stages = await CropCycleStageService(db).list_stages(cycle_id)
	return {"data": [StageRead.model_validate(stage) for stage in stages]}


@router.post("/{cycle_id}/stages", response_model=DataResponse[StageRead], status_code=status.HTTP_201_CREATED)
async def add_stage(cycle_id: int, payload: StageCreate, db: AsyncSession = Depends(get_db)) -> Any:
	stage = await CropCycleStageService(db).add_stage(cycle_id, payload)
	return {"data": StageRead.model_validate(stage)}


@router.get("/{cycle_id}/activity-logs", response_model=PaginatedResponse[ActivityLogRead])
async def list_cycle_activity_logs(
	cycle_id: int,
	params: PageParams = Depends(),
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await CropCycleService(db).activity_logs(cycle_id, params.page, params.per_page)
	return paginated(page, ActivityLogRead)
