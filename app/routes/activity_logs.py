"""Activity log routes.  Logs may be corrected but there is no delete."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.routes.params import PageParams
from app.schemas.activity import ActivityLogCreate, ActivityLogRead, ActivityLogUpdate
from app.schemas.common import DataResponse, PaginatedResponse, paginated
from app.services.activity_log_service import ActivityLogService

router = APIRouter(
	prefix="/activity-logs",
	tags=["activity-logs"],
	dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=PaginatedResponse[ActivityLogRead])
async def list_activity_logs(
	params: PageParams = Depends(),
	activity_type_id: int | None = None,
	land_parcel_id: int | None = None,
	crop_cycle_id: int | None = None,
	water_source_id: int | None = None,
	start_date: date | None = None,
	end_date: date | None = None,
	performed_by: str | None = None,
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await ActivityLogService(db).list(
		params.page,
		params.per_page,
		activity_type_id=activity_type_id,
		land_parcel_id=land_parcel_id,
		crop_cycle_id=crop_cycle_id,
		water_source_id=water_source_id,
		start_date=start_date,
		end_date=end_date,
		performed_by=performed_by,
	)
	return paginated(page, ActivityLogRead)


@router.post("", response_model=DataResponse[ActivityLogRead], status_code=status.HTTP_201_CREATED)
async def record_activity(payload: ActivityLogCreate, db: AsyncSession = Depends(get_db)) -> Any:
	log = await ActivityLogService(db).record(payload)
	return {"data": ActivityLogRead.model_validate(log)}


@router.get("/recent", response_model=PaginatedResponse[ActivityLogRead])
async def recent_activity_logs(
	days: int = Query(default=7, ge=1, le=365),
	params: PageParams = Depends(),
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await ActivityLogService(db).recent(days, params.page, params.per_page)
	return paginated(page, ActivityLogRead)


@router.get("/date/{activity_date}", response_model=DataResponse[list[ActivityLogRead]])
async def activity_logs_by_date(activity_date: date, db: AsyncSession = Depends(get_db)) -> Any:
	logs = await ActivityLogService(db).by_date(activity_date)
	return {"data": [ActivityLogRead.model_validate(log) for log in logs]}


@router.get("/performer/{performer}", response_model=PaginatedResponse[ActivityLogRead])
async def activity_logs_by_performer(
	performer: str,
	params: PageParams = Depends(),
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await ActivityLogService(db).by_performer(performer, params.page, params.per_page)
	return paginated(page, ActivityLogRead)


@router.get("/{log_id}", response_model=DataResponse[ActivityLogRead])
async def get_activity_log(log_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	log = await ActivityLogService(db).get(log_id)
	return {"data": ActivityLogRead.model_validate(log)}


@router.api_route("/{log_id}", methods=["PUT", "PATCH"], response_model=DataResponse[ActivityLogRead])
async def update_activity_log(log_id: int, payload: ActivityLogUpdate, db: AsyncSession = Depends(get_db)) -> Any:
	log = await ActivityLogService(db).update(log_id, payload)
	return {"data": ActivityLogRead.model_validate(log)}
