"""Activity type routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.enums import ActivityCategoryEnum
from app.routes.params import PageParams
from app.schemas.catalog import ActivityTypeCreate, ActivityTypeRead, ActivityTypeUpdate
from app.schemas.common import DataResponse, PaginatedResponse, paginated
from app.services.catalog_service import ActivityTypeService

router = APIRouter(
	prefix="/activity-types",
	tags=["activity-types"],
	dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=PaginatedResponse[ActivityTypeRead])
async def list_activity_types(
	params: PageParams = Depends(),
	category: ActivityCategoryEnum | None = None,
	active_only: bool = True,
	search: str | None = None,
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await ActivityTypeService(db).list(
		params.page, params.per_page, active_only=active_only, search=search, category=category
	)
	return paginated(page, ActivityTypeRead)


@router.post("", response_model=DataResponse[ActivityTypeRead], status_code=status.HTTP_201_CREATED)
async def create_activity_type(payload: ActivityTypeCreate, db: AsyncSession = Depends(get_db)) -> Any:
	activity_type = await ActivityTypeService(db).create(payload)
	return {"data": ActivityTypeRead.model_validate(activity_type)}


@router.get("/category/{category}", response_model=DataResponse[list[ActivityTypeRead]])
async def list_activity_types_by_category(category: ActivityCategoryEnum, db: AsyncSession = Depends(get_db)) -> Any:
	items = await ActivityTypeService(db).by_category(category)
	return {"data": [ActivityTypeRead.model_validate(item) for item in items]}


@router.get("/{activity_type_id}", response_model=DataResponse[ActivityTypeRead])
async def get_activity_type(activity_type_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	activity_type = await ActivityTypeService(db).get(activity_type_id)
	return {"data": ActivityTypeRead.model_validate(activity_type)}


@router.api_route("/{activity_type_id}", methods=["PUT", "PATCH"], response_model=DataResponse[ActivityTypeRead])
async def update_activity_type(
	activity_type_id: int,
	payload: ActivityTypeUpdate,
	db: AsyncSession = Depends(get_db),
) -> Any:
	activity_type = await ActivityTypeService(db).update(activity_type_id, payload)
	return {"data": ActivityTypeRead.model_validate(activity_type)}


@router.delete("/{activity_type_id}", response_model=DataResponse[ActivityTypeRead])
async def deactivate_activity_type(activity_type_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	activity_type = await ActivityTypeService(db).deactivate(activity_type_id)
	return {"data": ActivityTypeRead.model_validate(activity_type)}
