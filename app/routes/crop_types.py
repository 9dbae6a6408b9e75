"""Crop type routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.enums import CropCategoryEnum
from app.routes.params import PageParams
from app.schemas.catalog import CropTypeCreate, CropTypeRead, CropTypeStatistics, CropTypeUpdate
from app.schemas.common import DataResponse, PaginatedResponse, paginated
from app.services.catalog_service import CropTypeService

router = APIRouter(
	prefix="/crop-types",
	tags=["crop-types"],
	dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=PaginatedResponse[CropTypeRead])
async def list_crop_types(
	params: PageParams = Depends(),
	category: CropCategoryEnum | None = None,
	active_only: bool = True,
	search: str | None = None,
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await CropTypeService(db).list(
		params.page, params.per_page, active_only=active_only, search=search, category=category
	)
	return paginated(page, CropTypeRead)


@router.post("", response_model=DataResponse[CropTypeRead], status_code=status.HTTP_201_CREATED)
async def create_crop_type(payload: CropTypeCreate, db: AsyncSession = Depends(get_db)) -> Any:
	crop_type = await CropTypeService(db).create(payload)
	return {"data": CropTypeRead.model_validate(crop_type)}


@router.get("/{crop_type_id}", response_model=DataResponse[CropTypeRead])
async def get_crop_type(crop_type_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	crop_type = await CropTypeService(db).get(crop_type_id)
	return {"data": CropTypeRead.model_validate(crop_type)}


@router.get("/{crop_type_id}/statistics", response_model=DataResponse[CropTypeStatistics])
async def crop_type_statistics(crop_type_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	return {"data": await CropTypeService(db).statistics(crop_type_id)}


@router.api_route("/{crop_type_id}", methods=["PUT", "PATCH"], response_model=DataResponse[CropTypeRead])
async def update_crop_type(crop_type_id: int, payload: CropTypeUpdate, db: AsyncSession = Depends(get_db)) -> Any:
	crop_type = await CropTypeService(db).update(crop_type_id, payload)
	return {"data": CropTypeRead.model_validate(crop_type)}


@router.delete("/{crop_type_id}", response_model=DataResponse[CropTypeRead])
async def deactivate_crop_type(crop_type_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	crop_type = await CropTypeService(db).deactivate(crop_type_id)
	return {"data": CropTypeRead.model_validate(crop_type)}
