"""Units of measure routes."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.enums import UnitTypeEnum
from app.routes.params import PageParams
from app.schemas.catalog import (
	UnitConversionRead,
	UnitOfMeasureCreate,
	UnitOfMeasureRead,
	UnitOfMeasureUpdate,
)
from app.schemas.common import DataResponse, PaginatedResponse, paginated
from app.services.catalog_service import UnitOfMeasureService

router = APIRouter(
	prefix="/units-of-measure",
	tags=["units-of-measure"],
	dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=PaginatedResponse[UnitOfMeasureRead])
async def list_units(
	params: PageParams = Depends(),
	unit_type: UnitTypeEnum | None = None,
	active_only: bool = True,
	search: str | None = None,
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await UnitOfMeasureService(db).list(
		params.page, params.per_page, active_only=active_only, search=search, unit_type=unit_type
	)
	return paginated(page, UnitOfMeasureRead)


@router.post("", response_model=DataResponse[UnitOfMeasureRead], status_code=status.HTTP_201_CREATED)
async def create_unit(payload: UnitOfMeasureCreate, db: AsyncSession = Depends(get_db)) -> Any:
	unit = await UnitOfMeasureService(db).create(payload)
	return {"data": UnitOfMeasureRead.model_validate(unit)}


@router.get("/type/{unit_type}", response_model=DataResponse[list[UnitOfMeasureRead]])
async def list_units_by_type(unit_type: UnitTypeEnum, db: AsyncSession = Depends(get_db)) -> Any:
	units = await UnitOfMeasureService(db).by_type(unit_type)
	return {"data": [UnitOfMeasureRead.model_validate(unit) for unit in units]}


@router.get("/convert", response_model=DataResponse[UnitConversionRead])
async def convert_units(
	value: Decimal = Query(ge=0),
	from_unit_id: int = Query(),
	to_unit_id: int = Query(),
	db: AsyncSession = Depends(get_db),
) -> Any:
	result = await UnitOfMeasureService(db).convert(value, from_unit_id, to_unit_id)
	return {"data": result}


@router.get("/{unit_id}", response_model=DataResponse[UnitOfMeasureRead])
async def get_unit(unit_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	unit = await UnitOfMeasureService(db).get(unit_id)
	return {"data": UnitOfMeasureRead.model_validate(unit)}


@router.api_route("/{unit_id}", methods=["PUT", "PATCH"], response_model=DataResponse[UnitOfMeasureRead])
async def update_unit(unit_id: int, payload: UnitOfMeasureUpdate, db: AsyncSession = Depends(get_db)) -> Any:
	unit = await UnitOfMeasureService(db).update(unit_id, payload)
	return {"data": UnitOfMeasureRead.model_validate(unit)}


@router.delete("/{unit_id}", response_model=DataResponse[UnitOfMeasureRead])
async def deactivate_unit(unit_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	unit = await UnitOfMeasureService(db).deactivate(unit_id)
	return {"data": UnitOfMeasureRead.model_validate(unit)}
