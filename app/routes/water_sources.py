"""Water source routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.enums import WaterQualityEnum, WaterReliabilityEnum, WaterSourceTypeEnum
from app.routes.params import PageParams
from app.schemas.common import DataResponse, PaginatedResponse, paginated
from app.schemas.land import (
	LandParcelRead,
	LinkedLandParcelRead,
	LinkRead,
	WaterSourceCreate,
	WaterSourceRead,
	WaterSourceUpdate,
)
from app.services.land_service import WaterSourceService

router = APIRouter(
	prefix="/water-sources",
	tags=["water-sources"],
	dependencies=[Depends(get_current_user)],
)


def _to_linked_parcel(link: Any) -> LinkedLandParcelRead:
	parcel = LandParcelRead.model_validate(link.land_parcel)
	return LinkedLandParcelRead(**parcel.model_dump(), link=LinkRead.model_validate(link))


@router.get("", response_model=PaginatedResponse[WaterSourceRead])
async def list_water_sources(
	params: PageParams = Depends(),
	source_type: WaterSourceTypeEnum | None = None,
	reliability: WaterReliabilityEnum | None = None,
	water_quality: WaterQualityEnum | None = None,
	active_only: bool = True,
	search: str | None = None,
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await WaterSourceService(db).list(
		params.page,
		params.per_page,
		active_only=active_only,
		search=search,
		source_type=source_type,
		reliability=reliability,
		water_quality=water_quality,
	)
	return paginated(page, WaterSourceRead)


@router.post("", response_model=DataResponse[WaterSourceRead], status_code=status.HTTP_201_CREATED)
async def create_water_source(payload: WaterSourceCreate, db: AsyncSession = Depends(get_db)) -> Any:
	source = await WaterSourceService(db).create(payload)
	return {"data": WaterSourceRead.model_validate(source)}


@router.get("/{water_source_id}", response_model=DataResponse[WaterSourceRead])
async def get_water_source(water_source_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	source = await WaterSourceService(db).get(water_source_id)
	return {"data": WaterSourceRead.model_validate(source)}


@router.get("/{water_source_id}/land-parcels", response_model=DataResponse[list[LinkedLandParcelRead]])
async def list_served_land_parcels(water_source_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	links = await WaterSourceService(db).land_parcels(water_source_id)
	return {"data": [_to_linked_parcel(link) for link in links]}


@router.api_route("/{water_source_id}", methods=["PUT", "PATCH"], response_model=DataResponse[WaterSourceRead])
async def update_water_source(
	water_source_id: int,
	payload: WaterSourceUpdate,
	db: AsyncSession = Depends(get_db),
) -> Any:
	source = await WaterSourceService(db).update(water_source_id, payload)
	return {"data": WaterSourceRead.model_validate(source)}


@router.delete("/{water_source_id}", response_model=DataResponse[WaterSourceRead])
async def deactivate_water_source(water_source_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	source = await WaterSourceService(db).deactivate(water_source_id)
	return {"data": WaterSourceRead.model_validate(source)}
