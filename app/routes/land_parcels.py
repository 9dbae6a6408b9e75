"""Land parcel routes, including water source links and related records."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.enums import LandTypeEnum, SoilTypeEnum, TerrainTypeEnum
from app.routes.params import PageParams
from app.schemas.activity import ActivityLogRead
from app.schemas.common import DataResponse, MessageResponse, PaginatedResponse, paginated
from app.schemas.crop_cycle import CropCycleRead
from app.schemas.land import (
	LandParcelCreate,
	LandParcelRead,
	LandParcelStatistics,
	LandParcelUpdate,
	LinkedWaterSourceRead,
	LinkRead,
	WaterSourceAttach,
	WaterSourceRead,
)
from app.services.land_service import LandParcelService

router = APIRouter(
	prefix="/land-parcels",
	tags=["land-parcels"],
	dependencies=[Depends(get_current_user)],
)


def _to_linked_source(link: Any) -> LinkedWaterSourceRead:
	source = WaterSourceRead.model_validate(link.water_source)
	return LinkedWaterSourceRead(**source.model_dump(), link=LinkRead.model_validate(link))


@router.get("", response_model=PaginatedResponse[LandParcelRead])
async def list_land_parcels(
	params: PageParams = Depends(),
	land_type: LandTypeEnum | None = None,
	soil_type: SoilTypeEnum | None = None,
	terrain_type: TerrainTypeEnum | None = None,
	active_only: bool = True,
	search: str | None = None,
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await LandParcelService(db).list(
		params.page,
		params.per_page,
		active_only=active_only,
		search=search,
		land_type=land_type,
		soil_type=soil_type,
		terrain_type=terrain_type,
	)
	return paginated(page, LandParcelRead)


@router.post("", response_model=DataResponse[LandParcelRead], status_code=status.HTTP_201_CREATED)
async def create_land_parcel(payload: LandParcelCreate, db: AsyncSession = Depends(get_db)) -> Any:
	parcel = await LandParcelService(db).create(payload)
	return {"data": LandParcelRead.model_validate(parcel)}


@router.get("/{parcel_id}", response_model=DataResponse[LandParcelRead])
async def get_land_parcel(parcel_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	parcel = await LandParcelService(db).get(parcel_id)
	return {"data": LandParcelRead.model_validate(parcel)}


@router.api_route("/{parcel_id}", methods=["PUT", "PATCH"], response_model=DataResponse[LandParcelRead])
async def update_land_parcel(parcel_id: int, payload: LandParcelUpdate, db: AsyncSession = Depends(get_db)) -> Any:
	parcel = await LandParcelService(db).update(parcel_id, payload)
	return {"data": LandParcelRead.model_validate(parcel)}


@router.delete("/{parcel_id}", response_model=DataResponse[LandParcelRead])
async def deactivate_land_parcel(parcel_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	parcel = await LandParcelService(db).deactivate(parcel_id)
	return {"data": LandParcelRead.model_validate(parcel)}


# ── Water sources ───────────────────────────────────────────────────────────


@router.get("/{parcel_id}/water-sources", response_model=DataResponse[list[LinkedWaterSourceRead]])
async def list_parcel_water_sources(parcel_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	links = await LandParcelService(db).list_water_sources(parcel_id)
	return {"data": [_to_linked_source(link) for link in links]}


@router.post(
	"/{parcel_id}/water-sources",
	response_model=DataResponse[LinkedWaterSourceRead],
	status_code=status.HTTP_201_CREATED,
)
async def attach_water_source(
	parcel_id: int,
	payload: WaterSourceAttach,
	db: AsyncSession = Depends(get_db),
) -> Any:
	link = await LandParcelService(db).attach_water_source(parcel_id, payload)
	return {"data": _to_linked_source(link)}


@router.delete("/{parcel_id}/water-sources/{water_source_id}", response_model=MessageResponse)
async def detach_water_source(parcel_id: int, water_source_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	await LandParcelService(db).detach_water_source(parcel_id, water_source_id)
	return {"message": "Water source detached."}


# ── Related records ─────────────────────────────────────────────────────────


@router.get("/{parcel_id}/crop-cycles", response_model=PaginatedResponse[CropCycleRead])
async def list_parcel_crop_cycles(
	parcel_id: int,
	params: PageParams = Depends(),
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await LandParcelService(db).crop_cycles(parcel_id, params.page, params.per_page)
	return paginated(page, CropCycleRead)


@router.get("/{parcel_id}/activity-logs", response_model=PaginatedResponse[ActivityLogRead])
async def list_parcel_activity_logs(
	parcel_id: int,
	params: PageParams = Depends(),
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await LandParcelService(db).activity_logs(parcel_id, params.page, params.per_page)
	return paginated(page, ActivityLogRead)


@router.get("/{parcel_id}/statistics", response_model=DataResponse[LandParcelStatistics])
async def land_parcel_statistics(parcel_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	return {"data": await LandParcelService(db).statistics(parcel_id)}
