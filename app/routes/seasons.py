"""Season definition and season routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.routes.params import PageParams
from app.schemas.catalog import (
	SeasonCreate,
	SeasonDefinitionCreate,
	SeasonDefinitionRead,
	SeasonDefinitionUpdate,
	SeasonRead,
	SeasonUpdate,
)
from app.schemas.common import DataResponse, MessageResponse, PaginatedResponse, paginated
from app.services.catalog_service import SeasonDefinitionService, SeasonService

definitions_router = APIRouter(
	prefix="/season-definitions",
	tags=["seasons"],
	dependencies=[Depends(get_current_user)],
)
router = APIRouter(
	prefix="/seasons",
	tags=["seasons"],
	dependencies=[Depends(get_current_user)],
)


# ── Season definitions ──────────────────────────────────────────────────────


@definitions_router.get("", response_model=PaginatedResponse[SeasonDefinitionRead])
async def list_season_definitions(
	params: PageParams = Depends(),
	active_only: bool = True,
	search: str | None = None,
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await SeasonDefinitionService(db).list(params.page, params.per_page, active_only=active_only, search=search)
	return paginated(page, SeasonDefinitionRead)


@definitions_router.post("", response_model=DataResponse[SeasonDefinitionRead], status_code=status.HTTP_201_CREATED)
async def create_season_definition(payload: SeasonDefinitionCreate, db: AsyncSession = Depends(get_db)) -> Any:
	definition = await SeasonDefinitionService(db).create(payload)
	return {"data": SeasonDefinitionRead.model_validate(definition)}


@definitions_router.get("/{definition_id}", response_model=DataResponse[SeasonDefinitionRead])
async def get_season_definition(definition_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	definition = await SeasonDefinitionService(db).get(definition_id)
	return {"data": SeasonDefinitionRead.model_validate(definition)}


@definitions_router.api_route(
	"/{definition_id}", methods=["PUT", "PATCH"], response_model=DataResponse[SeasonDefinitionRead]
)
async def update_season_definition(
	definition_id: int,
	payload: SeasonDefinitionUpdate,
	db: AsyncSession = Depends(get_db),
) -> Any:
	definition = await SeasonDefinitionService(db).update(definition_id, payload)
	return {"data": SeasonDefinitionRead.model_validate(definition)}


@definitions_router.delete("/{definition_id}", response_model=DataResponse[SeasonDefinitionRead])
async def deactivate_season_definition(definition_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	definition = await SeasonDefinitionService(db).deactivate(definition_id)
	return {"data": SeasonDefinitionRead.model_validate(definition)}


# ── Seasons ─────────────────────────────────────────────────────────────────


@router.get("", response_model=PaginatedResponse[SeasonRead])
async def list_seasons(
	params: PageParams = Depends(),
	season_definition_id: int | None = None,
	year: int | None = None,
	search: str | None = None,
	db: AsyncSession = Depends(get_db),
) -> Any:
	page = await SeasonService(db).list(
		params.page,
		params.per_page,
		search=search,
		season_definition_id=season_definition_id,
		year=year,
	)
	return paginated(page, SeasonRead)


@router.post("", response_model=DataResponse[SeasonRead], status_code=status.HTTP_201_CREATED)
async def create_season(payload: SeasonCreate, db: AsyncSession = Depends(get_db)) -> Any:
	season = await SeasonService(db).create(payload)
	return {"data": SeasonRead.model_validate(season)}


@router.get("/current", response_model=DataResponse[SeasonRead | None])
async def current_season(db: AsyncSession = Depends(get_db)) -> Any:
	season = await SeasonService(db).current()
	return {"data": SeasonRead.model_validate(season) if season is not None else None}


@router.get("/year/{year}", response_model=DataResponse[list[SeasonRead]])
async def seasons_by_year(year: int, db: AsyncSession = Depends(get_db)) -> Any:
	seasons = await SeasonService(db).by_year(year)
	return {"data": [SeasonRead.model_validate(season) for season in seasons]}


@router.get("/{season_id}", response_model=DataResponse[SeasonRead])
async def get_season(season_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	season = await SeasonService(db).get(season_id)
	return {"data": SeasonRead.model_validate(season)}


@router.api_route("/{season_id}", methods=["PUT", "PATCH"], response_model=DataResponse[SeasonRead])
async def update_season(season_id: int, payload: SeasonUpdate, db: AsyncSession = Depends(get_db)) -> Any:
	season = await SeasonService(db).update(season_id, payload)
	return {"data": SeasonRead.model_validate(season)}


@router.delete("/{season_id}", response_model=MessageResponse)
async def delete_season(season_id: int, db: AsyncSession = Depends(get_db)) -> Any:
	await SeasonService(db).delete(season_id)
	return {"message": "Season deleted."}
