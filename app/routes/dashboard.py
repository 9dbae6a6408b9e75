"""Dashboard routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.schemas.activity import ActivityLogRead
from app.schemas.common import DataResponse
from app.schemas.dashboard import DashboardStatistics, DashboardSummary
from app.services.dashboard_service import DashboardService

router = APIRouter(
	prefix="/dashboard",
	tags=["dashboard"],
	dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=DataResponse[DashboardSummary])
async def dashboard_summary(db: AsyncSession = Depends(get_db)) -> Any:
	summary = await DashboardService(db).summary()
	summary["recent_activities"] = [ActivityLogRead.model_validate(log) for log in summary["recent_activities"]]
	return {"data": summary}


@router.get("/statistics", response_model=DataResponse[DashboardStatistics])
async def dashboard_statistics(db: AsyncSession = Depends(get_db)) -> Any:
	return {"data": await DashboardService(db).statistics()}
