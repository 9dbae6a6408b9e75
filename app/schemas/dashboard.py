"""Dashboard summary and statistics payloads."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.activity import ActivityLogRead


class DashboardSummary(BaseModel):
	active_cycles: int
	planned_cycles: int
	overdue_cycles: int
	active_land_parcels: int
	recent_activities: list[ActivityLogRead] = Field(default_factory=list)


class CycleTotals(BaseModel):
	total: int
	by_status: dict[str, int]


class ParcelTotals(BaseModel):
	total: int
	active: int
	with_active_cycles: int


class ActivityTotals(BaseModel):
	total: int
	last_7_days: int
	last_30_days: int


class DashboardStatistics(BaseModel):
	crop_cycles: CycleTotals
	land_parcels: ParcelTotals
	activities: ActivityTotals
