"""Dashboard read models: counts across cycles, parcels and activities."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from sqlalchemy import func, select

from app.models.activity import ActivityLog
from app.models.crop_cycle import CropCycle
from app.models.enums import CropCycleStatusEnum
from app.models.land import LandParcel
from app.services.base import ServiceBase

_RECENT_LIMIT = 10


class DashboardService(ServiceBase):
	async def summary(self) -> dict[str, Any]:
		counts = await self._cycle_counts()
		overdue = await self.db.scalar(
			select(func.count())
			.select_from(CropCycle)
			.where(
				CropCycle.status == CropCycleStatusEnum.active,
				CropCycle.planned_end_date < date.today(),
			)
		)
		active_parcels = await self.db.scalar(
			select(func.count()).select_from(LandParcel).where(LandParcel.is_active.is_(True))
		)
		recent = await self._all(
			select(ActivityLog)
			.order_by(ActivityLog.activity_date.desc(), ActivityLog.id.desc())
			.limit(_RECENT_LIMIT)
		)
		return {
			"active_cycles": counts.get(CropCycleStatusEnum.active.value, 0),
			"planned_cycles": counts.get(CropCycleStatusEnum.planned.value, 0),
			"overdue_cycles": int(overdue or 0),
			"active_land_parcels": int(active_parcels or 0),
			"recent_activities": recent,
		}

	async def statistics(self) -> dict[str, Any]:
		counts = await self._cycle_counts()
		today = date.today()

		parcels_total = await self.db.scalar(select(func.count()).select_from(LandParcel))
		parcels_active = await self.db.scalar(
			select(func.count()).select_from(LandParcel).where(LandParcel.is_active.is_(True))
		)
		parcels_busy = await self.db.scalar(
			select(func.count(func.distinct(CropCycle.land_parcel_id))).where(
				CropCycle.status == CropCycleStatusEnum.active
			)
		)

		activities_total = await self.db.scalar(select(func.count()).select_from(ActivityLog))
		activities_week = await self.db.scalar(
			select(func.count()).select_from(ActivityLog).where(ActivityLog.activity_date >= today - timedelta(days=7))
		)
		activities_month = await self.db.scalar(
			select(func.count()).select_from(ActivityLog).where(ActivityLog.activity_date >= today - timedelta(days=30))
		)

		return {
			"crop_cycles": {"total": sum(counts.values()), "by_status": counts},
			"land_parcels": {
				"total": int(parcels_total or 0),
				"active": int(parcels_active or 0),
				"with_active_cycles": int(parcels_busy or 0),
			},
			"activities": {
				"total": int(activities_total or 0),
				"last_7_days": int(activities_week or 0),
				"last_30_days": int(activities_month or 0),
			},
		}

	async def _cycle_counts(self) -> dict[str, int]:
		rows = await self.db.execute(select(CropCycle.status, func.count()).group_by(CropCycle.status))
		counts = {status.value: 0 for status in CropCycleStatusEnum}
		for status, total in rows.all():
			counts[CropCycleStatusEnum(status).value] = int(total)
		return counts
