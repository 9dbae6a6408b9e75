from __future__ import annotations

from datetime import UTC, date, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from app.models.enums import CropCycleStatusEnum
from app.services.dashboard_service import DashboardService


def _status_rows(*pairs: tuple[str, int]) -> MagicMock:
    result = MagicMock()
    result.all.return_value = list(pairs)
    return result


async def test_statistics_fill_missing_statuses(fake_db_session: Any) -> None:
    fake_db_session.execute = AsyncMock(return_value=_status_rows(("active", 2), ("completed", 5)))
    # parcels total, active, busy; activities total, week, month
    fake_db_session.scalar = AsyncMock(side_effect=[4, 3, 2, 40, 6, None])

    stats = await DashboardService(fake_db_session).statistics()

    by_status = stats["crop_cycles"]["by_status"]
    assert set(by_status) == {status.value for status in CropCycleStatusEnum}
    assert by_status["abandoned"] == 0
    assert stats["crop_cycles"]["total"] == 7
    assert stats["land_parcels"] == {"total": 4, "active": 3, "with_active_cycles": 2}
    assert stats["activities"]["last_30_days"] == 0


async def test_dashboard_route_serializes_recent_activities(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    now = datetime.now(UTC)
    log = SimpleNamespace(
        id=5,
        activity_type_id=1,
        crop_cycle_id=None,
        land_parcel_id=2,
        water_source_id=None,
        activity_date=date(2026, 6, 2),
        start_time=None,
        end_time=None,
        description="Tưới nước",
        quantity_value=None,
        quantity_unit_id=None,
        cost_value=None,
        cost_unit_id=None,
        performed_by=None,
        weather_conditions=None,
        created_at=now,
        updated_at=now,
    )

    async def fake_summary(self: DashboardService) -> dict[str, Any]:
        return {
            "active_cycles": 2,
            "planned_cycles": 1,
            "overdue_cycles": 0,
            "active_land_parcels": 4,
            "recent_activities": [log],
        }

    monkeypatch.setattr(DashboardService, "summary", fake_summary)

    response = await client.get("/api/v1/dashboard")

    assert response.status_code == 200
    body = response.json()["data"]
    assert body["active_cycles"] == 2
    assert body["recent_activities"][0]["description"] == "Tưới nước"


async def test_dashboard_requires_auth(auth_client: AsyncClient) -> None:
    response = await auth_client.get("/api/v1/dashboard/statistics")

    assert response.status_code == 401
