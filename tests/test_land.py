from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from geoalchemy2.elements import WKTElement
from httpx import AsyncClient

from app.errors import FieldValidationError, NotFoundError, StateConflictError
from app.models.catalog import UnitOfMeasure
from app.models.enums import LandTypeEnum, UnitTypeEnum, WaterAccessibilityEnum
from app.models.land import LandParcel
from app.schemas.land import LandParcelCreate, WaterSourceAttach
from app.services.land_service import LandParcelService, geo_point


def _parcel(**overrides: Any) -> SimpleNamespace:
    now = datetime.now(UTC)
    values: dict[str, Any] = {
        "id": 1,
        "name": "Ruộng Đồng Trước",
        "code": "DONG-TRUOC-01",
        "description": None,
        "land_type": LandTypeEnum.rice_field,
        "area_value": Decimal("3"),
        "area_unit_id": 2,
        "terrain_type": None,
        "soil_type": None,
        "latitude": 16.75,
        "longitude": 106.8,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_geo_point_orders_longitude_first() -> None:
    point = geo_point(16.75, 106.8)

    assert isinstance(point, WKTElement)
    assert point.data == "POINT(106.8 16.75)"
    assert geo_point(None, 106.8) is None


async def test_create_parcel_requires_area_unit(fake_db_session: Any) -> None:
    weight = SimpleNamespace(id=3, unit_type=UnitTypeEnum.weight, is_active=True)
    fake_db_session.get = AsyncMock(return_value=weight)
    payload = LandParcelCreate(name="Vườn", land_type="garden", area_value=Decimal("500"), area_unit_id=3)

    with pytest.raises(FieldValidationError) as exc_info:
        await LandParcelService(fake_db_session).create(payload)

    assert "area_unit_id" in exc_info.value.errors


async def test_create_parcel_sets_location_and_code(fake_db_session: Any) -> None:
    area = SimpleNamespace(id=1, unit_type=UnitTypeEnum.area, is_active=True)

    async def fake_get(model: Any, record_id: int) -> Any:
        return area if model is UnitOfMeasure else None

    fake_db_session.get = AsyncMock(side_effect=fake_get)
    fake_db_session.scalar = AsyncMock(side_effect=[0, None])
    payload = LandParcelCreate(
        name="Ao cá",
        land_type="fish_pond",
        area_value=Decimal("200"),
        area_unit_id=1,
        latitude=16.7508,
        longitude=106.8002,
    )

    parcel = await LandParcelService(fake_db_session).create(payload)

    assert isinstance(parcel, LandParcel)
    assert parcel.code == "LD-0001"
    assert parcel.location.data == "POINT(106.8002 16.7508)"


async def test_deactivate_refused_with_active_cycle(fake_db_session: Any) -> None:
    parcel = _parcel()
    fake_db_session.get = AsyncMock(return_value=parcel)
    fake_db_session.scalar = AsyncMock(return_value=1)

    with pytest.raises(StateConflictError):
        await LandParcelService(fake_db_session).deactivate(1)

    assert parcel.is_active is True


async def test_attach_duplicate_water_source_rejected(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=SimpleNamespace(id=1, is_active=True))
    fake_db_session.scalar = AsyncMock(return_value=42)

    with pytest.raises(FieldValidationError) as exc_info:
        await LandParcelService(fake_db_session).attach_water_source(
            1, WaterSourceAttach(water_source_id=1, accessibility=WaterAccessibilityEnum.pumped)
        )

    assert "water_source_id" in exc_info.value.errors


async def test_detach_missing_link_is_not_found(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=_parcel())
    fake_db_session.scalar = AsyncMock(return_value=None)

    with pytest.raises(NotFoundError):
        await LandParcelService(fake_db_session).detach_water_source(1, 9)


async def test_parcel_statistics_route(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_statistics(self: LandParcelService, parcel_id: int) -> Any:
        return {
            "land_parcel_id": parcel_id,
            "total_cycles": 3,
            "planned_cycles": 1,
            "active_cycles": 1,
            "completed_cycles": 1,
            "failed_cycles": 0,
            "abandoned_cycles": 0,
            "average_yield": 1800.5,
        }

    monkeypatch.setattr(LandParcelService, "statistics", fake_statistics)

    response = await client.get("/api/v1/land-parcels/1/statistics")

    assert response.status_code == 200
    assert response.json()["data"]["average_yield"] == 1800.5


async def test_create_parcel_route_rejects_zero_area(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/land-parcels",
        json={"name": "Vườn", "land_type": "garden", "area_value": 0, "area_unit_id": 1},
    )

    assert response.status_code == 422
    assert "area_value" in response.json()["errors"]
