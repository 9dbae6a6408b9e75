from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from app.errors import FieldValidationError, StateConflictError
from app.models.catalog import Season
from app.models.enums import UnitTypeEnum
from app.schemas.catalog import ActivityTypeCreate, SeasonCreate
from app.services.catalog_service import (
    ActivityTypeService,
    SeasonService,
    UnitOfMeasureService,
)

_UNITS = {
    1: SimpleNamespace(id=1, abbreviation="m²", unit_type=UnitTypeEnum.area, conversion_factor_to_base=Decimal("1")),
    2: SimpleNamespace(id=2, abbreviation="sào", unit_type=UnitTypeEnum.area, conversion_factor_to_base=Decimal("360")),
    3: SimpleNamespace(id=3, abbreviation="kg", unit_type=UnitTypeEnum.weight, conversion_factor_to_base=Decimal("1")),
    4: SimpleNamespace(id=4, abbreviation="tạ", unit_type=UnitTypeEnum.weight, conversion_factor_to_base=Decimal("100")),
}


@pytest.fixture
def units(fake_db_session: Any) -> dict[int, Any]:
    async def fake_get(_model: Any, record_id: int) -> Any:
        return _UNITS.get(record_id)

    fake_db_session.get = AsyncMock(side_effect=fake_get)
    return _UNITS


async def test_convert_sao_to_square_metres(fake_db_session: Any, units: Any) -> None:
    result = await UnitOfMeasureService(fake_db_session).convert(Decimal("2.5"), 2, 1)

    assert result["result"] == 900.0
    assert result["from_abbreviation"] == "sào"


async def test_convert_weight_down_to_base(fake_db_session: Any, units: Any) -> None:
    result = await UnitOfMeasureService(fake_db_session).convert(Decimal("3"), 4, 3)

    assert result["result"] == 300.0


async def test_convert_across_unit_types_rejected(fake_db_session: Any, units: Any) -> None:
    with pytest.raises(FieldValidationError) as exc_info:
        await UnitOfMeasureService(fake_db_session).convert(Decimal("1"), 2, 3)

    assert "to_unit_id" in exc_info.value.errors


async def test_convert_unknown_unit_rejected(fake_db_session: Any, units: Any) -> None:
    with pytest.raises(FieldValidationError) as exc_info:
        await UnitOfMeasureService(fake_db_session).convert(Decimal("1"), 99, 1)

    assert "from_unit_id" in exc_info.value.errors


async def test_generate_code_skips_taken_codes(fake_db_session: Any) -> None:
    # row count, then AT-0005 taken, then AT-0006 free
    fake_db_session.scalar = AsyncMock(side_effect=[4, 17, None])

    code = await ActivityTypeService(fake_db_session).generate_code()

    assert code == "AT-0006"


async def test_create_with_taken_code_rejected(fake_db_session: Any) -> None:
    fake_db_session.scalar = AsyncMock(return_value=1)
    payload = ActivityTypeCreate(name="Cày đất", code="CAY-DAT", category="land_preparation")

    with pytest.raises(FieldValidationError) as exc_info:
        await ActivityTypeService(fake_db_session).create(payload)

    assert "code" in exc_info.value.errors


async def test_season_code_derived_from_definition(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=SimpleNamespace(id=2, code="HE-THU", is_active=True))
    fake_db_session.scalar = AsyncMock(return_value=None)

    season = await SeasonService(fake_db_session).create(SeasonCreate(season_definition_id=2, year=2026))

    assert isinstance(season, Season)
    assert season.code == "HE-THU-2026"


async def test_season_requires_active_definition(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=SimpleNamespace(id=2, code="HE-THU", is_active=False))

    with pytest.raises(FieldValidationError) as exc_info:
        await SeasonService(fake_db_session).create(SeasonCreate(season_definition_id=2, year=2026))

    assert "season_definition_id" in exc_info.value.errors


async def test_season_delete_refused_while_referenced(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=SimpleNamespace(id=5))
    fake_db_session.scalar = AsyncMock(return_value=2)

    with pytest.raises(StateConflictError) as exc_info:
        await SeasonService(fake_db_session).delete(5)

    assert "season" in exc_info.value.errors
    fake_db_session.delete.assert_not_awaited()


async def test_invalid_activity_category_returns_422(client: AsyncClient) -> None:
    response = await client.get("/api/v1/activity-types/category/not-a-category")

    assert response.status_code == 422
    assert "category" in response.json()["errors"]


async def test_convert_route(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_convert(self: UnitOfMeasureService, value: Decimal, from_unit_id: int, to_unit_id: int) -> Any:
        return {
            "value": float(value),
            "from_unit_id": from_unit_id,
            "to_unit_id": to_unit_id,
            "result": 720.0,
            "from_abbreviation": "sào",
            "to_abbreviation": "m²",
        }

    monkeypatch.setattr(UnitOfMeasureService, "convert", fake_convert)

    response = await client.get("/api/v1/units-of-measure/convert", params={"value": 2, "from_unit_id": 2, "to_unit_id": 1})

    assert response.status_code == 200
    assert response.json()["data"]["result"] == 720.0


async def test_units_by_type_route(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    now = datetime.now(UTC)

    async def fake_by_type(self: UnitOfMeasureService, unit_type: UnitTypeEnum) -> Any:
        return [
            SimpleNamespace(
                id=1,
                name="Mét vuông",
                abbreviation="m²",
                unit_type=unit_type,
                conversion_factor_to_base=Decimal("1"),
                is_base_unit=True,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
        ]

    monkeypatch.setattr(UnitOfMeasureService, "by_type", fake_by_type)

    response = await client.get("/api/v1/units-of-measure/type/area")

    assert response.status_code == 200
    assert response.json()["data"][0]["abbreviation"] == "m²"


async def test_create_activity_type_route_validates_category(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    now = datetime.now(UTC)

    async def fake_create(self: ActivityTypeService, payload: ActivityTypeCreate) -> Any:
        return SimpleNamespace(
            id=27,
            name=payload.name,
            code="AT-0027",
            category=payload.category,
            description=payload.description,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

    monkeypatch.setattr(ActivityTypeService, "create", fake_create)

    rejected = await client.post("/api/v1/activity-types", json={"name": "Tưới rãnh", "category": "invalid_category"})
    assert rejected.status_code == 422
    assert "category" in rejected.json()["errors"]

    created = await client.post("/api/v1/activity-types", json={"name": "Tưới rãnh", "category": "irrigation"})
    assert created.status_code == 201
    assert created.json()["data"]["category"] == "irrigation"
