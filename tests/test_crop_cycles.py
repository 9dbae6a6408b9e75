from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from pydantic import ValidationError
from sqlalchemy.dialects import postgresql

from app.errors import FieldValidationError, NotFoundError, StateConflictError
from app.models.crop_cycle import CropCycle
from app.models.enums import CropCycleStatusEnum
from app.schemas.crop_cycle import (
    CropCycleActivate,
    CropCycleComplete,
    CropCycleCreate,
    CropCycleTerminate,
    CropCycleUpdate,
)
from app.services.base import Page
from app.services.crop_cycle_service import CropCycleService


def _cycle(**overrides: Any) -> SimpleNamespace:
    now = datetime.now(UTC)
    values: dict[str, Any] = {
        "id": 10,
        "cycle_code": "DONG-TRUOC-01-2026-01",
        "land_parcel_id": 1,
        "crop_type_id": 2,
        "season_id": 3,
        "status": CropCycleStatusEnum.planned,
        "planned_start_date": date(2026, 1, 10),
        "planned_end_date": date(2026, 4, 30),
        "actual_start_date": None,
        "actual_end_date": None,
        "yield_value": None,
        "yield_unit_id": None,
        "quality_rating": None,
        "notes": None,
        "duration_days": 110,
        "is_overdue": False,
        "stages": [],
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    cycle = SimpleNamespace(**values)
    cycle.is_terminal = cycle.status in {
        CropCycleStatusEnum.completed,
        CropCycleStatusEnum.failed,
        CropCycleStatusEnum.abandoned,
    }
    return cycle


def _create_payload(**overrides: Any) -> CropCycleCreate:
    values: dict[str, Any] = {
        "land_parcel_id": 1,
        "crop_type_id": 2,
        "season_id": 3,
        "planned_start_date": date(2026, 5, 1),
        "planned_end_date": date(2026, 8, 31),
    }
    values.update(overrides)
    return CropCycleCreate(**values)


@pytest.fixture
def references(fake_db_session: Any) -> SimpleNamespace:
    parcel = SimpleNamespace(id=1, code="DONG-TRUOC-01", is_active=True)
    fake_db_session.get = AsyncMock(return_value=parcel)
    return parcel


# ── Service: planning ───────────────────────────────────────────────────────


async def test_create_rejects_end_not_after_start(fake_db_session: Any, references: Any) -> None:
    service = CropCycleService(fake_db_session)
    payload = _create_payload(planned_start_date=date(2026, 5, 1), planned_end_date=date(2026, 5, 1))

    with pytest.raises(FieldValidationError) as exc_info:
        await service.create(payload)

    assert "planned_end_date" in exc_info.value.errors
    fake_db_session.add.assert_not_called()


async def test_create_rejects_inactive_references(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=SimpleNamespace(id=1, code="X", is_active=False))
    service = CropCycleService(fake_db_session)

    with pytest.raises(FieldValidationError) as exc_info:
        await service.create(_create_payload())

    assert set(exc_info.value.errors) == {"land_parcel_id", "crop_type_id", "season_id"}


async def test_create_rejects_overlapping_open_cycle(
    fake_db_session: Any, references: Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    existing = _cycle(status=CropCycleStatusEnum.active)

    async def fake_overlap(self: CropCycleService, *_args: Any, **_kwargs: Any) -> Any:
        return existing

    monkeypatch.setattr(CropCycleService, "find_overlapping", fake_overlap)

    with pytest.raises(FieldValidationError) as exc_info:
        await CropCycleService(fake_db_session).create(_create_payload())

    message = exc_info.value.errors["land_parcel_id"][0]
    assert existing.cycle_code in message
    fake_db_session.add.assert_not_called()


async def test_create_generates_parcel_year_code(
    fake_db_session: Any, references: Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def no_overlap(self: CropCycleService, *_args: Any, **_kwargs: Any) -> None:
        return None

    monkeypatch.setattr(CropCycleService, "find_overlapping", no_overlap)
    # count of codes with the parcel/year prefix, then uniqueness probe
    fake_db_session.scalar = AsyncMock(side_effect=[2, None])

    cycle = await CropCycleService(fake_db_session).create(_create_payload(notes="Vụ Hè-Thu"))

    assert isinstance(cycle, CropCycle)
    assert cycle.cycle_code == "DONG-TRUOC-01-2026-03"
    assert cycle.status == CropCycleStatusEnum.planned
    fake_db_session.add.assert_called_once_with(cycle)
    fake_db_session.flush.assert_awaited()


async def test_create_rejects_taken_cycle_code(fake_db_session: Any, references: Any) -> None:
    fake_db_session.scalar = AsyncMock(return_value=99)

    with pytest.raises(FieldValidationError) as exc_info:
        await CropCycleService(fake_db_session).create(_create_payload(cycle_code="TAKEN"))

    assert "cycle_code" in exc_info.value.errors


async def test_update_rejects_terminal_cycle(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=_cycle(status=CropCycleStatusEnum.completed))

    with pytest.raises(StateConflictError) as exc_info:
        await CropCycleService(fake_db_session).update(10, CropCycleUpdate(notes="late"))

    assert "status" in exc_info.value.errors


async def test_update_with_empty_payload_is_noop(fake_db_session: Any) -> None:
    cycle = _cycle()
    fake_db_session.get = AsyncMock(return_value=cycle)

    result = await CropCycleService(fake_db_session).update(10, CropCycleUpdate())

    assert result is cycle
    fake_db_session.flush.assert_not_awaited()


async def test_update_overlap_is_reported_on_start_date(
    fake_db_session: Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    cycle = _cycle()
    fake_db_session.get = AsyncMock(return_value=cycle)
    seen: dict[str, Any] = {}

    async def fake_overlap(self: CropCycleService, parcel_id: int, start: date, end: date, exclude_id: int | None = None) -> Any:
        seen["exclude_id"] = exclude_id
        return _cycle(id=11, cycle_code="OTHER")

    monkeypatch.setattr(CropCycleService, "find_overlapping", fake_overlap)

    with pytest.raises(FieldValidationError) as exc_info:
        await CropCycleService(fake_db_session).update(10, CropCycleUpdate(planned_end_date=date(2026, 6, 1)))

    assert "planned_start_date" in exc_info.value.errors
    assert seen["exclude_id"] == cycle.id


async def test_overlap_query_matches_open_cycles_with_inclusive_bounds(fake_db_session: Any) -> None:
    fake_db_session.scalar = AsyncMock(return_value=None)
    start, end = date(2026, 3, 1), date(2026, 6, 30)

    found = await CropCycleService(fake_db_session).find_overlapping(2, start, end, exclude_id=10)

    assert found is None
    stmt = fake_db_session.scalar.await_args.args[0]
    compiled = stmt.compile(dialect=postgresql.dialect())
    sql = str(compiled)
    assert "crop_cycles.land_parcel_id = %(land_parcel_id_1)s" in sql
    assert "crop_cycles.status IN (__[POSTCOMPILE_status_1])" in sql
    assert "crop_cycles.planned_start_date <= %(planned_start_date_1)s" in sql
    assert "crop_cycles.planned_end_date >= %(planned_end_date_1)s" in sql
    assert "crop_cycles.id != %(id_1)s" in sql
    assert compiled.params["land_parcel_id_1"] == 2
    assert set(compiled.params["status_1"]) == {CropCycleStatusEnum.planned, CropCycleStatusEnum.active}
    assert compiled.params["planned_start_date_1"] == end
    assert compiled.params["planned_end_date_1"] == start
    assert compiled.params["id_1"] == 10


async def test_overlap_query_without_exclusion(fake_db_session: Any) -> None:
    fake_db_session.scalar = AsyncMock(return_value=None)

    await CropCycleService(fake_db_session).find_overlapping(2, date(2026, 3, 1), date(2026, 6, 30))

    sql = str(fake_db_session.scalar.await_args.args[0].compile(dialect=postgresql.dialect()))
    assert "crop_cycles.id !=" not in sql


async def test_delete_only_planned(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=_cycle(status=CropCycleStatusEnum.active))

    with pytest.raises(StateConflictError):
        await CropCycleService(fake_db_session).delete(10)

    fake_db_session.delete.assert_not_awaited()


# ── Service: lifecycle ──────────────────────────────────────────────────────


async def test_activate_sets_actual_start_and_appends_notes(fake_db_session: Any) -> None:
    cycle = _cycle(notes="Giống ST25")
    fake_db_session.get = AsyncMock(return_value=cycle)

    result = await CropCycleService(fake_db_session).activate(10, CropCycleActivate(notes="Đã cấy"))

    assert result.status == CropCycleStatusEnum.active
    assert result.actual_start_date == date.today()
    assert result.notes == "Giống ST25\nĐã cấy"


@pytest.mark.parametrize(
    "status",
    [CropCycleStatusEnum.active, CropCycleStatusEnum.completed, CropCycleStatusEnum.abandoned],
)
async def test_activate_requires_planned(fake_db_session: Any, status: CropCycleStatusEnum) -> None:
    fake_db_session.get = AsyncMock(return_value=_cycle(status=status))

    with pytest.raises(StateConflictError) as exc_info:
        await CropCycleService(fake_db_session).activate(10)

    assert "planned" in exc_info.value.message


async def test_complete_requires_active(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=_cycle(status=CropCycleStatusEnum.planned))

    with pytest.raises(StateConflictError):
        await CropCycleService(fake_db_session).complete(10, CropCycleComplete())


async def test_complete_records_yield(fake_db_session: Any) -> None:
    cycle = _cycle(status=CropCycleStatusEnum.active, actual_start_date=date.today() - timedelta(days=100))
    unit = SimpleNamespace(id=5, is_active=True)

    async def fake_get(model: Any, record_id: int) -> Any:
        return cycle if model is CropCycle else unit

    fake_db_session.get = AsyncMock(side_effect=fake_get)
    payload = CropCycleComplete(yield_value=Decimal("1250.50"), yield_unit_id=5, quality_rating="good")

    result = await CropCycleService(fake_db_session).complete(10, payload)

    assert result.status == CropCycleStatusEnum.completed
    assert result.actual_end_date == date.today()
    assert result.yield_value == Decimal("1250.50")
    assert result.quality_rating == "good"


async def test_complete_rejects_end_before_actual_start(fake_db_session: Any) -> None:
    cycle = _cycle(status=CropCycleStatusEnum.active, actual_start_date=date(2026, 3, 1))
    fake_db_session.get = AsyncMock(return_value=cycle)

    with pytest.raises(FieldValidationError) as exc_info:
        await CropCycleService(fake_db_session).complete(10, CropCycleComplete(actual_end_date=date(2026, 2, 1)))

    assert "actual_end_date" in exc_info.value.errors
    assert cycle.status == CropCycleStatusEnum.active


def test_complete_schema_bounds_yield() -> None:
    with pytest.raises(ValidationError):
        CropCycleComplete(yield_value=Decimal("-1"))
    with pytest.raises(ValidationError):
        CropCycleComplete(yield_value=Decimal("1000000"))


def test_terminate_requires_non_blank_reason() -> None:
    with pytest.raises(ValidationError):
        CropCycleTerminate(reason="   ")
    with pytest.raises(ValidationError):
        CropCycleTerminate.model_validate({})


async def test_abandon_appends_reason_from_planned(fake_db_session: Any) -> None:
    cycle = _cycle(notes="Kế hoạch")
    fake_db_session.get = AsyncMock(return_value=cycle)

    result = await CropCycleService(fake_db_session).abandon(10, CropCycleTerminate(reason="Thiếu nước"))

    assert result.status == CropCycleStatusEnum.abandoned
    assert result.actual_end_date == date.today()
    assert result.notes == "Kế hoạch\nAbandoned: Thiếu nước"


async def test_fail_rejected_once_terminal(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=_cycle(status=CropCycleStatusEnum.failed))

    with pytest.raises(StateConflictError):
        await CropCycleService(fake_db_session).fail(10, CropCycleTerminate(reason="Sâu bệnh"))


# ── Routes ──────────────────────────────────────────────────────────────────


async def test_get_crop_cycle_envelope(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_get(self: CropCycleService, cycle_id: int) -> Any:
        return _cycle(id=cycle_id)

    monkeypatch.setattr(CropCycleService, "get", fake_get)

    response = await client.get("/api/v1/crop-cycles/10")

    assert response.status_code == 200
    body = response.json()["data"]
    assert body["id"] == 10
    assert body["status"] == "planned"
    assert body["stages"] == []


async def test_missing_crop_cycle_returns_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_get(self: CropCycleService, cycle_id: int) -> Any:
        raise NotFoundError(f"Crop cycle {cycle_id} not found")

    monkeypatch.setattr(CropCycleService, "get", fake_get)

    response = await client.get("/api/v1/crop-cycles/999")

    assert response.status_code == 404
    assert response.json()["message"] == "Crop cycle 999 not found"


async def test_list_crop_cycles_paginates(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}

    async def fake_list(self: CropCycleService, page: int = 1, per_page: int | None = None, **filters: Any) -> Any:
        captured.update(filters)
        return Page(items=[_cycle()], total=16, page=2, per_page=15)

    monkeypatch.setattr(CropCycleService, "list", fake_list)

    response = await client.get("/api/v1/crop-cycles", params={"page": 2, "status": "active", "sort_order": "asc"})

    assert response.status_code == 200
    meta = response.json()["meta"]
    assert meta == {"current_page": 2, "last_page": 2, "per_page": 15, "total": 16, "from": 16, "to": 16}
    assert captured["status"] == CropCycleStatusEnum.active
    assert captured["descending"] is False


async def test_create_crop_cycle_validation_errors_keyed_by_field(client: AsyncClient) -> None:
    response = await client.post("/api/v1/crop-cycles", json={"land_parcel_id": 1})

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert {"crop_type_id", "season_id", "planned_start_date", "planned_end_date"} <= set(errors)


async def test_activate_wrong_status_returns_422(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_activate(self: CropCycleService, cycle_id: int, payload: Any = None) -> Any:
        raise StateConflictError("Cannot activate a completed crop cycle; it must be planned.")

    monkeypatch.setattr(CropCycleService, "activate", fake_activate)

    response = await client.post("/api/v1/crop-cycles/10/activate")

    assert response.status_code == 422
    body = response.json()
    assert body["errors"]["status"] == ["Cannot activate a completed crop cycle; it must be planned."]


async def test_fail_without_reason_returns_422(client: AsyncClient) -> None:
    response = await client.post("/api/v1/crop-cycles/10/fail", json={})

    assert response.status_code == 422
    assert "reason" in response.json()["errors"]
