from __future__ import annotations

from datetime import UTC, date, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from app.errors import FieldValidationError, StateConflictError
from app.models.crop_cycle import CropCycleStage
from app.models.enums import CropCycleStatusEnum, StageStatusEnum
from app.schemas.crop_cycle import StageComplete, StageCreate, StageUpdate
from app.services.stage_service import CropCycleStageService


def _cycle(status: CropCycleStatusEnum = CropCycleStatusEnum.active) -> SimpleNamespace:
    return SimpleNamespace(
        id=10,
        status=status,
        is_terminal=status
        in {CropCycleStatusEnum.completed, CropCycleStatusEnum.failed, CropCycleStatusEnum.abandoned},
    )


def _stage(**overrides: Any) -> SimpleNamespace:
    now = datetime.now(UTC)
    values: dict[str, Any] = {
        "id": 7,
        "crop_cycle_id": 10,
        "stage_name": "Gieo mạ",
        "sequence_order": 2,
        "planned_start_date": None,
        "planned_end_date": None,
        "actual_start_date": None,
        "actual_end_date": None,
        "status": StageStatusEnum.pending,
        "notes": None,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _wire(session: Any, stage: Any, cycle: Any) -> None:
    async def fake_get(model: Any, record_id: int) -> Any:
        return stage if model is CropCycleStage else cycle

    session.get = AsyncMock(side_effect=fake_get)


async def test_add_stage_rejects_duplicate_sequence(fake_db_session: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    fake_db_session.get = AsyncMock(return_value=_cycle())

    async def taken(self: CropCycleStageService, *_args: Any, **_kwargs: Any) -> bool:
        return True

    monkeypatch.setattr(CropCycleStageService, "_sequence_taken", taken)

    with pytest.raises(FieldValidationError) as exc_info:
        await CropCycleStageService(fake_db_session).add_stage(10, StageCreate(stage_name="Cấy", sequence_order=2))

    assert "sequence_order" in exc_info.value.errors
    fake_db_session.add.assert_not_called()


async def test_add_stage_to_terminal_cycle_rejected(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=_cycle(CropCycleStatusEnum.completed))

    with pytest.raises(StateConflictError) as exc_info:
        await CropCycleStageService(fake_db_session).add_stage(10, StageCreate(stage_name="Cấy", sequence_order=1))

    assert "crop_cycle_id" in exc_info.value.errors


async def test_add_stage_starts_pending(fake_db_session: Any) -> None:
    fake_db_session.get = AsyncMock(return_value=_cycle(CropCycleStatusEnum.planned))
    fake_db_session.scalar = AsyncMock(return_value=None)

    stage = await CropCycleStageService(fake_db_session).add_stage(
        10,
        StageCreate(
            stage_name="Làm đất",
            sequence_order=1,
            planned_start_date=date(2026, 5, 1),
            planned_end_date=date(2026, 5, 10),
        ),
    )

    assert stage.status == StageStatusEnum.pending
    assert stage.crop_cycle_id == 10
    fake_db_session.add.assert_called_once_with(stage)


async def test_update_keeping_own_sequence_skips_duplicate_check(
    fake_db_session: Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    stage = _stage(sequence_order=2)
    _wire(fake_db_session, stage, _cycle())

    async def must_not_run(self: CropCycleStageService, *_args: Any, **_kwargs: Any) -> bool:
        raise AssertionError("sequence check should not run for an unchanged order")

    monkeypatch.setattr(CropCycleStageService, "_sequence_taken", must_not_run)

    result = await CropCycleStageService(fake_db_session).update_stage(
        7, StageUpdate(stage_name="Gieo mạ sớm", sequence_order=2)
    )

    assert result.stage_name == "Gieo mạ sớm"


async def test_update_completed_stage_rejected(fake_db_session: Any) -> None:
    _wire(fake_db_session, _stage(status=StageStatusEnum.completed), _cycle())

    with pytest.raises(StateConflictError):
        await CropCycleStageService(fake_db_session).update_stage(7, StageUpdate(notes="x"))


async def test_start_stage_on_planned_cycle_rejected(fake_db_session: Any) -> None:
    _wire(fake_db_session, _stage(), _cycle(CropCycleStatusEnum.planned))

    with pytest.raises(StateConflictError) as exc_info:
        await CropCycleStageService(fake_db_session).start_stage(7)

    assert "crop_cycle_id" in exc_info.value.errors


async def test_start_then_complete_stage(fake_db_session: Any) -> None:
    stage = _stage()
    _wire(fake_db_session, stage, _cycle())
    service = CropCycleStageService(fake_db_session)

    await service.start_stage(7)
    assert stage.status == StageStatusEnum.in_progress
    assert stage.actual_start_date == date.today()

    await service.complete_stage(7, StageComplete(notes="Xong"))
    assert stage.status == StageStatusEnum.completed
    assert stage.actual_end_date == date.today()
    assert stage.notes == "Xong"


async def test_complete_stage_end_before_start_rejected(fake_db_session: Any) -> None:
    stage = _stage(status=StageStatusEnum.in_progress, actual_start_date=date(2026, 6, 1))
    _wire(fake_db_session, stage, _cycle())

    with pytest.raises(FieldValidationError) as exc_info:
        await CropCycleStageService(fake_db_session).complete_stage(7, StageComplete(actual_end_date=date(2026, 5, 1)))

    assert "actual_end_date" in exc_info.value.errors


async def test_skip_requires_pending(fake_db_session: Any) -> None:
    _wire(fake_db_session, _stage(status=StageStatusEnum.in_progress), _cycle())

    with pytest.raises(StateConflictError):
        await CropCycleStageService(fake_db_session).skip_stage(7)


async def test_stage_start_route(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_start(self: CropCycleStageService, stage_id: int, payload: Any = None) -> Any:
        return _stage(id=stage_id, status=StageStatusEnum.in_progress, actual_start_date=date(2026, 6, 1))

    monkeypatch.setattr(CropCycleStageService, "start_stage", fake_start)

    response = await client.post("/api/v1/crop-cycle-stages/7/start")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "in_progress"


async def test_add_stage_route_rejects_out_of_range_sequence(client: AsyncClient) -> None:
    response = await client.post("/api/v1/crop-cycles/10/stages", json={"stage_name": "Cấy", "sequence_order": 21})

    assert response.status_code == 422
    assert "sequence_order" in response.json()["errors"]


async def test_start_stage_waits_for_previous_stage(fake_db_session: Any) -> None:
    stage = _stage(sequence_order=2)
    _wire(fake_db_session, stage, _cycle())
    fake_db_session.scalar = AsyncMock(return_value=_stage(id=6, stage_name="Làm đất", sequence_order=1))

    with pytest.raises(StateConflictError) as exc_info:
        await CropCycleStageService(fake_db_session).start_stage(7)

    assert "sequence_order" in exc_info.value.errors
    assert stage.status == StageStatusEnum.pending


@pytest.mark.parametrize("previous_status", [StageStatusEnum.completed, StageStatusEnum.skipped])
async def test_start_stage_after_settled_previous_stage(
    fake_db_session: Any, previous_status: StageStatusEnum
) -> None:
    stage = _stage(sequence_order=2)
    _wire(fake_db_session, stage, _cycle())
    fake_db_session.scalar = AsyncMock(return_value=_stage(id=6, sequence_order=1, status=previous_status))

    await CropCycleStageService(fake_db_session).start_stage(7)

    assert stage.status == StageStatusEnum.in_progress


async def test_update_skipped_stage_rejected(fake_db_session: Any) -> None:
    stage = _stage(status=StageStatusEnum.skipped)
    _wire(fake_db_session, stage, _cycle())

    with pytest.raises(StateConflictError) as exc_info:
        await CropCycleStageService(fake_db_session).update_stage(7, StageUpdate(stage_name="Gieo mạ lại"))

    assert "status" in exc_info.value.errors
    assert stage.stage_name == "Gieo mạ"
