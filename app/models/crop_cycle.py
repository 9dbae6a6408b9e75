"""Crop cycles and their ordered stages.

A crop cycle ties one land parcel, one crop type and one season together
and moves through ``planned → active → completed | failed | abandoned``.
Stages belong exclusively to their cycle and are removed with it.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, IntegerPrimaryKeyMixin, TimestampMixin, pg_enum
from app.models.enums import (
    TERMINAL_CYCLE_STATUSES,
    CropCycleStatusEnum,
    QualityRatingEnum,
    StageStatusEnum,
)


class CropCycle(Base, IntegerPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "crop_cycles"
    __table_args__ = (
        CheckConstraint(
            "planned_end_date > planned_start_date",
            name="ck_crop_cycles_planned_order",
        ),
        CheckConstraint(
            "yield_value IS NULL OR yield_value >= 0",
            name="ck_crop_cycles_yield_non_negative",
        ),
        Index(
            "ix_crop_cycles_parcel_status_dates",
            "land_parcel_id",
            "status",
            "planned_start_date",
            "planned_end_date",
        ),
    )

    cycle_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    land_parcel_id: Mapped[int] = mapped_column(
        ForeignKey("land_parcels.id", ondelete="RESTRICT"), nullable=False
    )
    crop_type_id: Mapped[int] = mapped_column(
        ForeignKey("crop_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    season_id: Mapped[int] = mapped_column(
        ForeignKey("seasons.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status: Mapped[CropCycleStatusEnum] = mapped_column(
        pg_enum(CropCycleStatusEnum, "crop_cycle_status"),
        nullable=False,
        default=CropCycleStatusEnum.planned,
        server_default=CropCycleStatusEnum.planned.value,
        index=True,
    )
    planned_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    planned_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    actual_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    yield_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    yield_unit_id: Mapped[int | None] = mapped_column(
        ForeignKey("units_of_measure.id", ondelete="SET NULL"), nullable=True
    )
    quality_rating: Mapped[QualityRatingEnum | None] = mapped_column(
        pg_enum(QualityRatingEnum, "quality_rating"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    stages: Mapped[list[CropCycleStage]] = relationship(
        back_populates="crop_cycle",
        cascade="all, delete-orphan",
        order_by="CropCycleStage.sequence_order",
        lazy="selectin",
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_CYCLE_STATUSES

    @property
    def duration_days(self) -> int | None:
        start = self.actual_start_date or self.planned_start_date
        if self.actual_end_date is not None:
            end = self.actual_end_date
        elif self.status == CropCycleStatusEnum.active:
            end = date.today()
        else:
            end = self.planned_end_date
        if start is None or end is None:
            return None
        return (end - start).days

    @property
    def is_overdue(self) -> bool:
        return (
            self.status == CropCycleStatusEnum.active
            and self.planned_end_date is not None
            and date.today() > self.planned_end_date
        )

    def __repr__(self) -> str:
        return f"<CropCycle id={self.id} code={self.cycle_code!r} status={self.status}>"


class CropCycleStage(Base, IntegerPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "crop_cycle_stages"
    __table_args__ = (
        UniqueConstraint(
            "crop_cycle_id",
            "sequence_order",
            name="uq_crop_cycle_stages_cycle_sequence",
        ),
        CheckConstraint(
            "sequence_order BETWEEN 1 AND 20",
            name="ck_crop_cycle_stages_sequence",
        ),
    )

    crop_cycle_id: Mapped[int] = mapped_column(
        ForeignKey("crop_cycles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    stage_name: Mapped[str] = mapped_column(String(100), nullable=False)
    sequence_order: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    planned_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    planned_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[StageStatusEnum] = mapped_column(
        pg_enum(StageStatusEnum, "stage_status"),
        nullable=False,
        default=StageStatusEnum.pending,
        server_default=StageStatusEnum.pending.value,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    crop_cycle: Mapped[CropCycle] = relationship(back_populates="stages")

    def __repr__(self) -> str:
        return (
            f"<CropCycleStage id={self.id} cycle={self.crop_cycle_id} "
            f"order={self.sequence_order} status={self.status}>"
        )
