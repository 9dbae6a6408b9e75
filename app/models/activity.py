"""Activity log: append-mostly record of field work."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IntegerPrimaryKeyMixin, TimestampMixin


class ActivityLog(Base, IntegerPrimaryKeyMixin, TimestampMixin):
    """One unit of work performed on a parcel and/or crop cycle.

    ``land_parcel_id`` is filled from the crop cycle when a log is recorded
    against a cycle without naming the parcel, so parcel-level queries see
    every activity that happened on the land.
    """

    __tablename__ = "activity_logs"
    __table_args__ = (
        CheckConstraint(
            "quantity_value IS NULL OR quantity_value >= 0",
            name="ck_activity_logs_quantity_non_negative",
        ),
        CheckConstraint(
            "cost_value IS NULL OR cost_value >= 0",
            name="ck_activity_logs_cost_non_negative",
        ),
        CheckConstraint(
            "start_time IS NULL OR end_time IS NULL OR end_time > start_time",
            name="ck_activity_logs_time_order",
        ),
        Index("ix_activity_logs_date_start", "activity_date", "start_time"),
    )

    activity_type_id: Mapped[int] = mapped_column(
        ForeignKey("activity_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    crop_cycle_id: Mapped[int | None] = mapped_column(
        ForeignKey("crop_cycles.id", ondelete="SET NULL"), nullable=True, index=True
    )
    land_parcel_id: Mapped[int | None] = mapped_column(
        ForeignKey("land_parcels.id", ondelete="SET NULL"), nullable=True, index=True
    )
    water_source_id: Mapped[int | None] = mapped_column(
        ForeignKey("water_sources.id", ondelete="SET NULL"), nullable=True
    )
    activity_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    quantity_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    quantity_unit_id: Mapped[int | None] = mapped_column(
        ForeignKey("units_of_measure.id", ondelete="SET NULL"), nullable=True
    )
    cost_value: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    cost_unit_id: Mapped[int | None] = mapped_column(
        ForeignKey("units_of_measure.id", ondelete="SET NULL"), nullable=True
    )
    performed_by: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    weather_conditions: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<ActivityLog id={self.id} date={self.activity_date} type={self.activity_type_id}>"
