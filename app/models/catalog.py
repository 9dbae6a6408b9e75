"""Reference catalogs: units of measure, seasons, crop and activity types.

Catalog rows are referenced (never owned) by crop cycles, parcels and
activity logs.  They are deactivated rather than deleted so historical
records keep resolving, with the exception of seasons which carry no
``is_active`` flag and may be removed while unreferenced.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Numeric,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import (
    ActiveFlagMixin,
    Base,
    IntegerPrimaryKeyMixin,
    TimestampMixin,
    pg_enum,
)
from app.models.enums import ActivityCategoryEnum, CropCategoryEnum, UnitTypeEnum

# ═══════════════════════════════════════════════════════════════════════════
# Units of measure
# ═══════════════════════════════════════════════════════════════════════════


class UnitOfMeasure(Base, IntegerPrimaryKeyMixin, TimestampMixin, ActiveFlagMixin):
    """A unit within one dimension, convertible through its base factor.

    ``conversion_factor_to_base`` expresses how many base units one of this
    unit represents (1 sào = 360 m², so its factor is 360 against m²).
    """

    __tablename__ = "units_of_measure"
    __table_args__ = (
        UniqueConstraint("name", "unit_type", name="uq_units_of_measure_name_type"),
        CheckConstraint(
            "conversion_factor_to_base > 0",
            name="ck_units_of_measure_factor_positive",
        ),
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    abbreviation: Mapped[str] = mapped_column(String(20), nullable=False)
    unit_type: Mapped[UnitTypeEnum] = mapped_column(
        pg_enum(UnitTypeEnum, "unit_type"), nullable=False, index=True
    )
    conversion_factor_to_base: Mapped[Decimal] = mapped_column(
        Numeric(15, 6),
        nullable=False,
        default=Decimal("1"),
        server_default=text("1"),
    )
    is_base_unit: Mapped[bool] = mapped_column(
        default=False, server_default=text("false"), nullable=False
    )

    def __repr__(self) -> str:
        return f"<UnitOfMeasure id={self.id} abbreviation={self.abbreviation!r}>"


# ═══════════════════════════════════════════════════════════════════════════
# Seasons
# ═══════════════════════════════════════════════════════════════════════════


class SeasonDefinition(Base, IntegerPrimaryKeyMixin, TimestampMixin, ActiveFlagMixin):
    """A recurring growing season (e.g. Đông Xuân) with typical months."""

    __tablename__ = "season_definitions"
    __table_args__ = (
        CheckConstraint(
            "typical_start_month BETWEEN 1 AND 12",
            name="ck_season_definitions_start_month",
        ),
        CheckConstraint(
            "typical_end_month BETWEEN 1 AND 12",
            name="ck_season_definitions_end_month",
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    typical_start_month: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    typical_end_month: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    seasons: Mapped[list[Season]] = relationship(back_populates="definition")

    def __repr__(self) -> str:
        return f"<SeasonDefinition id={self.id} code={self.code!r}>"


class Season(Base, IntegerPrimaryKeyMixin, TimestampMixin):
    """A concrete occurrence of a season definition in one year."""

    __tablename__ = "seasons"
    __table_args__ = (
        UniqueConstraint(
            "season_definition_id", "year", name="uq_seasons_definition_year"
        ),
        CheckConstraint("year BETWEEN 2000 AND 2100", name="ck_seasons_year"),
        CheckConstraint(
            "actual_end_date IS NULL OR actual_start_date IS NULL "
            "OR actual_end_date >= actual_start_date",
            name="ck_seasons_date_order",
        ),
    )

    season_definition_id: Mapped[int] = mapped_column(
        ForeignKey("season_definitions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    year: Mapped[int] = mapped_column(SmallInteger, nullable=False, index=True)
    actual_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    definition: Mapped[SeasonDefinition] = relationship(
        back_populates="seasons", lazy="selectin"
    )

    @property
    def is_active(self) -> bool:
        """A season is usable while its definition is active."""
        return bool(self.definition and self.definition.is_active)

    def __repr__(self) -> str:
        return f"<Season id={self.id} code={self.code!r}>"


# ═══════════════════════════════════════════════════════════════════════════
# Crop & activity types
# ═══════════════════════════════════════════════════════════════════════════


class CropType(Base, IntegerPrimaryKeyMixin, TimestampMixin, ActiveFlagMixin):
    __tablename__ = "crop_types"
    __table_args__ = (
        CheckConstraint(
            "typical_grow_duration_days IS NULL "
            "OR typical_grow_duration_days BETWEEN 1 AND 730",
            name="ck_crop_types_duration",
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    scientific_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    variety: Mapped[str | None] = mapped_column(String(100), nullable=True)
    category: Mapped[CropCategoryEnum] = mapped_column(
        pg_enum(CropCategoryEnum, "crop_category"), nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    typical_grow_duration_days: Mapped[int | None] = mapped_column(nullable=True)
    default_yield_unit_id: Mapped[int | None] = mapped_column(
        ForeignKey("units_of_measure.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<CropType id={self.id} code={self.code!r}>"


class ActivityType(Base, IntegerPrimaryKeyMixin, TimestampMixin, ActiveFlagMixin):
    __tablename__ = "activity_types"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    category: Mapped[ActivityCategoryEnum] = mapped_column(
        pg_enum(ActivityCategoryEnum, "activity_category"), nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ActivityType id={self.id} code={self.code!r}>"
