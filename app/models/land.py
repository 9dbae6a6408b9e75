"""Land parcels, water sources and the link table between them."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from geoalchemy2 import Geography
from sqlalchemy import (
    CheckConstraint,
    Float,
    ForeignKey,
    Numeric,
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
from app.models.enums import (
    LandTypeEnum,
    SoilTypeEnum,
    TerrainTypeEnum,
    WaterAccessibilityEnum,
    WaterQualityEnum,
    WaterReliabilityEnum,
    WaterSourceTypeEnum,
)


class GeoPointMixin:
    """Latitude/longitude pair mirrored into a PostGIS geography point."""

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    location: Mapped[Any] = mapped_column(
        Geography(geometry_type="POINT", srid=4326),
        nullable=True,
    )


class LandParcel(Base, IntegerPrimaryKeyMixin, TimestampMixin, ActiveFlagMixin, GeoPointMixin):
    """A named plot of land that hosts crop cycles."""

    __tablename__ = "land_parcels"
    __table_args__ = (
        CheckConstraint(
            "area_value > 0 AND area_value <= 999999.99",
            name="ck_land_parcels_area",
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    land_type: Mapped[LandTypeEnum] = mapped_column(
        pg_enum(LandTypeEnum, "land_type"), nullable=False, index=True
    )
    area_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    area_unit_id: Mapped[int] = mapped_column(
        ForeignKey("units_of_measure.id", ondelete="RESTRICT"), nullable=False
    )
    terrain_type: Mapped[TerrainTypeEnum | None] = mapped_column(
        pg_enum(TerrainTypeEnum, "terrain_type"), nullable=True
    )
    soil_type: Mapped[SoilTypeEnum | None] = mapped_column(
        pg_enum(SoilTypeEnum, "soil_type"), nullable=True
    )

    # ── Relationships ────────────────────────────────────────────────────
    water_source_links: Mapped[list[LandParcelWaterSource]] = relationship(
        back_populates="land_parcel",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<LandParcel id={self.id} code={self.code!r}>"


class WaterSource(Base, IntegerPrimaryKeyMixin, TimestampMixin, ActiveFlagMixin, GeoPointMixin):
    __tablename__ = "water_sources"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    source_type: Mapped[WaterSourceTypeEnum] = mapped_column(
        pg_enum(WaterSourceTypeEnum, "water_source_type"), nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reliability: Mapped[WaterReliabilityEnum] = mapped_column(
        pg_enum(WaterReliabilityEnum, "water_reliability"),
        nullable=False,
        default=WaterReliabilityEnum.permanent,
        server_default=WaterReliabilityEnum.permanent.value,
    )
    water_quality: Mapped[WaterQualityEnum | None] = mapped_column(
        pg_enum(WaterQualityEnum, "water_quality"), nullable=True
    )

    # ── Relationships ────────────────────────────────────────────────────
    land_parcel_links: Mapped[list[LandParcelWaterSource]] = relationship(
        back_populates="water_source",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<WaterSource id={self.id} code={self.code!r}>"


class LandParcelWaterSource(Base, IntegerPrimaryKeyMixin, TimestampMixin):
    """Which water sources serve which parcels, and how."""

    __tablename__ = "land_parcel_water_sources"
    __table_args__ = (
        UniqueConstraint(
            "land_parcel_id",
            "water_source_id",
            name="uq_land_parcel_water_sources_pair",
        ),
    )

    land_parcel_id: Mapped[int] = mapped_column(
        ForeignKey("land_parcels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    water_source_id: Mapped[int] = mapped_column(
        ForeignKey("water_sources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    accessibility: Mapped[WaterAccessibilityEnum] = mapped_column(
        pg_enum(WaterAccessibilityEnum, "water_accessibility"),
        nullable=False,
        default=WaterAccessibilityEnum.direct,
        server_default=WaterAccessibilityEnum.direct.value,
    )
    is_primary_source: Mapped[bool] = mapped_column(
        default=False, server_default=text("false"), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    land_parcel: Mapped[LandParcel] = relationship(
        back_populates="water_source_links", lazy="selectin"
    )
    water_source: Mapped[WaterSource] = relationship(
        back_populates="land_parcel_links", lazy="selectin"
    )
