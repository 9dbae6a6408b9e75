"""initial_schema

Revision ID: 3c1e9a7f5b20
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the Soleil Farm schema: reference catalogs, land parcels, water
sources, crop cycles with stages, activity logs and users, together with
the 13 PostgreSQL enum types they use.  Requires PostGIS for the
parcel / water source geography points.
"""

from collections.abc import Sequence

import geoalchemy2
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1e9a7f5b20"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_UNIT_TYPE = postgresql.ENUM(
    "area", "weight", "volume", "quantity", "currency", "time",
    name="unit_type",
    create_type=False,
)
ENUM_LAND_TYPE = postgresql.ENUM(
    "rice_field", "garden", "fish_pond", "mixed", "fallow", "other",
    name="land_type",
    create_type=False,
)
ENUM_TERRAIN_TYPE = postgresql.ENUM(
    "flat", "sloped", "terraced", "lowland", name="terrain_type", create_type=False
)
ENUM_SOIL_TYPE = postgresql.ENUM(
    "clay", "sandy", "loamy", "alluvial", "mixed", name="soil_type", create_type=False
)
ENUM_WATER_SOURCE_TYPE = postgresql.ENUM(
    "well",
    "river",
    "stream",
    "pond",
    "irrigation_canal",
    "rainwater",
    "municipal",
    name="water_source_type",
    create_type=False,
)
ENUM_WATER_RELIABILITY = postgresql.ENUM(
    "permanent", "seasonal", "intermittent", name="water_reliability", create_type=False
)
ENUM_WATER_QUALITY = postgresql.ENUM(
    "excellent", "good", "fair", "poor", name="water_quality", create_type=False
)
ENUM_WATER_ACCESSIBILITY = postgresql.ENUM(
    "direct", "pumped", "gravity_fed", "manual", name="water_accessibility", create_type=False
)
ENUM_CROP_CATEGORY = postgresql.ENUM(
    "grain",
    "vegetable",
    "fruit",
    "legume",
    "tuber",
    "herb",
    "flower",
    "fodder",
    "other",
    name="crop_category",
    create_type=False,
)
ENUM_ACTIVITY_CATEGORY = postgresql.ENUM(
    "land_preparation",
    "planting",
    "irrigation",
    "fertilizing",
    "pest_control",
    "harvesting",
    "maintenance",
    "observation",
    "other",
    name="activity_category",
    create_type=False,
)
ENUM_CROP_CYCLE_STATUS = postgresql.ENUM(
    "planned", "active", "completed", "failed", "abandoned",
    name="crop_cycle_status",
    create_type=False,
)
ENUM_QUALITY_RATING = postgresql.ENUM(
    "excellent", "good", "average", "poor", name="quality_rating", create_type=False
)
ENUM_STAGE_STATUS = postgresql.ENUM(
    "pending", "in_progress", "completed", "skipped", name="stage_status", create_type=False
)

ALL_ENUMS = (
    ENUM_UNIT_TYPE,
    ENUM_LAND_TYPE,
    ENUM_TERRAIN_TYPE,
    ENUM_SOIL_TYPE,
    ENUM_WATER_SOURCE_TYPE,
    ENUM_WATER_RELIABILITY,
    ENUM_WATER_QUALITY,
    ENUM_WATER_ACCESSIBILITY,
    ENUM_CROP_CATEGORY,
    ENUM_ACTIVITY_CATEGORY,
    ENUM_CROP_CYCLE_STATUS,
    ENUM_QUALITY_RATING,
    ENUM_STAGE_STATUS,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _is_active() -> sa.Column:
    return sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False)


def _geo_point() -> list[sa.Column]:
    return [
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column(
            "location",
            geoalchemy2.types.Geography(
                geometry_type="POINT", srid=4326, from_text="ST_GeogFromText"
            ),
            nullable=True,
        ),
    ]


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # ── 1. Create enum types ────────────────────────────────────────────
    for enum_type in ALL_ENUMS:
        enum_type.create(op.get_bind(), checkfirst=True)

    # ── 2. Reference catalogs ───────────────────────────────────────────

    # units_of_measure
    op.create_table(
        "units_of_measure",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("abbreviation", sa.String(20), nullable=False),
        sa.Column("unit_type", ENUM_UNIT_TYPE, nullable=False),
        sa.Column(
            "conversion_factor_to_base",
            sa.Numeric(15, 6),
            server_default=sa.text("1"),
            nullable=False,
        ),
        sa.Column("is_base_unit", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "unit_type", name="uq_units_of_measure_name_type"),
        sa.CheckConstraint(
            "conversion_factor_to_base > 0", name="ck_units_of_measure_factor_positive"
        ),
    )
    op.create_index("ix_units_of_measure_unit_type", "units_of_measure", ["unit_type"])
    op.create_index("ix_units_of_measure_is_active", "units_of_measure", ["is_active"])

    # season_definitions
    op.create_table(
        "season_definitions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("typical_start_month", sa.SmallInteger(), nullable=False),
        sa.Column("typical_end_month", sa.SmallInteger(), nullable=False),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
        sa.CheckConstraint(
            "typical_start_month BETWEEN 1 AND 12", name="ck_season_definitions_start_month"
        ),
        sa.CheckConstraint(
            "typical_end_month BETWEEN 1 AND 12", name="ck_season_definitions_end_month"
        ),
    )
    op.create_index("ix_season_definitions_is_active", "season_definitions", ["is_active"])

    # seasons
    op.create_table(
        "seasons",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("season_definition_id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("year", sa.SmallInteger(), nullable=False),
        sa.Column("actual_start_date", sa.Date(), nullable=True),
        sa.Column("actual_end_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["season_definition_id"], ["season_definitions.id"], ondelete="RESTRICT"
        ),
        sa.UniqueConstraint("code"),
        sa.UniqueConstraint("season_definition_id", "year", name="uq_seasons_definition_year"),
        sa.CheckConstraint("year BETWEEN 2000 AND 2100", name="ck_seasons_year"),
        sa.CheckConstraint(
            "actual_end_date IS NULL OR actual_start_date IS NULL "
            "OR actual_end_date >= actual_start_date",
            name="ck_seasons_date_order",
        ),
    )
    op.create_index("ix_seasons_season_definition_id", "seasons", ["season_definition_id"])
    op.create_index("ix_seasons_year", "seasons", ["year"])

    # crop_types
    op.create_table(
        "crop_types",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("scientific_name", sa.String(150), nullable=True),
        sa.Column("variety", sa.String(100), nullable=True),
        sa.Column("category", ENUM_CROP_CATEGORY, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("typical_grow_duration_days", sa.Integer(), nullable=True),
        sa.Column("default_yield_unit_id", sa.Integer(), nullable=True),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["default_yield_unit_id"], ["units_of_measure.id"], ondelete="SET NULL"
        ),
        sa.UniqueConstraint("code"),
        sa.CheckConstraint(
            "typical_grow_duration_days IS NULL "
            "OR typical_grow_duration_days BETWEEN 1 AND 730",
            name="ck_crop_types_duration",
        ),
    )
    op.create_index("ix_crop_types_category", "crop_types", ["category"])
    op.create_index("ix_crop_types_is_active", "crop_types", ["is_active"])

    # activity_types
    op.create_table(
        "activity_types",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("category", ENUM_ACTIVITY_CATEGORY, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_activity_types_category", "activity_types", ["category"])
    op.create_index("ix_activity_types_is_active", "activity_types", ["is_active"])

    # ── 3. Land & water ─────────────────────────────────────────────────

    # land_parcels
    op.create_table(
        "land_parcels",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("land_type", ENUM_LAND_TYPE, nullable=False),
        sa.Column("area_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("area_unit_id", sa.Integer(), nullable=False),
        sa.Column("terrain_type", ENUM_TERRAIN_TYPE, nullable=True),
        sa.Column("soil_type", ENUM_SOIL_TYPE, nullable=True),
        *_geo_point(),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["area_unit_id"], ["units_of_measure.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint("code"),
        sa.CheckConstraint(
            "area_value > 0 AND area_value <= 999999.99", name="ck_land_parcels_area"
        ),
    )
    op.create_index("ix_land_parcels_land_type", "land_parcels", ["land_type"])
    op.create_index("ix_land_parcels_is_active", "land_parcels", ["is_active"])

    # water_sources
    op.create_table(
        "water_sources",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("source_type", ENUM_WATER_SOURCE_TYPE, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "reliability",
            ENUM_WATER_RELIABILITY,
            server_default=sa.text("'permanent'"),
            nullable=False,
        ),
        sa.Column("water_quality", ENUM_WATER_QUALITY, nullable=True),
        *_geo_point(),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_water_sources_source_type", "water_sources", ["source_type"])
    op.create_index("ix_water_sources_is_active", "water_sources", ["is_active"])

    # land_parcel_water_sources
    op.create_table(
        "land_parcel_water_sources",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("land_parcel_id", sa.Integer(), nullable=False),
        sa.Column("water_source_id", sa.Integer(), nullable=False),
        sa.Column(
            "accessibility",
            ENUM_WATER_ACCESSIBILITY,
            server_default=sa.text("'direct'"),
            nullable=False,
        ),
        sa.Column(
            "is_primary_source", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("notes", sa.String(500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["land_parcel_id"], ["land_parcels.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["water_source_id"], ["water_sources.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "land_parcel_id", "water_source_id", name="uq_land_parcel_water_sources_pair"
        ),
    )
    op.create_index(
        "ix_land_parcel_water_sources_land_parcel_id",
        "land_parcel_water_sources",
        ["land_parcel_id"],
    )
    op.create_index(
        "ix_land_parcel_water_sources_water_source_id",
        "land_parcel_water_sources",
        ["water_source_id"],
    )

    # ── 4. Crop cycles & stages ─────────────────────────────────────────

    # crop_cycles
    op.create_table(
        "crop_cycles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("cycle_code", sa.String(50), nullable=False),
        sa.Column("land_parcel_id", sa.Integer(), nullable=False),
        sa.Column("crop_type_id", sa.Integer(), nullable=False),
        sa.Column("season_id", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            ENUM_CROP_CYCLE_STATUS,
            server_default=sa.text("'planned'"),
            nullable=False,
        ),
        sa.Column("planned_start_date", sa.Date(), nullable=False),
        sa.Column("planned_end_date", sa.Date(), nullable=False),
        sa.Column("actual_start_date", sa.Date(), nullable=True),
        sa.Column("actual_end_date", sa.Date(), nullable=True),
        sa.Column("yield_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("yield_unit_id", sa.Integer(), nullable=True),
        sa.Column("quality_rating", ENUM_QUALITY_RATING, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["land_parcel_id"], ["land_parcels.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["crop_type_id"], ["crop_types.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["season_id"], ["seasons.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["yield_unit_id"], ["units_of_measure.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("cycle_code"),
        sa.CheckConstraint(
            "planned_end_date > planned_start_date", name="ck_crop_cycles_planned_order"
        ),
        sa.CheckConstraint(
            "yield_value IS NULL OR yield_value >= 0",
            name="ck_crop_cycles_yield_non_negative",
        ),
    )
    op.create_index("ix_crop_cycles_crop_type_id", "crop_cycles", ["crop_type_id"])
    op.create_index("ix_crop_cycles_season_id", "crop_cycles", ["season_id"])
    op.create_index("ix_crop_cycles_status", "crop_cycles", ["status"])
    op.create_index(
        "ix_crop_cycles_parcel_status_dates",
        "crop_cycles",
        ["land_parcel_id", "status", "planned_start_date", "planned_end_date"],
    )

    # crop_cycle_stages
    op.create_table(
        "crop_cycle_stages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("crop_cycle_id", sa.Integer(), nullable=False),
        sa.Column("stage_name", sa.String(100), nullable=False),
        sa.Column("sequence_order", sa.SmallInteger(), nullable=False),
        sa.Column("planned_start_date", sa.Date(), nullable=True),
        sa.Column("planned_end_date", sa.Date(), nullable=True),
        sa.Column("actual_start_date", sa.Date(), nullable=True),
        sa.Column("actual_end_date", sa.Date(), nullable=True),
        sa.Column(
            "status",
            ENUM_STAGE_STATUS,
            server_default=sa.text("'pending'"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["crop_cycle_id"], ["crop_cycles.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "crop_cycle_id", "sequence_order", name="uq_crop_cycle_stages_cycle_sequence"
        ),
        sa.CheckConstraint(
            "sequence_order BETWEEN 1 AND 20", name="ck_crop_cycle_stages_sequence"
        ),
    )
    op.create_index("ix_crop_cycle_stages_crop_cycle_id", "crop_cycle_stages", ["crop_cycle_id"])

    # ── 5. Activity logs ────────────────────────────────────────────────
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("activity_type_id", sa.Integer(), nullable=False),
        sa.Column("crop_cycle_id", sa.Integer(), nullable=True),
        sa.Column("land_parcel_id", sa.Integer(), nullable=True),
        sa.Column("water_source_id", sa.Integer(), nullable=True),
        sa.Column("activity_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("quantity_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("quantity_unit_id", sa.Integer(), nullable=True),
        sa.Column("cost_value", sa.Numeric(15, 2), nullable=True),
        sa.Column("cost_unit_id", sa.Integer(), nullable=True),
        sa.Column("performed_by", sa.String(255), nullable=True),
        sa.Column("weather_conditions", sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["activity_type_id"], ["activity_types.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["crop_cycle_id"], ["crop_cycles.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["land_parcel_id"], ["land_parcels.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["water_source_id"], ["water_sources.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["quantity_unit_id"], ["units_of_measure.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["cost_unit_id"], ["units_of_measure.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "quantity_value IS NULL OR quantity_value >= 0",
            name="ck_activity_logs_quantity_non_negative",
        ),
        sa.CheckConstraint(
            "cost_value IS NULL OR cost_value >= 0",
            name="ck_activity_logs_cost_non_negative",
        ),
        sa.CheckConstraint(
            "start_time IS NULL OR end_time IS NULL OR end_time > start_time",
            name="ck_activity_logs_time_order",
        ),
    )
    op.create_index("ix_activity_logs_activity_type_id", "activity_logs", ["activity_type_id"])
    op.create_index("ix_activity_logs_crop_cycle_id", "activity_logs", ["crop_cycle_id"])
    op.create_index("ix_activity_logs_land_parcel_id", "activity_logs", ["land_parcel_id"])
    op.create_index("ix_activity_logs_performed_by", "activity_logs", ["performed_by"])
    op.create_index("ix_activity_logs_date_start", "activity_logs", ["activity_date", "start_time"])

    # ── 6. Users ────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("hashed_password", sa.String(128), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_table("activity_logs")
    op.drop_table("crop_cycle_stages")
    op.drop_table("crop_cycles")
    op.drop_table("land_parcel_water_sources")
    op.drop_table("water_sources")
    op.drop_table("land_parcels")
    op.drop_table("activity_types")
    op.drop_table("crop_types")
    op.drop_table("seasons")
    op.drop_table("season_definitions")
    op.drop_table("units_of_measure")

    for enum_type in reversed(ALL_ENUMS):
        enum_type.drop(op.get_bind(), checkfirst=True)
