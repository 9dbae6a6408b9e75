"""Seed reference catalogs and sample farm data.

Usage:
    python -m scripts.seed_db [--skip-samples] [--admin-password PASSWORD]

Idempotent: rows whose natural key (code, or name + unit type for units,
email for users) already exists are left untouched, so the script can be
re-run after every migration.
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Callable, Iterable
from datetime import date
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import select

from app.auth.dependencies import pwd_context
from app.database import async_session_factory, engine
from app.middleware.logging import configure_structured_logging
from app.models.catalog import ActivityType, CropType, Season, SeasonDefinition, UnitOfMeasure
from app.models.land import LandParcel, WaterSource
from app.models.user import User
from app.services.land_service import geo_point

logger = structlog.get_logger("soleil.seed")

ADMIN_EMAIL = "admin@soleilfarm.vn"
DEFAULT_ADMIN_PASSWORD = "password123"

# (name, abbreviation, unit_type, factor, is_base_unit)
UNITS: list[tuple[str, str, str, str, bool]] = [
    ("Mét vuông", "m²", "area", "1", True),
    ("Sào (Bắc)", "sào", "area", "360", False),
    ("Công (Nam)", "công", "area", "1000", False),
    ("Hecta", "ha", "area", "10000", False),
    ("Kilogram", "kg", "weight", "1", True),
    ("Yến", "yến", "weight", "10", False),
    ("Tạ", "tạ", "weight", "100", False),
    ("Tấn", "tấn", "weight", "1000", False),
    ("Lít", "L", "volume", "1", True),
    ("Mét khối", "m³", "volume", "1000", False),
    ("Việt Nam Đồng", "VNĐ", "currency", "1", True),
    ("Cái", "cái", "quantity", "1", True),
    ("Bó", "bó", "quantity", "1", False),
    ("Bao", "bao", "quantity", "1", False),
    ("Giờ", "giờ", "time", "1", True),
    ("Ngày công", "ngày", "time", "8", False),
]

SEASON_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "Vụ Đông-Xuân",
        "code": "DONG-XUAN",
        "description": "Vụ lúa chính, gieo cấy từ tháng 11-12, thu hoạch tháng 4-5",
        "typical_start_month": 11,
        "typical_end_month": 5,
    },
    {
        "name": "Vụ Hè-Thu",
        "code": "HE-THU",
        "description": "Vụ lúa thứ hai, gieo cấy từ tháng 5-6, thu hoạch tháng 8-9",
        "typical_start_month": 5,
        "typical_end_month": 9,
    },
    {
        "name": "Vụ Mùa",
        "code": "VU-MUA",
        "description": "Vụ lúa mùa mưa, gieo cấy tháng 6-7, thu hoạch tháng 10-11",
        "typical_start_month": 6,
        "typical_end_month": 11,
    },
]

# (name, code, category)
ACTIVITY_TYPES: list[tuple[str, str, str]] = [
    ("Cày đất", "CAY-DAT", "land_preparation"),
    ("Bừa đất", "BUA-DAT", "land_preparation"),
    ("San phẳng ruộng", "SAN-RUONG", "land_preparation"),
    ("Gieo mạ", "GIEO-MA", "planting"),
    ("Cấy lúa", "CAY-LUA", "planting"),
    ("Trồng cây", "TRONG-CAY", "planting"),
    ("Gieo hạt", "GIEO-HAT", "planting"),
    ("Tưới nước", "TUOI-NUOC", "irrigation"),
    ("Bơm nước", "BOM-NUOC", "irrigation"),
    ("Tháo nước", "THAO-NUOC", "irrigation"),
    ("Bón phân đạm", "BON-DAM", "fertilizing"),
    ("Bón phân lân", "BON-LAN", "fertilizing"),
    ("Bón phân kali", "BON-KALI", "fertilizing"),
    ("Bón phân NPK", "BON-NPK", "fertilizing"),
    ("Bón phân hữu cơ", "BON-HUU-CO", "fertilizing"),
    ("Phun thuốc sâu", "PHUN-SAU", "pest_control"),
    ("Phun thuốc bệnh", "PHUN-BENH", "pest_control"),
    ("Diệt cỏ", "DIET-CO", "pest_control"),
    ("Bắt sâu tay", "BAT-SAU", "pest_control"),
    ("Thu hoạch", "THU-HOACH", "harvesting"),
    ("Gặt lúa", "GAT-LUA", "harvesting"),
    ("Phơi khô", "PHOI-KHO", "harvesting"),
    ("Sửa bờ ruộng", "SUA-BO", "maintenance"),
    ("Nạo vét mương", "NAO-MUONG", "maintenance"),
    ("Kiểm tra ruộng", "KIEM-TRA", "observation"),
    ("Đánh giá sâu bệnh", "DANH-GIA-SB", "observation"),
]

CROP_TYPES: list[dict[str, Any]] = [
    {"name": "Lúa OM5451", "code": "LUA-OM5451", "scientific_name": "Oryza sativa",
     "variety": "OM5451", "category": "grain", "typical_grow_duration_days": 105},
    {"name": "Lúa ST25", "code": "LUA-ST25", "scientific_name": "Oryza sativa",
     "variety": "ST25", "category": "grain", "typical_grow_duration_days": 110},
    {"name": "Lúa Khang Dân", "code": "LUA-KD18", "scientific_name": "Oryza sativa",
     "variety": "Khang Dân 18", "category": "grain", "typical_grow_duration_days": 100},
    {"name": "Rau muống", "code": "RAU-MUONG", "scientific_name": "Ipomoea aquatica",
     "variety": None, "category": "vegetable", "typical_grow_duration_days": 30},
    {"name": "Đậu phộng", "code": "DAU-PHONG", "scientific_name": "Arachis hypogaea",
     "variety": None, "category": "legume", "typical_grow_duration_days": 120},
    {"name": "Khoai lang", "code": "KHOAI-LANG", "scientific_name": "Ipomoea batatas",
     "variety": "Nhật tím", "category": "tuber", "typical_grow_duration_days": 120},
]

# area_unit is an abbreviation resolved against the seeded units.
LAND_PARCELS: list[dict[str, Any]] = [
    {"name": "Ruộng Đồng Trước", "code": "DONG-TRUOC-01", "land_type": "rice_field",
     "area_value": "3", "area_unit": "sào", "terrain_type": "lowland", "soil_type": "alluvial",
     "latitude": 16.7500, "longitude": 106.8000},
    {"name": "Ruộng Đồng Sau", "code": "DONG-SAU-01", "land_type": "rice_field",
     "area_value": "2.5", "area_unit": "sào", "terrain_type": "lowland", "soil_type": "clay",
     "latitude": 16.7510, "longitude": 106.8010},
    {"name": "Vườn nhà", "code": "VUON-NHA-01", "land_type": "garden",
     "area_value": "500", "area_unit": "m²", "terrain_type": "flat", "soil_type": "loamy",
     "latitude": 16.7505, "longitude": 106.8005},
    {"name": "Ao cá", "code": "AO-CA-01", "land_type": "fish_pond",
     "area_value": "200", "area_unit": "m²", "terrain_type": "lowland", "soil_type": "clay",
     "latitude": 16.7508, "longitude": 106.8002},
]

WATER_SOURCES: list[dict[str, Any]] = [
    {"name": "Suối Đá", "code": "SUOI-DA-01", "source_type": "stream",
     "reliability": "permanent", "water_quality": "good",
     "latitude": 16.7495, "longitude": 106.7995},
    {"name": "Giếng khoan nhà", "code": "GIENG-NHA-01", "source_type": "well",
     "reliability": "permanent", "water_quality": "excellent",
     "latitude": 16.7505, "longitude": 106.8005},
    {"name": "Kênh thủy lợi", "code": "KENH-TL-01", "source_type": "irrigation_canal",
     "reliability": "seasonal", "water_quality": "fair",
     "latitude": 16.7520, "longitude": 106.8020},
    {"name": "Bể chứa nước mưa", "code": "BE-MUA-01", "source_type": "rainwater",
     "reliability": "seasonal", "water_quality": "good",
     "latitude": 16.7506, "longitude": 106.8006},
]


# ── Pure helpers ────────────────────────────────────────────────────────────


def _pending(rows: Iterable[Any], existing: set[Any], key: Callable[[Any], Any]) -> list[Any]:
    """Rows whose natural key is not yet present, in input order."""
    seen = set(existing)
    pending = []
    for row in rows:
        row_key = key(row)
        if row_key in seen:
            continue
        seen.add(row_key)
        pending.append(row)
    return pending


def _unit_rows() -> list[dict[str, Any]]:
    return [
        {
            "name": name,
            "abbreviation": abbreviation,
            "unit_type": unit_type,
            "conversion_factor_to_base": Decimal(factor),
            "is_base_unit": is_base,
        }
        for name, abbreviation, unit_type, factor, is_base in UNITS
    ]


def _parcel_rows(area_units: dict[str, int]) -> list[dict[str, Any]]:
    """Resolve each parcel's area unit abbreviation; falls back to m²."""
    fallback = area_units.get("m²")
    rows = []
    for parcel in LAND_PARCELS:
        row = {key: value for key, value in parcel.items() if key != "area_unit"}
        unit_id = area_units.get(parcel["area_unit"], fallback)
        if unit_id is None:
            raise RuntimeError("Area units must be seeded before land parcels")
        row["area_unit_id"] = unit_id
        row["area_value"] = Decimal(parcel["area_value"])
        row["location"] = geo_point(parcel["latitude"], parcel["longitude"])
        rows.append(row)
    return rows


def _season_rows(definitions: dict[str, int], year: int) -> list[dict[str, Any]]:
    return [
        {"season_definition_id": definition_id, "code": f"{code}-{year}", "year": year}
        for code, definition_id in sorted(definitions.items())
    ]


# ── Database steps ──────────────────────────────────────────────────────────


async def _existing_codes(session: Any, model: Any) -> set[str]:
    return set((await session.execute(select(model.code))).scalars().all())


async def _seed_units(session: Any) -> dict[str, int]:
    rows = await session.execute(select(UnitOfMeasure.name, UnitOfMeasure.unit_type))
    existing = {(name, str(unit_type)) for name, unit_type in rows.all()}
    pending = _pending(_unit_rows(), existing, key=lambda row: (row["name"], row["unit_type"]))
    session.add_all([UnitOfMeasure(**row) for row in pending])
    await session.flush()
    logger.info("seeded_units", created=len(pending))

    area = await session.execute(
        select(UnitOfMeasure.abbreviation, UnitOfMeasure.id).where(UnitOfMeasure.unit_type == "area")
    )
    return dict(area.all())


async def _seed_by_code(session: Any, model: Any, rows: list[dict[str, Any]], label: str) -> int:
    pending = _pending(rows, await _existing_codes(session, model), key=lambda row: row["code"])
    session.add_all([model(**row) for row in pending])
    await session.flush()
    logger.info("seeded_catalog", catalog=label, created=len(pending))
    return len(pending)


async def _seed_admin(session: Any, password: str) -> None:
    existing = await session.scalar(select(User).where(User.email == ADMIN_EMAIL))
    if existing is not None:
        existing.hashed_password = pwd_context.hash(password)
        logger.info("seeded_admin", action="updated", email=ADMIN_EMAIL)
        return
    session.add(
        User(name="Admin", email=ADMIN_EMAIL, hashed_password=pwd_context.hash(password), is_active=True)
    )
    logger.info("seeded_admin", action="created", email=ADMIN_EMAIL)


async def seed(skip_samples: bool = False, admin_password: str = DEFAULT_ADMIN_PASSWORD) -> None:
    async with async_session_factory() as session:
        async with session.begin():
            area_units = await _seed_units(session)
            await _seed_by_code(session, SeasonDefinition, SEASON_DEFINITIONS, "season_definitions")
            await _seed_by_code(
                session,
                ActivityType,
                [{"name": name, "code": code, "category": category} for name, code, category in ACTIVITY_TYPES],
                "activity_types",
            )

            kg_id = await session.scalar(select(UnitOfMeasure.id).where(UnitOfMeasure.abbreviation == "kg"))
            crop_rows = [{**crop, "default_yield_unit_id": kg_id} for crop in CROP_TYPES]
            await _seed_by_code(session, CropType, crop_rows, "crop_types")

            definitions = dict(
                (await session.execute(select(SeasonDefinition.code, SeasonDefinition.id))).all()
            )
            await _seed_by_code(session, Season, _season_rows(definitions, date.today().year), "seasons")

            if not skip_samples:
                await _seed_by_code(session, LandParcel, _parcel_rows(area_units), "land_parcels")
                water_rows = [
                    {**source, "location": geo_point(source["latitude"], source["longitude"])}
                    for source in WATER_SOURCES
                ]
                await _seed_by_code(session, WaterSource, water_rows, "water_sources")

            await _seed_admin(session, admin_password)

    await engine.dispose()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the Soleil Farm database")
    parser.add_argument("--skip-samples", action="store_true", help="only seed reference catalogs")
    parser.add_argument("--admin-password", default=DEFAULT_ADMIN_PASSWORD)
    return parser.parse_args()


if __name__ == "__main__":
    configure_structured_logging()
    args = _parse_args()
    asyncio.run(seed(skip_samples=args.skip_samples, admin_password=args.admin_password))
