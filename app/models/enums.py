"""PostgreSQL-backed enum types for all ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM and doubles as
the allowed-value set the request schemas validate against.
"""

from enum import StrEnum

# ── Reference catalog enums ─────────────────────────────────────────────────


class UnitTypeEnum(StrEnum):
    """Dimension a unit of measure belongs to; conversion stays within one."""

    area = "area"
    weight = "weight"
    volume = "volume"
    quantity = "quantity"
    currency = "currency"
    time = "time"


class LandTypeEnum(StrEnum):
    rice_field = "rice_field"
    garden = "garden"
    fish_pond = "fish_pond"
    mixed = "mixed"
    fallow = "fallow"
    other = "other"


class TerrainTypeEnum(StrEnum):
    flat = "flat"
    sloped = "sloped"
    terraced = "terraced"
    lowland = "lowland"


class SoilTypeEnum(StrEnum):
    clay = "clay"
    sandy = "sandy"
    loamy = "loamy"
    alluvial = "alluvial"
    mixed = "mixed"


class WaterSourceTypeEnum(StrEnum):
    well = "well"
    river = "river"
    stream = "stream"
    pond = "pond"
    irrigation_canal = "irrigation_canal"
    rainwater = "rainwater"
    municipal = "municipal"


class WaterReliabilityEnum(StrEnum):
    permanent = "permanent"
    seasonal = "seasonal"
    intermittent = "intermittent"


class WaterQualityEnum(StrEnum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"


class WaterAccessibilityEnum(StrEnum):
    """How water reaches a land parcel from an attached source."""

    direct = "direct"
    pumped = "pumped"
    gravity_fed = "gravity_fed"
    manual = "manual"


class CropCategoryEnum(StrEnum):
    grain = "grain"
    vegetable = "vegetable"
    fruit = "fruit"
    legume = "legume"
    tuber = "tuber"
    herb = "herb"
    flower = "flower"
    fodder = "fodder"
    other = "other"


class ActivityCategoryEnum(StrEnum):
    land_preparation = "land_preparation"
    planting = "planting"
    irrigation = "irrigation"
    fertilizing = "fertilizing"
    pest_control = "pest_control"
    harvesting = "harvesting"
    maintenance = "maintenance"
    observation = "observation"
    other = "other"


# ── Crop cycle enums ────────────────────────────────────────────────────────


class CropCycleStatusEnum(StrEnum):
    """Crop cycle lifecycle; completed, failed and abandoned are terminal."""

    planned = "planned"
    active = "active"
    completed = "completed"
    failed = "failed"
    abandoned = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_CYCLE_STATUSES


TERMINAL_CYCLE_STATUSES = frozenset(
    {
        CropCycleStatusEnum.completed,
        CropCycleStatusEnum.failed,
        CropCycleStatusEnum.abandoned,
    }
)
OPEN_CYCLE_STATUSES = frozenset(
    {CropCycleStatusEnum.planned, CropCycleStatusEnum.active}
)


class QualityRatingEnum(StrEnum):
    excellent = "excellent"
    good = "good"
    average = "average"
    poor = "poor"


class StageStatusEnum(StrEnum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    skipped = "skipped"
