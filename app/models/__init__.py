"""ORM model registry: importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from app.models import CropCycle, LandParcel, ...
"""

# ── Auth models ─────────────────────────────────────────────────────────────
from app.models.user import User

# ── Activity log ────────────────────────────────────────────────────────────
from app.models.activity import ActivityLog

# ── Base & Mixins ───────────────────────────────────────────────────────────
from app.models.base import (
    ActiveFlagMixin,
    Base,
    IntegerPrimaryKeyMixin,
    TimestampMixin,
)

# ── Reference catalogs ──────────────────────────────────────────────────────
from app.models.catalog import (
    ActivityType,
    CropType,
    Season,
    SeasonDefinition,
    UnitOfMeasure,
)

# ── Crop cycles ─────────────────────────────────────────────────────────────
from app.models.crop_cycle import CropCycle, CropCycleStage

# ── Land & water ────────────────────────────────────────────────────────────
from app.models.land import LandParcel, LandParcelWaterSource, WaterSource

__all__ = [
    "ActiveFlagMixin",
    "ActivityLog",
    "ActivityType",
    # Base & mixins
    "Base",
    "CropCycle",
    "CropCycleStage",
    "CropType",
    "IntegerPrimaryKeyMixin",
    "LandParcel",
    "LandParcelWaterSource",
    "Season",
    "SeasonDefinition",
    "TimestampMixin",
    "UnitOfMeasure",
    # Auth
    "User",
    "WaterSource",
]
