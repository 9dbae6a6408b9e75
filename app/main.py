"""FastAPI application entrypoint: lifespan, routers, middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from sqlalchemy import text

from app.config import get_settings
from app.database import engine
from app.errors import register_exception_handlers
from app.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from app.middleware.rate_limit import RateLimitMiddleware
from app.routes import (
    activity_logs,
    activity_types,
    auth,
    crop_cycles,
    crop_types,
    dashboard,
    land_parcels,
    seasons,
    stages,
    units,
    water_sources,
)

logger = logging.getLogger("soleil")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Verify the database connection
      3. Connect to Redis (rate limiting and token revocation)

    Shutdown:
      1. Close Redis connection pool
      2. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "Soleil Farm API starting",
        extra={"log_level": settings.log_level, "timezone": settings.app_timezone},
    )

    redis: Redis | None = None
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        await redis.ping()
        app.state.redis = redis
    except Exception as exc:
        logger.exception("startup failure", extra={"error": str(exc)})
        raise

    yield

    logger.info("Soleil Farm API shutting down")
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="Soleil Farm API",
    description=(
        "Farm management API for land parcels, water sources, seasons, "
        "crop cycles with their stages, and daily activity logs."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check: verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "soleil-farm",
        "version": "0.1.0",
    }


# ── Router registration ────────────────────────────────────────────────────
app.include_router(auth.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")
app.include_router(units.router, prefix="/api/v1")
app.include_router(seasons.definitions_router, prefix="/api/v1")
app.include_router(seasons.router, prefix="/api/v1")
app.include_router(activity_types.router, prefix="/api/v1")
app.include_router(crop_types.router, prefix="/api/v1")
app.include_router(land_parcels.router, prefix="/api/v1")
app.include_router(water_sources.router, prefix="/api/v1")
app.include_router(crop_cycles.router, prefix="/api/v1")
app.include_router(stages.router, prefix="/api/v1")
app.include_router(activity_logs.router, prefix="/api/v1")
