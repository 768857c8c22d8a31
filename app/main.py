"""FastAPI application entrypoint — lifespan, routers, middleware."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager, suppress
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from app.config import get_settings
from app.database import async_session_factory, engine
from app.exceptions import SoilSenseError
from app.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from app.middleware.rate_limit import RateLimitMiddleware
from app.routes import chat, crops, motor, sensors, sms
from app.services.crop_catalog import get_crop_profiles
from app.services.motor_service import MotorService
from app.services.thingspeak_feed import FeedSyncService, FeedUnavailableError

logger = structlog.get_logger("soilsense")

VERSION = "0.1.0"


async def run_auto_control_cycle(redis_client: Redis | None) -> None:
    """One automatic-control pass in its own session; errors defer to the next pass."""
    async with async_session_factory() as session:
        service = MotorService(session, redis_client)
        try:
            result = await service.run_auto_control()
            await session.commit()
        except SoilSenseError as exc:
            await session.rollback()
            logger.warning("auto_control_deferred", error=str(exc), error_type=type(exc).__name__)
            return
        except Exception:
            await session.rollback()
            logger.exception("auto_control_failed")
            return
    if result.action.value != "none":
        logger.info("motor_state_changed", action=result.action.value, reason=result.reason)


async def run_feed_sync_cycle(redis_client: Redis | None) -> None:
    """One ThingSpeak import in its own session; an unreachable feed defers to the next pass."""
    async with async_session_factory() as session:
        try:
            result = await FeedSyncService(session, redis_client).sync()
            await session.commit()
        except (SoilSenseError, FeedUnavailableError) as exc:
            await session.rollback()
            logger.warning("feed_sync_deferred", error=str(exc), error_type=type(exc).__name__)
            return
        except Exception:
            await session.rollback()
            logger.exception("feed_sync_failed")
            return
    if result.recorded:
        logger.info("feed_sync_recorded", recorded=result.recorded, skipped=result.skipped)


async def _periodic(cycle: Callable[[Redis | None], Awaitable[None]], redis_client: Redis | None, interval_seconds: float) -> None:
    while True:
        await cycle(redis_client)
        await asyncio.sleep(interval_seconds)


async def _run_readiness_checks(app: FastAPI) -> dict[str, dict[str, Any]]:
    checks: dict[str, dict[str, Any]] = {}
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        checks["database"] = {"ok": True, "message": "ok"}
    except Exception as exc:
        checks["database"] = {"ok": False, "message": str(exc)}

    redis_client = getattr(app.state, "redis", None)
    if redis_client is None:
        checks["redis"] = {"ok": False, "message": "not connected"}
    else:
        try:
            await redis_client.ping()
            checks["redis"] = {"ok": True, "message": "ok"}
        except Exception as exc:
            checks["redis"] = {"ok": False, "message": str(exc)}
    return checks


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Validate the crop profile table (fails fast on bad config)
      3. Check the database and connect to Redis
      4. Start the automatic irrigation and ThingSpeak polls, when intervals are set

    Shutdown:
      1. Cancel the poll tasks
      2. Close Redis connection pool
      3. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "SoilSense starting",
        log_level=settings.log_level,
        auto_control_interval_seconds=settings.auto_control_interval_seconds,
        thingspeak_sync_interval_seconds=settings.thingspeak_sync_interval_seconds,
    )

    redis: Redis | None = None
    poll_tasks: list[asyncio.Task[None]] = []
    try:
        app.state.crop_profile_count = len(get_crop_profiles())

        if settings.connect_on_startup:
            async with engine.connect() as connection:
                await connection.execute(text("SELECT 1"))

            redis = Redis.from_url(settings.redis_url, decode_responses=True)
            await redis.ping()
        app.state.redis = redis

        if settings.auto_control_interval_seconds > 0:
            poll_tasks.append(
                asyncio.create_task(_periodic(run_auto_control_cycle, redis, settings.auto_control_interval_seconds))
            )
        if settings.thingspeak_sync_interval_seconds > 0:
            poll_tasks.append(
                asyncio.create_task(_periodic(run_feed_sync_cycle, redis, settings.thingspeak_sync_interval_seconds))
            )
    except Exception as exc:
        logger.exception("startup failure", error=str(exc))
        raise

    yield

    logger.info("SoilSense shutting down")
    for task in poll_tasks:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="SoilSense API",
    description=(
        "IoT soil monitoring API — sensor time series, automatic and manual "
        "irrigation motor control with an audit trail, crop suitability "
        "scoring, SMS alerts, and a farm assistant chat."
    ),
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check — verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "soilsense",
        "version": VERSION,
    }


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    """Readiness: database and Redis reachable."""
    checks = await _run_readiness_checks(app)
    healthy = all(item["ok"] for item in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(sensors.router, prefix="/api/v1")
app.include_router(motor.router, prefix="/api/v1")
app.include_router(crops.router, prefix="/api/v1")
app.include_router(sms.router, prefix="/api/v1")
app.include_router(chat.router, prefix="/api/v1")
