"""Gojipedia Catalog API - FastAPI Application."""

import logging
from contextlib import asynccontextmanager
from datetime import timezone

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from gojipedia.logging import configure_logging

configure_logging()

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from gojipedia.api.v1.router import api_router
from gojipedia.config import get_settings
from gojipedia.core.cache import get_cache
from gojipedia.core.store import get_store_provider
from gojipedia.db.database import init_db, get_db, async_session_maker
from gojipedia.db.models import Monster, SystemMetadata
from gojipedia.middleware import CorrelationIDMiddleware
from gojipedia.services.fpi_audit import LAST_RUN_KEY, recompute_fan_power_indexes

logger = logging.getLogger(__name__)
settings = get_settings()

limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"])

scheduler = AsyncIOScheduler(
    timezone=timezone.utc,
    job_defaults={
        # If the host sleeps near trigger time, run the job when we come back
        "misfire_grace_time": 60 * 60,
        "coalesce": True,
        "max_instances": 1,
    },
)


async def run_fpi_recompute():
    """Daily job: fix drifted cached Fan Power values, then refresh the snapshot."""
    try:
        async with async_session_maker() as session:
            result = await recompute_fan_power_indexes(session)
        if result.drifted:
            get_store_provider().invalidate()
            await get_cache().flush_pattern(get_cache().CATALOG_PATTERN)
    except Exception as e:
        logger.error(f"FPI recompute job failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    if settings.data_source == "database":
        await init_db()

        scheduler.add_job(
            run_fpi_recompute,
            CronTrigger(hour=settings.fpi_audit_hour, minute=0),
            id="fpi_recompute",
            replace_existing=True,
        )
        scheduler.start()
        logger.info(f"Scheduler started - FPI recompute daily at {settings.fpi_audit_hour:02d}:00 UTC")

        if settings.dev_mode:
            await run_fpi_recompute()

    # Warm the snapshot so the first request doesn't pay for the load
    try:
        await get_store_provider().get()
    except Exception as e:
        logger.error(f"Initial catalog load failed, will retry on first request: {e}")

    yield

    logger.info("Shutting down application...")
    if scheduler.running:
        scheduler.shutdown()
    await get_cache().close()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Monster, movie, battle and shop catalog for Gojipedia",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Correlation-ID"],
    expose_headers=["X-Correlation-ID"],
)

app.add_middleware(CorrelationIDMiddleware)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/health/db")
async def db_status(db: AsyncSession = Depends(get_db)):
    """Check database status and the last FPI recompute."""
    try:
        result = await db.execute(select(func.count()).select_from(Monster))
        monster_count = result.scalar_one_or_none() or 0

        result = await db.execute(select(SystemMetadata).where(SystemMetadata.key == LAST_RUN_KEY))
        metadata = result.scalar_one_or_none()

        job = scheduler.get_job("fpi_recompute")
        next_run = job.next_run_time.isoformat() if job and job.next_run_time else None

        return {
            "status": "healthy",
            "has_data": monster_count > 0,
            "monster_count": monster_count,
            "last_fpi_recompute": metadata.value if metadata else None,
            "next_fpi_recompute": next_run,
        }
    except Exception as e:
        logger.error(f"Health check DB error: {e}")
        return {
            "status": "error",
            "has_data": False,
            "monster_count": 0,
            "error": "Database health check failed",
        }


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }
