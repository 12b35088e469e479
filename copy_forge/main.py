"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from copy_forge.api.router import api_router
from copy_forge.config import get_settings
from copy_forge.core.cleanup import get_cleanup_monitor
from copy_forge.core.events import get_event_publisher
from copy_forge.core.interpretation_cache import GC_TTL_DAYS, get_interpretation_cache
from copy_forge.core.landing_cache import get_landing_page_cache
from copy_forge.db.client import get_supabase_client
from copy_forge.utils.logging import setup_logging

logger = structlog.get_logger()

VERSION = "0.1.0"

_cleanup_task = None
_cache_gc_task = None


async def temp_cleanup_loop(interval_seconds: int) -> None:
    """Background task: sweep orphaned temp files and bucket objects."""
    while True:
        try:
            await asyncio.sleep(interval_seconds)
            await get_cleanup_monitor().perform_cleanup()
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning("cleanup.loop_error", error=str(e))


async def cache_gc_loop(interval_seconds: int) -> None:
    """Background task: drop old interpretations and expired landing pages."""
    while True:
        try:
            await asyncio.sleep(interval_seconds)
            removed = get_interpretation_cache().delete_old_entries(GC_TTL_DAYS)
            expired = get_landing_page_cache().delete_expired()
            if removed or expired:
                logger.info("cache.gc", interpretations=removed, landing_pages=expired)
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning("cache.gc_error", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    global _cleanup_task, _cache_gc_task
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("copyforge.starting", port=settings.port)

    get_supabase_client()
    logger.info("copyforge.supabase_connected")

    # NATS is optional; the publisher degrades to a no-op
    publisher = get_event_publisher()
    await publisher.connect()

    _cleanup_task = asyncio.create_task(temp_cleanup_loop(settings.cleanup_interval_seconds))
    _cache_gc_task = asyncio.create_task(cache_gc_loop(settings.cache_gc_interval_seconds))

    yield

    for task in (_cleanup_task, _cache_gc_task):
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    await publisher.disconnect()
    logger.info("copyforge.shutdown")


app = FastAPI(
    title="CopyForge",
    description="Ad copy generation from Dropbox media and landing pages",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Service info endpoint."""
    return {"service": "copyforge", "version": VERSION}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "copyforge", "version": VERSION}
