"""Maintenance endpoints: on-demand cleanup and cache statistics."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends

from copy_forge.core.cleanup import CleanupMonitor, get_cleanup_monitor
from copy_forge.core.interpretation_cache import InterpretationCache, get_interpretation_cache

router = APIRouter()


@router.post("/cleanup")
async def run_cleanup(
    monitor: CleanupMonitor = Depends(get_cleanup_monitor),
) -> dict[str, Any]:
    """Sweep orphaned temp files and temp bucket objects now."""
    report = await monitor.perform_cleanup()
    return report.to_dict()


@router.get("/cache-stats")
async def cache_stats(
    cache: InterpretationCache = Depends(get_interpretation_cache),
) -> dict[str, Any]:
    return asdict(cache.stats())
