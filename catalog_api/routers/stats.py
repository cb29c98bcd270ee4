"""
catalog_api/routers/stats.py
Endpoints:
  GET  /api/stats             → stats snapshot (X-Cache: HIT | MISS)
  POST /api/stats/refresh     → drop the cache and recompute now
  GET  /api/stats/cache-info  → cache metadata for operators

Cache misses compute at most once: concurrent callers share the result.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response

from catalog_api.core.config import Settings
from catalog_api.core.refresh import RefreshCoordinator, RefreshTimeout
from catalog_api.deps import get_coordinator, get_settings

log = logging.getLogger("routers.stats")

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("")
async def get_stats(
    response: Response,
    coordinator: RefreshCoordinator = Depends(get_coordinator),
    settings: Settings = Depends(get_settings),
):
    result = await coordinator.serve()
    if result.hit:
        response.headers["X-Cache"] = "HIT"
        response.headers["X-Cache-Age"] = str(int(result.age_s or 0))
    else:
        response.headers["X-Cache"] = "MISS"
        response.headers["X-Calculation-Time"] = str(result.snapshot.calculation_duration_ms)
    return result.snapshot.to_dict(settings.tz)


@router.post("/refresh")
async def refresh_stats(
    coordinator: RefreshCoordinator = Depends(get_coordinator),
    settings: Settings = Depends(get_settings),
):
    try:
        snapshot = await coordinator.force_refresh()
    except RefreshTimeout as ex:
        log.error(str(ex))
        raise HTTPException(504, detail=str(ex))
    return {
        "message": "Stats cache refreshed successfully",
        "stats":   snapshot.to_dict(settings.tz),
    }


@router.get("/cache-info")
async def cache_info(
    coordinator: RefreshCoordinator = Depends(get_coordinator),
    settings: Settings = Depends(get_settings),
):
    info = coordinator.cache.info()
    last_updated = (
        datetime.fromtimestamp(info.last_updated, settings.tz).isoformat()
        if info.last_updated is not None else None
    )
    return {
        "valid":        info.valid,
        "lastUpdated":  last_updated,
        "age":          int(info.age_s) if info.age_s is not None else None,
        "ttl":          int(info.ttl_s),
        "calculating":  info.calculating,
        "pollInterval": settings.poll_interval_s,
    }
