"""
catalog_api/main.py  — Catalog API
Startup: records the data file watermark, warms the stats cache, launches
the change poller. Everything the routers need is built here and handed to
them through app.state.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_api.core.change_detector import ChangeDetector
from catalog_api.core.config import Settings, configure_logging
from catalog_api.core.refresh import RefreshCoordinator
from catalog_api.core.scheduler import start_background_jobs, stop_background_jobs
from catalog_api.core.stats_cache import StatsCache
from catalog_api.core.store import CorruptedSourceError, JsonItemStore, StoreError
from catalog_api.routers import items, stats

log = logging.getLogger("main")

VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    store       = JsonItemStore(settings.data_path)
    cache       = StatsCache(ttl_s=settings.stats_ttl_s)
    detector    = ChangeDetector(store, on_change=cache.invalidate)
    coordinator = RefreshCoordinator(
        store, cache, detector, refresh_timeout_s=settings.refresh_timeout_s,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(f"🚀 Catalog API v{VERSION} starting (data: {settings.data_path})")
        tasks = start_background_jobs(coordinator, settings.poll_interval_s)
        yield
        log.info("🛑 Shutting down...")
        await stop_background_jobs(tasks)

    app = FastAPI(
        title="Catalog API",
        description=(
            "Item catalog backed by a JSON file, with a cached statistics "
            "endpoint. Stats refresh every "
            f"{settings.stats_ttl_s:g}s or as soon as the data file changes."
        ),
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings    = settings
    app.state.store       = store
    app.state.coordinator = coordinator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Cache", "X-Cache-Age", "X-Calculation-Time"],
    )

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(items.router)
    app.include_router(stats.router)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        if isinstance(exc, CorruptedSourceError):
            log.error(f"{request.url.path}: {exc.path} is corrupted ({exc.reason})")
        else:
            log.error(f"{request.url.path}: store error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "detail": str(exc)},
        )

    @app.get("/", tags=["meta"])
    async def root():
        return {
            "status":  "online",
            "version": VERSION,
            "endpoints": {
                "items":      "/api/items",
                "item":       "/api/items/{id}",
                "stats":      "/api/stats",
                "refresh":    "/api/stats/refresh",
                "cache_info": "/api/stats/cache-info",
                "health":     "/health",
                "docs":       "/docs",
            },
        }

    @app.get("/health", tags=["meta"])
    async def health():
        """Lightweight health check."""
        info = cache.info()
        return {
            "status":      "healthy" if info.last_updated is not None else "warming_up",
            "stats_ready": info.valid,
            "calculating": info.calculating,
            "data_file": {
                "path":   str(settings.data_path),
                "exists": store.last_modified() is not None,
            },
        }

    return app


_settings = Settings.from_env()
configure_logging(_settings.log_level)
app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("catalog_api.main:app", host="0.0.0.0", port=8000)
