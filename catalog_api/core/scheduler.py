"""
catalog_api/core/scheduler.py
═══════════════════════════════════════════════════════════════════════════════
Background jobs started from the app lifespan:

  1. Change poller: polls the data file mtime once at startup, then every
     poll_interval_s. One sleep per cycle → timers never pile up.
  2. Warm-up: one stats computation so the first request is a cache hit.

Both are fire-and-forget: failures are logged, never raised. Both tasks are
cancelled when the app shuts down.
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging

from catalog_api.core.change_detector import ChangeDetector
from catalog_api.core.refresh import RefreshCoordinator

log = logging.getLogger("scheduler")


def _poll_once(detector: ChangeDetector) -> None:
    try:
        detector.poll()
    except Exception as ex:
        log.error(f"Change poll error (continuing): {ex}")


async def run_change_poller(detector: ChangeDetector, interval_s: float) -> None:
    """Runs until cancelled."""
    log.info(f"Change poller started (every {interval_s:g}s)")
    try:
        while True:
            await asyncio.sleep(interval_s)
            _poll_once(detector)
    finally:
        log.info("Change poller stopped")


def start_background_jobs(
    coordinator: RefreshCoordinator,
    interval_s: float,
) -> list[asyncio.Task]:
    # establish the watermark before warm-up reads the file
    _poll_once(coordinator.detector)
    return [
        asyncio.create_task(coordinator.warm_up(), name="stats-warm-up"),
        asyncio.create_task(
            run_change_poller(coordinator.detector, interval_s), name="change-poller"
        ),
    ]


async def stop_background_jobs(tasks: list[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
