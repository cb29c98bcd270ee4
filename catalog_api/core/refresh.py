"""
catalog_api/core/refresh.py
═══════════════════════════════════════════════════════════════════════════════
Serve-from-cache-else-compute-once orchestration for /api/stats.

  1. ONE computation at a time: the in-flight computation is a shared task,
     concurrent cache misses await it and all receive the same snapshot
  2. A computation started before an invalidate() is drained, then replaced;
     its result is never installed (generation check in StatsCache.set)
  3. File read + aggregation run in a worker thread → the event loop keeps
     serving item requests while stats are computed
  4. Failed computation → nothing installed, calculating flag cleared,
     next request retries
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from catalog_api.core.aggregator import StatsSnapshot, compute_stats
from catalog_api.core.change_detector import ChangeDetector
from catalog_api.core.stats_cache import StatsCache
from catalog_api.core.store import JsonItemStore

log = logging.getLogger("refresh")


class RefreshTimeout(Exception):
    """A forced refresh did not finish within the configured timeout."""


@dataclass(frozen=True)
class ServeResult:
    snapshot: StatsSnapshot
    hit:      bool
    age_s:    Optional[float] = None


@dataclass
class _InFlight:
    task:       asyncio.Task
    generation: int


class RefreshCoordinator:
    def __init__(
        self,
        store: JsonItemStore,
        cache: StatsCache,
        detector: ChangeDetector,
        refresh_timeout_s: Optional[float] = None,
    ):
        self.store    = store
        self.cache    = cache
        self.detector = detector
        self.refresh_timeout_s = refresh_timeout_s
        self._inflight: Optional[_InFlight] = None
        self.computations = 0

    # ── Computation ──────────────────────────────────────────────────────────

    def _compute_blocking(self) -> StatsSnapshot:
        return compute_stats(self.store.read_items())

    async def _compute(self, generation: int) -> StatsSnapshot:
        self.computations += 1
        self.cache.set_calculating(True)
        installed = False
        try:
            snapshot = await asyncio.to_thread(self._compute_blocking)
            installed = self.cache.set(snapshot, generation=generation)
        except Exception as ex:
            log.error(f"Stats computation failed: {ex}")
            raise
        finally:
            # failed, cancelled or superseded; no newer computation runs until this one ends
            if not installed:
                self.cache.set_calculating(False)
        return snapshot

    def _on_done(self, task: asyncio.Task) -> None:
        if self._inflight is not None and self._inflight.task is task:
            self._inflight = None
        # mark the exception retrieved; every waiter may have gone away
        if not task.cancelled():
            task.exception()

    def _start(self, generation: int) -> _InFlight:
        task = asyncio.create_task(self._compute(generation), name="stats-compute")
        task.add_done_callback(self._on_done)
        self._inflight = _InFlight(task, generation)
        return self._inflight

    async def _current_snapshot(self) -> StatsSnapshot:
        """Join the in-flight computation for the current generation or start one."""
        while True:
            generation = self.cache.generation
            running = self._inflight
            if running is not None and running.generation != generation:
                # superseded by an invalidation: let it finish, then start fresh
                await asyncio.wait({running.task})
                continue
            if running is None:
                running = self._start(generation)
            return await asyncio.shield(running.task)

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    # ── Public API ───────────────────────────────────────────────────────────

    async def serve(self) -> ServeResult:
        self.detector.poll()

        snapshot = self.cache.get()
        if snapshot is not None:
            return ServeResult(snapshot, hit=True, age_s=self.cache.age())

        return ServeResult(await self._current_snapshot(), hit=False)

    async def warm_up(self) -> bool:
        """Fill the cache once at startup. Never raises."""
        try:
            await self._current_snapshot()
        except Exception as ex:
            log.error(f"Failed to warm stats cache: {ex}")
            return False
        log.info("Stats cache warmed on startup")
        return True

    async def force_refresh(self) -> StatsSnapshot:
        self.cache.invalidate()
        if self.refresh_timeout_s is None:
            return await self._current_snapshot()
        try:
            return await asyncio.wait_for(self._current_snapshot(), self.refresh_timeout_s)
        except asyncio.TimeoutError:
            raise RefreshTimeout(
                f"Stats refresh exceeded {self.refresh_timeout_s:.1f}s"
            ) from None
