"""
catalog_api/core/stats_cache.py
═══════════════════════════════════════════════════════════════════════════
Single-entry TTL cache for the stats snapshot.
  • Every transition runs under one threading lock → readers never see a
    snapshot paired with another snapshot's timestamp
  • snapshot is present iff last_updated is present
  • invalidate() bumps a generation counter; a computation that started
    before the bump cannot install its result afterwards
  • No method raises
═══════════════════════════════════════════════════════════════════════════
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from catalog_api.core.aggregator import StatsSnapshot

log = logging.getLogger("stats_cache")


@dataclass(frozen=True)
class CacheInfo:
    valid:        bool
    last_updated: Optional[float]
    age_s:        Optional[float]
    ttl_s:        float
    calculating:  bool
    generation:   int


class StatsCache:
    def __init__(self, ttl_s: float = 300.0, clock: Callable[[], float] = time.time):
        if ttl_s <= 0:
            raise ValueError(f"ttl_s must be positive, got {ttl_s}")
        self._ttl          = float(ttl_s)
        self._clock        = clock
        self._lock         = threading.Lock()
        self._snapshot:     Optional[StatsSnapshot] = None
        self._last_updated: Optional[float] = None
        self._calculating  = False
        self._generation   = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def last_updated(self) -> Optional[float]:
        with self._lock:
            return self._last_updated

    def _valid_locked(self, now: float) -> bool:
        return self._snapshot is not None and now - self._last_updated < self._ttl

    def is_valid(self) -> bool:
        with self._lock:
            return self._valid_locked(self._clock())

    def get(self) -> Optional[StatsSnapshot]:
        """Snapshot if present and younger than the TTL, else None."""
        with self._lock:
            return self._snapshot if self._valid_locked(self._clock()) else None

    def age(self) -> Optional[float]:
        with self._lock:
            if self._last_updated is None:
                return None
            return self._clock() - self._last_updated

    def set(self, snapshot: StatsSnapshot, generation: Optional[int] = None) -> bool:
        """
        Install a snapshot and clear the calculating flag.
        With generation given, a result from before the latest invalidate()
        is dropped and False is returned.
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                log.info(
                    f"Discarding stats from generation {generation} "
                    f"(current {self._generation})"
                )
                return False
            self._snapshot     = snapshot
            self._last_updated = self._clock()
            self._calculating  = False
            return True

    def invalidate(self) -> None:
        with self._lock:
            self._snapshot     = None
            self._last_updated = None
            self._calculating  = False
            self._generation  += 1
        log.info("Stats cache invalidated")

    def is_calculating(self) -> bool:
        with self._lock:
            return self._calculating

    def set_calculating(self, status: bool) -> None:
        with self._lock:
            self._calculating = bool(status)

    def info(self) -> CacheInfo:
        with self._lock:
            now = self._clock()
            return CacheInfo(
                valid=self._valid_locked(now),
                last_updated=self._last_updated,
                age_s=None if self._last_updated is None else now - self._last_updated,
                ttl_s=self._ttl,
                calculating=self._calculating,
                generation=self._generation,
            )
