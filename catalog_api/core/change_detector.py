"""
catalog_api/core/change_detector.py
Polls the item store's mtime and fires on_change() when it moves forward.
An absent file is "no change", never an error.
"""

import logging
import threading
from typing import Callable, Optional, Protocol

log = logging.getLogger("change_detector")


class ModTimeSource(Protocol):
    def last_modified(self) -> Optional[float]: ...


class ChangeDetector:
    def __init__(self, store: ModTimeSource, on_change: Callable[[], None]):
        self._store     = store
        self._on_change = on_change
        self._lock      = threading.Lock()
        self._watermark: Optional[float] = None

    @property
    def watermark(self) -> Optional[float]:
        with self._lock:
            return self._watermark

    def poll(self) -> bool:
        """Return True if the store changed since the previous poll."""
        current = self._store.last_modified()
        if current is None:
            return False

        with self._lock:
            previous = self._watermark
            self._watermark = current

        if previous is not None and current > previous:
            log.info("Data file modified, invalidating stats cache")
            self._on_change()
            return True
        return False
