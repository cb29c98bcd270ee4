"""
catalog_api/core/store.py
JSON-file item store.
  • read_items()    → full collection (missing file = empty catalog)
  • last_modified() → file mtime, None while the file does not exist
  • add_item()      → append + atomic replace (temp file, then os.replace)
All methods are blocking; async callers push them through asyncio.to_thread.
"""

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Optional

log = logging.getLogger("store")


class StoreError(Exception):
    """Base class for item store failures."""


class CorruptedSourceError(StoreError):
    """The data file exists but does not hold a JSON list of items."""

    def __init__(self, path: Path, reason: str):
        super().__init__("Data file is corrupted")
        self.path = path
        self.reason = reason


class JsonItemStore:
    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._write_lock = threading.Lock()

    def read_items(self) -> list[dict[str, Any]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            log.info(f"{self.path} not found — returning empty collection")
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as ex:
            log.error(f"Invalid JSON in {self.path}: {ex}")
            raise CorruptedSourceError(self.path, str(ex)) from ex
        if not isinstance(data, list):
            log.error(f"{self.path} holds {type(data).__name__}, expected a list")
            raise CorruptedSourceError(self.path, f"top-level {type(data).__name__}")
        return data

    def last_modified(self) -> Optional[float]:
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None

    def get_item(self, item_id: int) -> Optional[dict[str, Any]]:
        for item in self.read_items():
            if isinstance(item, dict) and item.get("id") == item_id:
                return item
        return None

    def add_item(self, fields: dict[str, Any]) -> dict[str, Any]:
        with self._write_lock:
            items = self.read_items()
            item = {**fields, "id": self._next_id(items)}
            items.append(item)
            self._write(items)
        log.info(f"Stored item {item['id']} ({len(items)} items total)")
        return item

    @staticmethod
    def _next_id(items: list[dict[str, Any]]) -> int:
        """Epoch milliseconds, bumped past the largest existing id."""
        ids = [
            i["id"] for i in items
            if isinstance(i, dict) and isinstance(i.get("id"), int) and not isinstance(i["id"], bool)
        ]
        return max(int(time.time() * 1000), max(ids, default=0) + 1)

    def _write(self, items: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(items, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
