"""Pytest configuration and shared fixtures."""

import json
import os
from pathlib import Path

import pytest

from catalog_api.core.store import JsonItemStore


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def write_items(path: Path, items, bump_mtime_s: float = 0) -> None:
    """Write items as JSON; optionally push the mtime forward so a poll sees it."""
    path.write_text(json.dumps(items))
    if bump_mtime_s:
        st = path.stat()
        os.utime(path, (st.st_atime + bump_mtime_s, st.st_mtime + bump_mtime_s))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_items():
    return [
        {"id": 1, "name": "Laptop", "category": "Electronics", "price": 1000},
        {"id": 2, "name": "Mouse", "category": "Electronics", "price": 25.5},
        {"id": 3, "name": "Chair", "category": "Furniture", "price": 150},
        {"id": 4, "name": "Mystery box"},
    ]


@pytest.fixture
def items_file(tmp_path, sample_items):
    path = tmp_path / "items.json"
    write_items(path, sample_items)
    return path


@pytest.fixture
def store(items_file):
    return JsonItemStore(items_file)
