"""Tests for the single-entry stats cache."""

import threading

import pytest

from catalog_api.core.aggregator import compute_stats
from catalog_api.core.stats_cache import StatsCache


@pytest.fixture
def cache(clock):
    return StatsCache(ttl_s=300, clock=clock)


@pytest.fixture
def snapshot():
    return compute_stats([{"price": 1}])


class TestTTL:
    """Hit before the TTL, miss from the TTL onwards."""

    def test_empty_cache_misses(self, cache):
        assert cache.get() is None
        assert cache.is_valid() is False
        assert cache.last_updated is None
        assert cache.age() is None

    def test_hit_just_before_expiry(self, cache, clock, snapshot):
        cache.set(snapshot)
        clock.advance(299.999)
        assert cache.get() is snapshot
        assert cache.is_valid() is True

    def test_miss_at_expiry(self, cache, clock, snapshot):
        cache.set(snapshot)
        clock.advance(300)
        assert cache.get() is None
        assert cache.is_valid() is False
        # stale snapshot keeps its timestamp until replaced or invalidated
        assert cache.last_updated is not None

    def test_age_tracks_clock(self, cache, clock, snapshot):
        cache.set(snapshot)
        clock.advance(42)
        assert cache.age() == 42

    def test_non_positive_ttl_rejected(self):
        with pytest.raises(ValueError):
            StatsCache(ttl_s=0)


class TestInvalidate:
    """invalidate() clears everything and bumps the generation."""

    def test_invalidate_clears_state(self, cache, snapshot):
        cache.set_calculating(True)
        cache.set(snapshot)
        cache.set_calculating(True)
        cache.invalidate()

        assert cache.get() is None
        assert cache.last_updated is None
        assert cache.is_calculating() is False

    def test_invalidate_twice_is_same_as_once(self, cache, snapshot):
        cache.set(snapshot)
        cache.invalidate()
        first = cache.info()
        cache.invalidate()
        second = cache.info()

        for info in (first, second):
            assert info.valid is False
            assert info.last_updated is None
            assert info.age_s is None
            assert info.calculating is False

    def test_generation_increments(self, cache):
        before = cache.generation
        cache.invalidate()
        assert cache.generation == before + 1


class TestSet:
    """set() installs, stamps and clears the calculating flag."""

    def test_set_clears_calculating(self, cache, snapshot):
        cache.set_calculating(True)
        assert cache.is_calculating() is True
        assert cache.set(snapshot) is True
        assert cache.is_calculating() is False

    def test_set_stamps_clock(self, cache, clock, snapshot):
        cache.set(snapshot)
        assert cache.last_updated == clock.now

    def test_superseded_generation_is_discarded(self, cache, snapshot):
        generation = cache.generation
        cache.invalidate()
        assert cache.set(snapshot, generation=generation) is False
        assert cache.get() is None
        assert cache.last_updated is None

    def test_current_generation_is_installed(self, cache, snapshot):
        assert cache.set(snapshot, generation=cache.generation) is True
        assert cache.get() is snapshot


def test_info_reports_state(cache, clock, snapshot):
    cache.set(snapshot)
    clock.advance(10)
    cache.set_calculating(True)
    info = cache.info()

    assert info.valid is True
    assert info.age_s == 10
    assert info.ttl_s == 300
    assert info.calculating is True


def test_concurrent_set_and_invalidate_never_expose_partial_state(snapshot):
    cache = StatsCache(ttl_s=300)
    stop = threading.Event()
    violations = []

    def writer():
        while not stop.is_set():
            cache.set(snapshot)
            cache.invalidate()

    def reader():
        for _ in range(5000):
            info = cache.info()
            if (info.last_updated is None) != (info.age_s is None):
                violations.append(info)
            if info.valid and info.last_updated is None:
                violations.append(info)

    threads = [threading.Thread(target=writer) for _ in range(2)]
    for t in threads:
        t.start()
    reader()
    stop.set()
    for t in threads:
        t.join()

    assert violations == []
