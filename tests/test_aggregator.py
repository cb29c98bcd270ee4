"""Tests for the stats aggregator."""

import pytest

from catalog_api.core.aggregator import StatsSnapshot, compute_stats, parse_price


def test_mixed_prices_and_categories():
    items = [
        {"price": 10},
        {"price": 20},
        {"price": "bad"},
        {"category": "A"},
        {"price": 5, "category": "A"},
    ]
    stats = compute_stats(items)

    assert stats.total == 5
    assert stats.valid_item_count == 3
    assert stats.average_price == 11.67
    assert stats.total_value == 35
    assert stats.price_range == (5, 20)
    assert dict(stats.categories) == {"A": 2}


def test_empty_collection():
    stats = compute_stats([])

    assert stats.total == 0
    assert stats.average_price == 0
    assert stats.total_value == 0
    assert stats.price_range == (0, 0)
    assert dict(stats.categories) == {}
    assert stats.valid_item_count == 0


def test_no_valid_prices_still_counts_items():
    stats = compute_stats([{"price": -1, "category": "X"}, {"price": None}, {}])

    assert stats.total == 3
    assert stats.valid_item_count == 0
    assert stats.average_price == 0
    assert stats.price_range == (0, 0)
    assert dict(stats.categories) == {"X": 1}


def test_non_object_entries_count_toward_total_only():
    stats = compute_stats([42, "text", None, {"price": 3}])

    assert stats.total == 4
    assert stats.valid_item_count == 1
    assert stats.total_value == 3


def test_rounding_is_half_up():
    stats = compute_stats([{"price": 0.125}, {"price": 0.125}])
    assert stats.average_price == 0.13


def test_empty_category_is_ignored():
    stats = compute_stats([{"category": ""}, {"category": "B"}])
    assert dict(stats.categories) == {"B": 1}


def test_computed_at_uses_clock():
    stats = compute_stats([], clock=lambda: 1234.5)
    assert stats.computed_at == 1234.5


@pytest.mark.parametrize(
    "raw,expected",
    [
        (10, 10.0),
        (0, 0.0),
        (2.5, 2.5),
        ("7.25", 7.25),
        (" 3 ", 3.0),
        ("bad", None),
        ("", None),
        (None, None),
        (True, None),
        (-0.01, None),
        (float("nan"), None),
        (float("inf"), None),
        ([1], None),
        (10**400, None),
        ("1e400", None),
    ],
)
def test_parse_price(raw, expected):
    assert parse_price(raw) == expected


class TestSnapshotWireForm:
    """Tests for StatsSnapshot.to_dict."""

    def test_camel_case_keys(self):
        snapshot = StatsSnapshot(
            total=2,
            average_price=1.5,
            total_value=3.0,
            price_range=(1.0, 2.0),
            categories={"A": 2},
            valid_item_count=2,
            calculation_duration_ms=0.01,
            computed_at=0.0,
        )
        wire = snapshot.to_dict()

        assert wire == {
            "total": 2,
            "averagePrice": 1.5,
            "totalValue": 3.0,
            "priceRange": {"min": 1.0, "max": 2.0},
            "categories": {"A": 2},
            "validItemCount": 2,
            "calculationDurationMs": 0.01,
            "computedAt": "1970-01-01T00:00:00+00:00",
        }

    def test_categories_are_read_only(self):
        stats = compute_stats([{"category": "A"}])
        with pytest.raises(TypeError):
            stats.categories["A"] = 5


def test_oversized_integer_price_is_skipped():
    stats = compute_stats([{"price": 10**400}, {"price": 5}])

    assert stats.total == 2
    assert stats.valid_item_count == 1
    assert stats.total_value == 5
