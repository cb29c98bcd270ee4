"""
catalog_api/core/aggregator.py
Single-pass statistics over the item collection.
Pure: no state, no I/O. Malformed prices are skipped, never raised.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional

log = logging.getLogger("aggregator")


@dataclass(frozen=True)
class StatsSnapshot:
    total:                   int
    average_price:           float
    total_value:             float
    price_range:             tuple[float, float]
    categories:              Mapping[str, int] = field(default_factory=dict)
    valid_item_count:        int   = 0
    calculation_duration_ms: float = 0.0
    computed_at:             float = 0.0   # epoch seconds

    def to_dict(self, tz=timezone.utc) -> dict:
        """camelCase wire form served by /api/stats."""
        lo, hi = self.price_range
        return {
            "total":                 self.total,
            "averagePrice":          self.average_price,
            "totalValue":            self.total_value,
            "priceRange":            {"min": lo, "max": hi},
            "categories":            dict(self.categories),
            "validItemCount":        self.valid_item_count,
            "calculationDurationMs": self.calculation_duration_ms,
            "computedAt":            datetime.fromtimestamp(self.computed_at, tz).isoformat(),
        }


def _round2(value: float) -> float:
    # half-up, matching what the frontend displays
    return math.floor(value * 100 + 0.5) / 100


def parse_price(value: Any) -> Optional[float]:
    """Return the price as a float if it is a finite number >= 0, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            price = float(value)
        elif isinstance(value, str):
            price = float(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(price) or price < 0:
        return None
    return price


def compute_stats(
    items: Iterable[Any],
    clock: Callable[[], float] = time.time,
) -> StatsSnapshot:
    t0 = time.perf_counter()

    total       = 0
    valid_count = 0
    price_sum   = 0.0
    lo, hi      = math.inf, -math.inf
    categories: dict[str, int] = {}

    for item in items:
        total += 1
        if not isinstance(item, Mapping):
            continue

        price = parse_price(item.get("price"))
        if price is not None:
            valid_count += 1
            price_sum += price
            lo = min(lo, price)
            hi = max(hi, price)

        category = item.get("category")
        if category:
            key = category if isinstance(category, str) else str(category)
            categories[key] = categories.get(key, 0) + 1

    elapsed_ms = (time.perf_counter() - t0) * 1000
    log.info(f"Stats calculated in {elapsed_ms:.2f}ms for {total} items")

    return StatsSnapshot(
        total=total,
        average_price=_round2(price_sum / valid_count) if valid_count else 0,
        total_value=_round2(price_sum),
        price_range=(lo, hi) if valid_count else (0, 0),
        categories=MappingProxyType(categories),
        valid_item_count=valid_count,
        calculation_duration_ms=_round2(elapsed_ms),
        computed_at=clock(),
    )
