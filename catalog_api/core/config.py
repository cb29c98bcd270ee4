"""
catalog_api/core/config.py
═══════════════════════════════════════════════════════════════════════════════
Runtime configuration. Everything is read from environment variables once,
then frozen into a Settings object that create_app() injects into the
store, the stats cache and the change poller.

  CATALOG_DATA_PATH        →  JSON file backing the item store
  STATS_CACHE_TTL_S        →  stats snapshot time-to-live   (default 300 s)
  STATS_POLL_INTERVAL_S    →  data file mtime poll period   (default 30 s)
  STATS_REFRESH_TIMEOUT_S  →  optional cap on a forced refresh (unset = none)
  CATALOG_TZ               →  timezone used when rendering timestamps
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pytz

log = logging.getLogger("config")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

DEFAULT_DATA_PATH        = Path("data") / "items.json"
DEFAULT_TTL_S            = 300.0
DEFAULT_POLL_INTERVAL_S  = 30.0
MAX_TTL_S                = 24 * 60 * 60
MAX_POLL_INTERVAL_S      = 60 * 60


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    data_path:         Path            = DEFAULT_DATA_PATH
    stats_ttl_s:       float           = DEFAULT_TTL_S
    poll_interval_s:   float           = DEFAULT_POLL_INTERVAL_S
    refresh_timeout_s: Optional[float] = None
    timezone:          str             = "UTC"
    cors_origins:      list[str]       = field(default_factory=lambda: ["*"])
    log_level:         str             = "INFO"

    def __post_init__(self):
        if not 0 < self.stats_ttl_s <= MAX_TTL_S:
            raise ValueError(f"stats_ttl_s must be in (0, {MAX_TTL_S}], got {self.stats_ttl_s}")
        if not 0 < self.poll_interval_s <= MAX_POLL_INTERVAL_S:
            raise ValueError(
                f"poll_interval_s must be in (0, {MAX_POLL_INTERVAL_S}], got {self.poll_interval_s}"
            )
        if self.refresh_timeout_s is not None and self.refresh_timeout_s <= 0:
            raise ValueError("refresh_timeout_s must be positive when set")
        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone {self.timezone!r}") from None

    @property
    def tz(self):
        return pytz.timezone(self.timezone)

    @classmethod
    def from_env(cls) -> "Settings":
        origins   = os.environ.get("CORS_ORIGINS", "*")
        data_path = Path(os.environ.get("CATALOG_DATA_PATH", str(DEFAULT_DATA_PATH)))
        if not data_path.exists():
            log.warning(f"{data_path} does not exist yet — catalog starts empty")
        return cls(
            data_path=data_path,
            stats_ttl_s=_env_float("STATS_CACHE_TTL_S", DEFAULT_TTL_S),
            poll_interval_s=_env_float("STATS_POLL_INTERVAL_S", DEFAULT_POLL_INTERVAL_S),
            refresh_timeout_s=_env_float("STATS_REFRESH_TIMEOUT_S", None),
            timezone=os.environ.get("CATALOG_TZ", "UTC"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
