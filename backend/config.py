#file: backend/config.py

import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional, Tuple

from dotenv import load_dotenv

DEFAULT_CITIES = [
    "Delhi", "Mumbai", "Bengaluru", "Kolkata", "Chennai", "Hyderabad", "Pune", "Ahmedabad",
    "Lucknow", "Jaipur", "Kanpur", "Nagpur", "Indore", "Bhopal", "Patna", "Surat",
    "Vadodara", "Visakhapatnam", "Coimbatore", "Ludhiana", "Agra", "Nashik", "Faridabad",
    "Meerut", "Rajkot", "Kochi", "Varanasi", "Srinagar", "Amritsar", "Guwahati",
]

OPENAQ_BASE_URL = "https://api.openaq.org"
WAQI_BASE_URL = "https://api.waqi.info"


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _get_list(name: str) -> Optional[List[str]]:
    raw = os.getenv(name)
    if not raw:
        return None
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or None


@dataclass(frozen=True)
class Settings:
    poll_interval: timedelta = timedelta(minutes=5)
    retention: timedelta = timedelta(hours=24)
    cities: Tuple[str, ...] = tuple(DEFAULT_CITIES)
    concurrency: int = 6
    upstream_timeout: float = 12.0
    city_cache_ttl: float = 60.0
    snapshot_cache_ttl: float = 120.0
    provider_order: Tuple[str, ...] = ("openaq", "waqi")
    openaq_api_key: Optional[str] = field(default=None, repr=False)
    openaq_base_url: str = OPENAQ_BASE_URL
    waqi_token: Optional[str] = field(default=None, repr=False)
    waqi_base_url: str = WAQI_BASE_URL
    poll_on_startup: bool = True
    poll_progress: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (and a .env file if present)."""
        load_dotenv()

        provider_order = tuple(p.lower() for p in (_get_list("PROVIDER_ORDER") or ["openaq", "waqi"]))
        unknown = [p for p in provider_order if p not in ("openaq", "waqi")]
        if unknown:
            raise ValueError(f"Unknown providers in PROVIDER_ORDER: {', '.join(unknown)}")

        return cls(
            poll_interval = timedelta(milliseconds = _get_float("AGG_POLL_INTERVAL_MS", 5 * 60 * 1000)),
            retention = timedelta(milliseconds = _get_float("AGG_KEEP_MS", 24 * 60 * 60 * 1000)),
            cities = tuple(_get_list("AGG_CITIES") or DEFAULT_CITIES),
            concurrency = max(1, int(_get_float("AGG_CONCURRENCY", 6))),
            upstream_timeout = _get_float("UPSTREAM_TIMEOUT_SECONDS", 12.0),
            city_cache_ttl = _get_float("CITY_CACHE_TTL_SECONDS", 60.0),
            snapshot_cache_ttl = _get_float("SNAPSHOT_CACHE_TTL_SECONDS", 120.0),
            provider_order = provider_order,
            openaq_api_key = os.getenv("OPENAQ_API_KEY") or None,
            openaq_base_url = (os.getenv("OPENAQ_BASE_URL") or OPENAQ_BASE_URL).rstrip("/"),
            waqi_token = os.getenv("WAQI_TOKEN") or None,
            waqi_base_url = (os.getenv("WAQI_BASE_URL") or WAQI_BASE_URL).rstrip("/"),
            poll_on_startup = _get_bool("POLL_ON_STARTUP", True),
            poll_progress = _get_bool("POLL_PROGRESS", False),
        )
