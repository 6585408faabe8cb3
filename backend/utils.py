#file: backend/utils.py

from datetime import datetime
import pytz
from typing import Optional

def utc_now() -> datetime:
    """Get current time as a timezone-aware UTC datetime."""
    return datetime.now(pytz.utc)

def normalize_city(city: str) -> str:
    """Normalize a city name for use as a cache key."""
    return " ".join(city.split()).casefold()

def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp from an upstream payload, None if missing or invalid."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = pytz.utc.localize(parsed)
    return parsed
