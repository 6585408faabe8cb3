#file: backend/aqi.py

import math
from typing import Iterable, Optional

from backend.models import Measurement

CATEGORIES = [
    (50, "Good"),
    (100, "Moderate"),
    (150, "Unhealthy for Sensitive Groups"),
    (200, "Unhealthy"),
    (300, "Very Unhealthy"),
]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _pick_concentration(measurements: Iterable[Measurement]) -> Optional[float]:
    pm25 = pm10 = None
    for m in measurements:
        if m.parameter == "pm25" and pm25 is None:
            pm25 = m.value
        elif m.parameter == "pm10" and pm10 is None:
            pm10 = m.value
    return pm25 if pm25 is not None else pm10


def index_for_concentration(v: float) -> int:
    """Map a PM concentration to the simplified index."""
    if v <= 12:
        return _round_half_up(25 * v / 12)
    if v <= 35.4:
        return _round_half_up(50 + 50 * (v - 12) / (35.4 - 12))
    if v <= 55.4:
        return _round_half_up(100 + 100 * (v - 35.4) / (55.4 - 35.4))
    return _round_half_up(200 + 200 * (v - 55.4) / 100)


def compute_index(measurements: Iterable[Measurement]) -> Optional[int]:
    """
    Display-only AQI estimate from PM2.5, falling back to PM10.

    Not the official EPA/CPCB breakpoint table. Returns None when neither
    pollutant was reported.
    """
    v = _pick_concentration(measurements)
    if v is None:
        return None
    return index_for_concentration(v)


def aqi_category(index: Optional[int]) -> Optional[str]:
    """Band label for an index value."""
    if index is None:
        return None
    for upper, label in CATEGORIES:
        if index <= upper:
            return label
    return "Hazardous"
