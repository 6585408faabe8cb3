# file: backend/store.py

import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from backend.models import CityEntry, CitySample, HistoryPoint
from backend.utils import utc_now


class TimeSeriesStore:
    """
    In-memory latest sample and retention-bounded history per city.

    Pushes arrive from the scheduler thread while reads come from the web
    event loop, so every entry update and every read pass runs under one lock.
    Entries are created on first push and live for the process lifetime.
    """

    def __init__(self, retention: timedelta = timedelta(hours=24),
                 clock: Callable[[], datetime] = utc_now):
        self.retention = retention
        self._clock = clock
        self._entries: Dict[str, CityEntry] = {}
        self._lock = threading.Lock()

    def push(self, city: str, sample: CitySample) -> CitySample:
        """Record a sample as the city's latest; non-error samples also go into history."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(city)
            if entry is None:
                entry = self._entries[city] = CityEntry()
            if entry.latest is not None and entry.latest.captured_at and entry.latest.captured_at > now:
                # Wall clock stepped backwards; keep timestamps non-decreasing.
                now = entry.latest.captured_at

            stored = sample.model_copy(update={"captured_at": now})
            history = entry.history
            if stored.error is None:
                history = history + [HistoryPoint(t=now, computed_aqi=stored.computed_aqi,
                                                  measurements=list(stored.measurements))]
            cutoff = now - self.retention
            history = [point for point in history if point.t >= cutoff]

            # Swap in a new entry so readers never see a half-updated one.
            self._entries[city] = CityEntry(latest=stored, history=history)
        return stored

    def get_latest(self, city: str) -> Optional[CitySample]:
        with self._lock:
            entry = self._entries.get(city)
            return entry.latest if entry else None

    def get_history(self, city: str) -> List[HistoryPoint]:
        """Copy of the city's history, oldest first."""
        with self._lock:
            entry = self._entries.get(city)
            return list(entry.history) if entry else []

    def get_all_latest(self, cities: Iterable[str]) -> Dict[str, Optional[CitySample]]:
        with self._lock:
            return {city: (self._entries[city].latest if city in self._entries else None) for city in cities}

    def cities(self) -> List[str]:
        with self._lock:
            return list(self._entries)
