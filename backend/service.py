# file: backend/service.py

import logging
from typing import List, Optional, Sequence

from backend.cache import ReadCache
from backend.config import Settings
from backend.errors import NoProviderConfigured
from backend.models import CitySample, HistoryPoint, Snapshot
from backend.poller import Poller
from backend.providers import create_session
from backend.resolver import FallbackResolver
from backend.store import TimeSeriesStore
from backend.utils import normalize_city, utc_now

SNAPSHOT_KEY = "__snapshot__"


class AirQualityService:
    """Wires providers, store, poller and read caches behind the read API used by the web layer."""

    def __init__(self, settings: Settings, adapters: Sequence, store: Optional[TimeSeriesStore] = None,
                 session_factory=create_session, retry_delay: float = 1.5):
        self.settings = settings
        self.store = store or TimeSeriesStore(retention=settings.retention)
        self.session_factory = session_factory
        self.resolver = FallbackResolver(adapters)
        self.live_resolver = FallbackResolver(adapters, retry_transport=True, retry_delay=retry_delay)
        self.poller = Poller(settings.cities, self.resolver, self.store,
                             concurrency=settings.concurrency, timeout=settings.upstream_timeout,
                             session_factory=session_factory, progress=settings.poll_progress)
        self.city_cache = ReadCache(ttl=settings.city_cache_ttl)
        self.snapshot_cache = ReadCache(ttl=settings.snapshot_cache_ttl, maxsize=1)

    def canonical_city(self, city: str) -> str:
        """Configured spelling of a city when it is polled, else the request with whitespace collapsed."""
        wanted = normalize_city(city)
        for known in self.settings.cities:
            if normalize_city(known) == wanted:
                return known
        return " ".join(city.split())

    async def get_city(self, city: str) -> CitySample:
        name = self.canonical_city(city)
        sample = await self.city_cache.get(normalize_city(name), lambda: self._fetch_city(name))
        if sample.city != name:
            sample = sample.model_copy(update={"city": name})
        return sample

    async def _fetch_city(self, city: str) -> CitySample:
        async with self.session_factory(self.settings.upstream_timeout) as session:
            sample = await self.live_resolver.resolve(session, city)
        if not sample.error:
            return sample

        fallback = self._latest_good(city)
        if fallback is not None:
            logging.info(f"Live lookup for {city} failed, serving aggregated sample from {fallback.captured_at}")
            return fallback
        raise NoProviderConfigured(city, sample.details)

    def _latest_good(self, city: str) -> Optional[CitySample]:
        wanted = normalize_city(city)
        for known in [city] + self.store.cities():
            if normalize_city(known) != wanted:
                continue
            latest = self.store.get_latest(known)
            if latest is not None and not latest.error:
                return latest
        return None

    async def get_snapshot(self) -> Snapshot:
        return await self.snapshot_cache.get(SNAPSHOT_KEY, self._build_snapshot)

    async def _build_snapshot(self) -> Snapshot:
        return Snapshot(ts=utc_now(), cities=self.store.get_all_latest(self.settings.cities))

    def get_history(self, city: str) -> List[HistoryPoint]:
        return self.store.get_history(self.canonical_city(city))

    async def poll_once(self) -> bool:
        return await self.poller.run_cycle()
