# file: backend/resolver.py

import asyncio
import logging
from typing import Optional, Sequence

from backend.errors import MalformedResponse, ProviderError, TransportError
from backend.models import CitySample

NO_PROVIDER = "no-provider"


class FallbackResolver:
    """Try provider adapters in priority order for one city."""

    def __init__(self, adapters: Sequence, retry_transport: bool = False, retry_delay: float = 1.0):
        self.adapters = list(adapters)
        self.retry_transport = retry_transport
        self.retry_delay = retry_delay

    async def resolve(self, session, city: str) -> CitySample:
        """
        Return the first adapter result carrying measurements.

        An adapter that succeeds with no measurements is kept as a fallback
        answer while later adapters are tried. When every adapter raises, the
        returned sample carries error="no-provider" and no measurements.
        """
        empty_result: Optional[CitySample] = None
        failures = []
        for adapter in self.adapters:
            try:
                sample = await self._call(adapter, session, city)
            except (ProviderError, TransportError, MalformedResponse) as e:
                logging.warning(f"[resolver] {adapter.name} failed for {city}: {e}")
                failures.append(str(e))
                continue
            if sample.measurements:
                return sample
            if empty_result is None:
                empty_result = sample

        if empty_result is not None:
            return empty_result
        if not self.adapters:
            logging.warning(f"[resolver] no providers configured for {city}")
        return CitySample(city=city, measurements=[], computed_aqi=None, error=NO_PROVIDER,
                          details="; ".join(failures) or "no providers configured")

    async def _call(self, adapter, session, city: str) -> CitySample:
        try:
            return await adapter.fetch_city(session, city)
        except TransportError as e:
            if not self.retry_transport:
                raise
            logging.info(f"[resolver] retrying {adapter.name} for {city} after {e}")
            await asyncio.sleep(self.retry_delay)
            return await adapter.fetch_city(session, city)


async def resolve_city(session, city: str, adapters: Sequence) -> CitySample:
    """Resolve one city with the aggregation policy (no retries)."""
    return await FallbackResolver(adapters).resolve(session, city)
