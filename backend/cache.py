# file: backend/cache.py

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

from cachetools import TTLCache


class ReadCache:
    """
    Short-TTL memoization for read paths.

    A value is served while now - cached_at < ttl. Concurrent misses for the
    same key share a single load. Loader exceptions propagate to every waiter
    and leave the cache untouched, so a failed fetch is never served as a result.
    """

    def __init__(self, ttl: float, maxsize: int = 256, timer: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._cache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._pending: Dict[Hashable, asyncio.Future] = {}

    async def get(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return self._cache[key]
        except KeyError:
            pass

        pending = self._pending.get(key)
        if pending is not None:
            return await pending

        pending = asyncio.ensure_future(loader())
        self._pending[key] = pending
        try:
            value = await pending
        finally:
            self._pending.pop(key, None)
        self._cache[key] = value
        logging.debug(f"[cache] stored {key!r} for {self.ttl}s")
        return value

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        if key is None:
            self._cache.clear()
        else:
            self._cache.pop(key, None)

    def __len__(self) -> int:
        return len(self._cache)
