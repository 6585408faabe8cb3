# file: backend/poller.py

import asyncio
import enum
import logging
import threading
from typing import Sequence

from tqdm.asyncio import tqdm

from backend.models import CitySample
from backend.providers import create_session
from backend.resolver import FallbackResolver
from backend.store import TimeSeriesStore


async def poll_all(session, cities: Sequence[str], resolver: FallbackResolver,
                   store: TimeSeriesStore, concurrency: int = 6, progress: bool = False) -> int:
    """
    Resolve every city with a bounded pool of workers sharing one queue.

    Each worker resolves a city and pushes the result before taking the next
    one, so a slow city only occupies its own worker. Error samples are logged
    and not pushed, so a failed cycle keeps the last good sample as latest.
    Returns the number of cities handled.
    """
    queue: asyncio.Queue = asyncio.Queue()
    for city in cities:
        queue.put_nowait(city)

    handled = 0

    with tqdm(total=len(cities), desc="Polling cities", disable=not progress) as pbar:

        async def worker() -> None:
            nonlocal handled
            while True:
                try:
                    city = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    sample = await resolver.resolve(session, city)
                except Exception as e:
                    logging.error(f"[poller] unexpected failure for {city}: {e}")
                    sample = CitySample(city=city, measurements=[], error="poll-failed", details=str(e))
                if sample.error:
                    logging.warning(f"[poller] {city}: {sample.error} ({sample.details})")
                else:
                    store.push(city, sample)
                handled += 1
                pbar.update(1)

        workers = [asyncio.create_task(worker()) for _ in range(max(1, min(concurrency, len(cities))))]
        await asyncio.gather(*workers)

    return handled


class PollerState(enum.Enum):
    IDLE = "idle"
    POLLING = "polling"


class Poller:
    """Runs poll cycles; a trigger that fires while a cycle is running is skipped."""

    def __init__(self, cities: Sequence[str], resolver: FallbackResolver, store: TimeSeriesStore,
                 concurrency: int = 6, timeout: float = 12.0, session_factory=create_session,
                 progress: bool = False):
        self.cities = list(cities)
        self.resolver = resolver
        self.store = store
        self.concurrency = concurrency
        self.timeout = timeout
        self.session_factory = session_factory
        self.progress = progress
        # Non-blocking acquire is the IDLE -> POLLING compare-and-set.
        self._guard = threading.Lock()
        self.cycles = 0

    @property
    def state(self) -> PollerState:
        return PollerState.POLLING if self._guard.locked() else PollerState.IDLE

    async def run_cycle(self) -> bool:
        """Poll all cities once. Returns False when skipped because a cycle is already running."""
        if not self._guard.acquire(blocking=False):
            logging.info("[poller] previous cycle still running, skipping")
            return False
        try:
            logging.info(f"[poller] polling {len(self.cities)} cities (concurrency {self.concurrency})")
            async with self.session_factory(self.timeout) as session:
                handled = await poll_all(session, self.cities, self.resolver, self.store,
                                         self.concurrency, progress=self.progress)
            self.cycles += 1
            logging.info(f"[poller] cycle finished, {handled} cities handled")
            return True
        finally:
            self._guard.release()
