"""Shared fakes for the test suite: clocks, adapters and an aiohttp-like session."""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

import pytz

from backend.aqi import compute_index
from backend.models import CitySample, Measurement


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2025, 1, 1, tzinfo=pytz.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeTimer:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def make_sample(city, pm25=None, pm10=None, error=None, provider="fake"):
    measurements = []
    if pm25 is not None:
        measurements.append(Measurement(parameter="pm25", value=pm25, unit="µg/m³"))
    if pm10 is not None:
        measurements.append(Measurement(parameter="pm10", value=pm10, unit="µg/m³"))
    return CitySample(city=city, measurements=measurements, computed_aqi=compute_index(measurements),
                      error=error, provider=provider)


class FakeAdapter:
    """Adapter returning canned samples or raising canned errors, recording every call."""

    def __init__(self, name="fake", pm25=30.0, errors=None, delay=0.0, empty=False):
        self.name = name
        self.pm25 = pm25
        self.errors = list(errors or [])
        self.delay = delay
        self.empty = empty
        self.calls = []

    async def fetch_city(self, session, city):
        self.calls.append(city)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.errors:
            error = self.errors.pop(0) if len(self.errors) > 1 else self.errors[0]
            if error is not None:
                raise error
        if self.empty:
            return CitySample(city=city, measurements=[], computed_aqi=None, provider=self.name)
        return make_sample(city, pm25=self.pm25, provider=self.name)


@asynccontextmanager
async def _null_session():
    yield None


def null_session_factory(timeout=None):
    return _null_session()


class FakeResponse:
    def __init__(self, status=200, payload=None, text=None):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self, content_type=None):
        if self._text is not None:
            return json.loads(self._text)
        return self._payload

    async def text(self):
        return self._text if self._text is not None else json.dumps(self._payload)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Routes GET requests by URL to queued responses or exceptions."""

    def __init__(self, routes):
        self.routes = {url: (list(v) if isinstance(v, list) else [v]) for url, v in routes.items()}
        self.calls = []

    def get(self, url, params=None, headers=None):
        self.calls.append({"url": url, "params": params, "headers": headers})
        queue = self.routes[url]
        handler = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(handler, BaseException):
            raise handler
        return handler
