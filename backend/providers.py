# file: backend/providers.py

import asyncio
import logging
import math
import ssl
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp
import certifi

from backend.aqi import compute_index
from backend.config import Settings
from backend.errors import MalformedResponse, ProviderError, TransportError
from backend.models import CitySample, Measurement
from backend.utils import parse_timestamp

WAQI_POLLUTANTS = ("pm25", "pm10", "o3", "no2", "so2", "co")


def create_session(timeout: float = 12.0) -> aiohttp.ClientSession:
    """Shared HTTP session with certifi CA bundle and a fixed total timeout per request."""
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    return aiohttp.ClientSession(
        connector=aiohttp.TCPConnector(ssl=ssl_context),
        timeout=aiohttp.ClientTimeout(total=timeout),
    )


async def fetch_json(session: aiohttp.ClientSession, provider: str, url: str,
                     params: Optional[Dict[str, Any]] = None,
                     headers: Optional[Dict[str, str]] = None) -> Any:
    """GET a JSON document, translating failures into the provider error taxonomy."""
    try:
        async with session.get(url, params=params, headers=headers) as response:
            if not 200 <= response.status < 300:
                body = await response.text()
                raise ProviderError(provider, response.status, body)
            try:
                return await response.json(content_type=None)
            except ValueError as e:
                raise MalformedResponse(provider, f"non-JSON body: {e}")
    except asyncio.TimeoutError:
        raise TransportError(provider, "timeout")
    except aiohttp.ClientError as e:
        raise TransportError(provider, str(e) or type(e).__name__)


def has_particulates(measurements: List[Measurement]) -> bool:
    return any(m.parameter in ("pm25", "pm10") for m in measurements)


class OpenAQAdapter:
    """Structured provider: one call to the latest-measurements endpoint, keyed by API key."""

    name = "openaq"

    def __init__(self, api_key: str, base_url: str = "https://api.openaq.org"):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def fetch_city(self, session: aiohttp.ClientSession, city: str) -> CitySample:
        payload = await fetch_json(
            session, self.name, f"{self.base_url}/v3/latest",
            params={"city": city, "limit": 100},
            headers={"X-API-Key": self.api_key},
        )
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise MalformedResponse(self.name, "missing results list")
        if not results:
            return CitySample(city=city, measurements=[], computed_aqi=None, provider=self.name)

        # The first result is the most relevant location for the city.
        first = results[0] if isinstance(results[0], dict) else {}
        measurements = [
            m for m in (self._normalize(raw) for raw in first.get("measurements") or [])
            if m is not None
        ]
        return CitySample(city=city, measurements=measurements,
                          computed_aqi=compute_index(measurements), provider=self.name)

    def _normalize(self, raw: Any) -> Optional[Measurement]:
        if not isinstance(raw, dict) or not raw.get("parameter"):
            raise MalformedResponse(self.name, f"unexpected measurement: {raw!r}")
        value = raw.get("value")
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            return None
        return Measurement(
            parameter=str(raw["parameter"]).lower(),
            value=float(value),
            unit=raw.get("unit") or "",
            last_updated=parse_timestamp(raw.get("lastUpdated")),
        )


class WAQIAdapter:
    """
    Feed/search provider.

    Tries the city feed by name first. When that feed carries neither PM2.5 nor
    PM10 (or the name is unknown), searches stations by keyword and re-fetches
    the feed of the first station found.
    """

    name = "waqi"

    def __init__(self, token: str, base_url: str = "https://api.waqi.info"):
        self.token = token
        self.base_url = base_url.rstrip("/")

    async def fetch_city(self, session: aiohttp.ClientSession, city: str) -> CitySample:
        feed_error = None
        try:
            measurements = await self._feed(session, quote(city, safe=""))
        except ProviderError as e:
            if e.status is not None:
                raise
            feed_error = e
            measurements = []

        if not has_particulates(measurements):
            logging.info(f"[waqi] no PM readings in feed for {city}, searching stations")
            uid = await self._search(session, city)
            if uid is not None:
                measurements = await self._feed(session, f"@{uid}")
            elif feed_error is not None:
                raise feed_error

        return CitySample(city=city, measurements=measurements,
                          computed_aqi=self._index(measurements), provider=self.name)

    async def _feed(self, session: aiohttp.ClientSession, station: str) -> List[Measurement]:
        payload = await fetch_json(session, self.name, f"{self.base_url}/feed/{station}/",
                                   params={"token": self.token})
        data = self._ok_data(payload)
        if not isinstance(data, dict):
            raise MalformedResponse(self.name, "feed data is not an object")
        return self._normalize(data)

    async def _search(self, session: aiohttp.ClientSession, keyword: str) -> Optional[int]:
        payload = await fetch_json(session, self.name, f"{self.base_url}/search/",
                                   params={"keyword": keyword, "token": self.token})
        stations = self._ok_data(payload)
        if not isinstance(stations, list):
            raise MalformedResponse(self.name, "search data is not a list")
        for station in stations:
            if isinstance(station, dict) and station.get("uid") is not None:
                return station["uid"]
        return None

    def _index(self, measurements: List[Measurement]) -> Optional[int]:
        """WAQI reports sub-indices already, so the PM2.5 (else PM10) value is used as the index."""
        for parameter in ("pm25", "pm10"):
            for m in measurements:
                if m.parameter == parameter:
                    return int(math.floor(m.value + 0.5))
        return None

    def _ok_data(self, payload: Any) -> Any:
        if not isinstance(payload, dict):
            raise MalformedResponse(self.name, "payload is not an object")
        if payload.get("status") != "ok":
            raise ProviderError(self.name, body=str(payload.get("data")))
        return payload.get("data")

    def _normalize(self, data: Dict[str, Any]) -> List[Measurement]:
        iaqi = data.get("iaqi") or {}
        time_info = data.get("time") or {}
        last_updated = parse_timestamp(time_info.get("iso")) if isinstance(time_info, dict) else None
        measurements = []
        for key in WAQI_POLLUTANTS:
            reading = iaqi.get(key)
            value = reading.get("v") if isinstance(reading, dict) else None
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                # iaqi values are per-pollutant sub-indices, not concentrations
                measurements.append(Measurement(parameter=key, value=float(value), unit="aqi",
                                                last_updated=last_updated))
        return measurements


def build_adapters(settings: Settings) -> list:
    """Instantiate adapters in configured priority order, skipping those without credentials."""
    adapters = []
    for name in settings.provider_order:
        if name == "openaq":
            if settings.openaq_api_key:
                adapters.append(OpenAQAdapter(settings.openaq_api_key, settings.openaq_base_url))
            else:
                logging.warning("OPENAQ_API_KEY not set, skipping OpenAQ provider")
        elif name == "waqi":
            if settings.waqi_token:
                adapters.append(WAQIAdapter(settings.waqi_token, settings.waqi_base_url))
            else:
                logging.warning("WAQI_TOKEN not set, skipping WAQI provider")
    if not adapters:
        logging.warning("No air quality providers configured, every lookup will fail")
    return adapters
