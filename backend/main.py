# file: backend/main.py

import asyncio
import logging
import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import List, Optional, Sequence

from backend.aqi import aqi_category
from backend.config import Settings
from backend.errors import NoProviderConfigured
from backend.models import CityResponse, ErrorResponse, HistoryResponse, Snapshot
from backend.providers import build_adapters
from backend.scheduler import run_schedule
from backend.service import AirQualityService

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def create_app(settings: Optional[Settings] = None, adapters: Optional[Sequence] = None,
               service: Optional[AirQualityService] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    if service is None:
        service = AirQualityService(settings, build_adapters(settings) if adapters is None else adapters)

    @asynccontextmanager
    async def lifespan(app: FastAPI) :
        """Start the poll scheduler and kick off the first cycle on startup."""
        stop_scheduler = run_schedule(service.poller, settings.poll_interval.total_seconds())
        first_poll = asyncio.create_task(service.poll_once()) if settings.poll_on_startup else None
        yield
        stop_scheduler.set()
        if first_poll is not None and not first_poll.done():
            first_poll.cancel()
            await asyncio.gather(first_poll, return_exceptions=True)

    app = FastAPI(
        title = "AQI Aggregator",
        description = "Live and aggregated air quality readings for major cities.",
        version = "0.1",
        lifespan = lifespan
    )
    app.state.service = service

    @app.exception_handler(NoProviderConfigured)
    async def no_provider_handler(request: Request, exc: NoProviderConfigured):
        logging.error(f"Upstream lookup failed for {exc.city}: {exc.details}")
        body = ErrorResponse(error="Upstream API error", details=exc.details or str(exc))
        return JSONResponse(status_code=502, content=body.model_dump())

    @app.get("/api/aqi", response_model=CityResponse, responses={502: {"model": ErrorResponse}})
    async def city_aqi(city: str = Query("Delhi", description="City name, e.g. Delhi")):
        """Current readings for one city, cached briefly."""
        city = city.strip() or "Delhi"
        logging.info(f"Fetching AQI for city: {city}")
        sample = await service.get_city(city)
        return CityResponse(**sample.model_dump(), category=aqi_category(sample.computed_aqi))

    @app.get("/api/aggregate", response_model=Snapshot)
    async def aggregate():
        """Latest aggregated sample for every configured city."""
        return await service.get_snapshot()

    @app.get("/api/history", response_model=HistoryResponse)
    async def history(city: str = Query(..., description="City name as configured")):
        """Retained trend points for one city."""
        city = service.canonical_city(city)
        return HistoryResponse(city=city, points=service.get_history(city))

    @app.get("/api/cities", response_model=List[str])
    async def cities():
        """Cities polled by the aggregator."""
        return list(settings.cities)

    return app


app = create_app()

if __name__ == "__main__" :
    uvicorn.run(app, host = "0.0.0.0", port = 8000, log_level="info")
