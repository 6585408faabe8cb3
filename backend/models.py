#file: backend/models.py

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


class Measurement(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    parameter: str = Field(..., description="Pollutant code, e.g. pm25")
    value: float = Field(..., description="Reported value")
    unit: str = Field("", description="Unit as reported by the provider")
    last_updated: Optional[datetime] = Field(None, alias="lastUpdated", description="Provider timestamp of the reading")


class CitySample(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    city: str = Field(..., description="City name as requested")
    measurements: List[Measurement] = Field(default_factory=list)
    computed_aqi: Optional[int] = Field(None, alias="computedAQI", description="Simplified PM2.5/PM10 based index")
    error: Optional[str] = Field(None, description="Failure tag, e.g. no-provider")
    details: Optional[str] = Field(None, description="Why the lookup failed")
    captured_at: Optional[datetime] = Field(None, alias="capturedAt", description="Set by the store on push")
    provider: Optional[str] = Field(None, description="Adapter that produced the sample")


class HistoryPoint(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    t: datetime
    computed_aqi: Optional[int] = Field(None, alias="computedAQI")
    measurements: List[Measurement] = Field(default_factory=list)


class CityEntry(BaseModel):
    latest: Optional[CitySample] = None
    history: List[HistoryPoint] = Field(default_factory=list)


class CityResponse(CitySample):
    category: Optional[str] = Field(None, description="AQI band label")


class Snapshot(BaseModel):
    ts: datetime
    cities: Dict[str, Optional[CitySample]]


class HistoryResponse(BaseModel):
    city: str
    points: List[HistoryPoint]


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
