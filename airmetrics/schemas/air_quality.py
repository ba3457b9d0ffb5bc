# airmetrics/schemas/air_quality.py
from datetime import datetime

from pydantic import BaseModel, Field

from .common import Coordinates


class ResolvedLocation(BaseModel):
    """First geocoding match; lat/lon are always populated together."""

    display_name: str
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lon=self.lon)


class Measurement(BaseModel):
    parameter: str
    value: float = Field(..., allow_inf_nan=False)
    unit: str | None = None
    observed_at: datetime | None = None
    station: str | None = None


class AirQualityResult(BaseModel):
    location: str
    coordinates: Coordinates
    measurements: list[Measurement] = Field(..., min_length=1)


class CityRanking(BaseModel):
    city: str
    country: str
    value: float = Field(..., allow_inf_nan=False)
    unit: str | None = None
    coordinates: Coordinates | None = None
    observed_at: datetime | None = None


class CityRankingsResult(BaseModel):
    rankings: list[CityRanking]
