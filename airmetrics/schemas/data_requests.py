# airmetrics/schemas/data_requests.py
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..core.errors import InvalidInput

# Límites de los parámetros públicos
DEFAULT_RADIUS = 10_000
MIN_RADIUS, MAX_RADIUS = 1_000, 100_000
DEFAULT_LIMIT = 10
MIN_LIMIT, MAX_LIMIT = 5, 100

_WS = re.compile(r"\s+")


class Pollutant(str, Enum):
    pm25 = "pm25"
    pm10 = "pm10"
    no2 = "no2"
    so2 = "so2"
    o3 = "o3"
    co = "co"


def _errors_to_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "query"
        parts.append(f"{field}: {err.get('msg')}")
    return ", ".join(parts)


class BaseDataQuery(BaseModel):
    @classmethod
    def build(cls, **values: Any):
        """Validate caller input, raising InvalidInput instead of ValidationError."""
        # None -> default del campo
        clean = {k: v for k, v in values.items() if v is not None}
        try:
            return cls(**clean)
        except ValidationError as e:
            raise InvalidInput(_errors_to_message(e)) from e

    def cache_params(self) -> dict:
        return self.model_dump(mode="json")


class AirQualityQuery(BaseDataQuery):
    location: str = Field(..., description="Free-text place name")
    radius: int = Field(DEFAULT_RADIUS, ge=MIN_RADIUS, le=MAX_RADIUS, description="Search radius in meters")

    @field_validator("location")
    @classmethod
    def _location_not_blank(cls, v: str) -> str:
        v = _WS.sub(" ", v).strip()
        if not v:
            raise ValueError("Location is required")
        return v

    def cache_params(self) -> dict:
        # la clave ignora mayúsculas/espacios: "  New  York" == "new york"
        return {"location": self.location.casefold(), "radius": self.radius}


class RankingsQuery(BaseDataQuery):
    parameter: Pollutant = Pollutant.pm25
    limit: int = Field(DEFAULT_LIMIT, ge=MIN_LIMIT, le=MAX_LIMIT)
