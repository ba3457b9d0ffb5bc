# airmetrics/routers/data.py
from fastapi import APIRouter, Depends, Query, Request

from ..schemas.common import ErrorEnvelope, SuccessEnvelope
from ..schemas.data_requests import Pollutant
from ..services.aggregator import AirQualityAggregator

router = APIRouter(
    prefix="/data",
    tags=["data"],
    responses={code: {"model": ErrorEnvelope} for code in (400, 404, 429, 502)},
)


def get_aggregator(request: Request) -> AirQualityAggregator:
    return request.app.state.aggregator


# Los límites los valida el agregador (InvalidInput uniforme para todos los callers)
@router.get("/air-quality", response_model=SuccessEnvelope)
async def air_quality_data(
    location: str = Query("", description="Location name or address"),
    radius: int | None = Query(None, description="Search radius in meters (1000-100000, default 10000)"),
    aggregator: AirQualityAggregator = Depends(get_aggregator),
):
    result = await aggregator.get_air_quality(location, radius)
    return SuccessEnvelope(data=result.model_dump(mode="json"))


@router.get("/city-rankings", response_model=SuccessEnvelope)
async def city_rankings_data(
    parameter: Pollutant | None = Query(None, description="Parameter to rank by (default pm25)"),
    limit: int | None = Query(None, description="Number of cities to return (5-100, default 10)"),
    aggregator: AirQualityAggregator = Depends(get_aggregator),
):
    result = await aggregator.get_city_rankings(parameter.value if parameter else None, limit)
    return SuccessEnvelope(data=result.model_dump(mode="json"))
