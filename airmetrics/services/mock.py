# airmetrics/services/mock.py
import random

from ..schemas.air_quality import AirQualityResult, CityRanking, CityRankingsResult, Measurement
from ..schemas.common import Coordinates
from ..utils.time import utc_now

MOCK_RANKINGS_SIZE = 10


def mock_air_quality() -> AirQualityResult:
    """Una estación, una medición; misma forma que el resultado real."""
    return AirQualityResult(
        location="Sample City",
        coordinates=Coordinates(lat=40.7128, lon=-74.0060),
        measurements=[
            Measurement(
                parameter="pm25",
                value=15.0,
                unit="µg/m³",
                observed_at=utc_now(),
                station="Sample Station 1",
            )
        ],
    )


def mock_city_rankings(rnd: random.Random | None = None) -> CityRankingsResult:
    rnd = rnd or random.Random()
    now = utc_now()
    rankings = [
        CityRanking(
            city=f"City {i + 1}",
            country="Sample Country",
            value=rnd.random() * 50,  # [0, 50)
            unit="µg/m³",
            coordinates=None,
            observed_at=now,
        )
        for i in range(MOCK_RANKINGS_SIZE)
    ]
    # mismo orden que el proveedor real: valor descendente
    rankings.sort(key=lambda r: r.value, reverse=True)
    return CityRankingsResult(rankings=rankings)
