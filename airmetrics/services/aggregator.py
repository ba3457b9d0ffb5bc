# airmetrics/services/aggregator.py
import logging
from typing import Callable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.config import DataMode
from ..schemas.air_quality import AirQualityResult, CityRankingsResult
from ..schemas.data_requests import AirQualityQuery, RankingsQuery
from .cache import NullCache, ResultCache, cache_key
from .geocoding import LocationResolver
from .mock import mock_air_quality, mock_city_rankings
from .normalize import normalize_measurements, normalize_rankings
from .openaq import OpenAQFetcher

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

AIR_QUALITY_OP = "air_quality"
RANKINGS_OP = "city_rankings"


class AirQualityAggregator:
    """
    Request pipeline:

        validate -> cache check -> mock | (resolve -> fetch) -> normalize -> cache write

    Resolver/fetcher/normalizer errors pass through unchanged and skip the
    cache write. Cache problems are logged and never reach the caller.
    """

    def __init__(
        self,
        mode: DataMode,
        resolver: Optional[LocationResolver] = None,
        fetcher: Optional[OpenAQFetcher] = None,
        cache: Optional[ResultCache] = None,
        cache_prefix: str = "airmetrics",
        air_quality_ttl: int = 300,
        rankings_ttl: int = 900,
    ):
        if mode == DataMode.LIVE and (resolver is None or fetcher is None):
            raise ValueError("live mode needs a resolver and a fetcher")
        self.mode = mode
        self.resolver = resolver
        self.fetcher = fetcher
        self.cache = cache or NullCache()
        self.cache_prefix = cache_prefix
        self.air_quality_ttl = air_quality_ttl
        self.rankings_ttl = rankings_ttl

    # -------- cache --------
    async def _cache_read(self, key: str, model: Type[M]) -> Optional[M]:
        try:
            raw = await self.cache.get(key)
        except Exception:
            logger.exception("Cache read failed for %s", key)
            return None
        if raw is None:
            return None
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding undecodable cache entry %s: %s", key, e)
            return None

    async def _cache_write(self, key: str, result: BaseModel, ttl: int) -> None:
        try:
            await self.cache.set(key, result.model_dump_json(), ttl)
        except Exception:
            logger.exception("Cache write failed for %s", key)

    async def _cached(self, key: str, model: Type[M], ttl: int, produce: Callable) -> M:
        hit = await self._cache_read(key, model)
        if hit is not None:
            logger.debug("Cache hit %s", key)
            return hit
        result = await produce()
        await self._cache_write(key, result, ttl)
        return result

    # =========================
    # AIR QUALITY
    # =========================
    async def get_air_quality(self, location: str, radius: Optional[int] = None) -> AirQualityResult:
        q = AirQualityQuery.build(location=location, radius=radius)
        key = cache_key(self.cache_prefix, AIR_QUALITY_OP, self.mode.value, q.cache_params())
        return await self._cached(key, AirQualityResult, self.air_quality_ttl, lambda: self._air_quality(q))

    async def _air_quality(self, q: AirQualityQuery) -> AirQualityResult:
        if self.mode == DataMode.MOCK:
            logger.info("Using mock air quality data (mock mode)")
            return mock_air_quality()

        place = await self.resolver.resolve(q.location)
        raw = await self.fetcher.fetch_measurements(place.coordinates, q.radius)
        measurements = normalize_measurements(raw)

        logger.info("Air quality data fetched for location: %s (%d measurements)", q.location, len(measurements))
        return AirQualityResult(
            location=place.display_name,
            coordinates=place.coordinates,
            measurements=measurements,
        )

    # =========================
    # CITY RANKINGS
    # =========================
    async def get_city_rankings(self, parameter: Optional[str] = None, limit: Optional[int] = None) -> CityRankingsResult:
        q = RankingsQuery.build(parameter=parameter, limit=limit)
        key = cache_key(self.cache_prefix, RANKINGS_OP, self.mode.value, q.cache_params())
        return await self._cached(key, CityRankingsResult, self.rankings_ttl, lambda: self._rankings(q))

    async def _rankings(self, q: RankingsQuery) -> CityRankingsResult:
        if self.mode == DataMode.MOCK:
            logger.info("Using mock city rankings data (mock mode)")
            return mock_city_rankings()

        parameter = q.parameter.value
        raw = await self.fetcher.fetch_rankings(parameter, q.limit)
        rankings = normalize_rankings(raw, parameter)

        logger.info("City rankings fetched for parameter: %s (%d entries)", parameter, len(rankings))
        return CityRankingsResult(rankings=rankings)
