# airmetrics/services/openaq.py
import logging
from typing import Any, Dict, List

import httpx

from ..core.config import settings
from ..core.errors import NotFound, UpstreamUnavailable
from ..schemas.common import Coordinates
from ..utils.http import get_json

logger = logging.getLogger(__name__)

PROVIDER = "OpenAQ"
MEASUREMENTS_LIMIT = 100


class OpenAQFetcher:
    """
    Raw record access to OpenAQ v2.

      /measurements -> últimas mediciones alrededor de un punto
      /locations    -> estaciones ordenadas por promedio de un parámetro

    Returns the provider's `results` list untouched; shaping is the
    normalizer's job. Never called in mock mode.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str | None = settings.openaq_api_key,
        base_url: str = settings.openaq_base,
    ):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> Dict[str, str]:
        h = {"Accept": "application/json"}
        if self.api_key:
            h["X-API-Key"] = self.api_key
        return h

    async def _results(self, path: str, params: Dict[str, Any], empty_message: str) -> List[Dict[str, Any]]:
        data = await get_json(
            self.client, f"{self.base_url}{path}", params=params, headers=self._headers(), provider=PROVIDER
        )
        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"{PROVIDER} returned an unexpected payload")
        results = data.get("results")
        if results is None:
            results = []
        if not isinstance(results, list):
            raise UpstreamUnavailable(f"{PROVIDER} returned an unexpected payload")
        if not results:
            raise NotFound(empty_message)
        return results

    async def fetch_measurements(self, coords: Coordinates, radius: int) -> List[Dict[str, Any]]:
        params = {
            "coordinates": f"{coords.lat},{coords.lon}",
            "radius": radius,
            "limit": MEASUREMENTS_LIMIT,
            "order_by": "datetime",
            "sort": "desc",
        }
        results = await self._results(
            "/measurements", params, "No air quality data available for this location"
        )
        logger.info("OpenAQ returned %d measurements near (%.4f, %.4f)", len(results), coords.lat, coords.lon)
        return results

    async def fetch_rankings(self, parameter: str, limit: int) -> List[Dict[str, Any]]:
        params = {
            "parameter": parameter,
            "limit": limit,
            "order_by": "value",
            "sort": "desc",
        }
        results = await self._results("/locations", params, "No ranking data available")
        logger.info("OpenAQ returned %d locations for %s", len(results), parameter)
        return results
