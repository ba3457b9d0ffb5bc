# airmetrics/services/geocoding.py
import logging

import httpx

from ..core.config import settings
from ..core.errors import NotFound, UpstreamUnavailable
from ..schemas.air_quality import ResolvedLocation
from ..utils.geo import extract_coordinates
from ..utils.http import get_json

logger = logging.getLogger(__name__)

PROVIDER = "Nominatim"


class LocationResolver:
    """
    Free-text place name -> ResolvedLocation via Nominatim /search.

    Only the first match is used; the provider's relevance order is trusted.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = settings.nominatim_base,
        user_agent: str = settings.user_agent,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent

    async def resolve(self, text: str) -> ResolvedLocation:
        url = f"{self.base_url}/search"
        params = {"q": text, "format": "json", "limit": 1}
        data = await get_json(
            self.client, url, params=params, headers={"User-Agent": self.user_agent}, provider=PROVIDER
        )

        if not isinstance(data, list):
            raise UpstreamUnavailable(f"{PROVIDER} returned an unexpected payload")
        if not data:
            raise NotFound(f"Location not found: {text}")

        first = data[0]
        coords = extract_coordinates(first)
        if coords is None:
            # lat/lon van juntos o la resolución falla entera
            raise UpstreamUnavailable(f"{PROVIDER} match has no usable coordinates")

        name = first.get("display_name") or text
        logger.info("Resolved '%s' -> %s (%.4f, %.4f)", text, name, coords.lat, coords.lon)
        return ResolvedLocation(display_name=name, lat=coords.lat, lon=coords.lon)
