"""
Shared fixtures. All upstream HTTP goes through httpx.MockTransport;
no network or Redis server is required.
"""

from typing import Callable, Dict, List

import httpx
import pytest

NOMINATIM = "https://nominatim.test"
OPENAQ = "https://openaq.test/v2"


class FakeCache:
    """In-memory stand-in for the Redis cache."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.gets = 0
        self.sets = 0

    async def get(self, key):
        self.gets += 1
        return self.store.get(key)

    async def set(self, key, value, ttl_seconds):
        self.sets += 1
        self.store[key] = value
        self.ttls[key] = ttl_seconds

    async def close(self):
        return None


class UnreachableCache:
    """Cache whose backend blows up on every call."""

    async def get(self, key):
        raise ConnectionError("cache down")

    async def set(self, key, value, ttl_seconds):
        raise ConnectionError("cache down")


class Upstream:
    """Routes requests to canned responses and records every call."""

    def __init__(self):
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: List[httpx.Request] = []

    def on(self, path: str, status: int = 200, body=None):
        def handler(request):
            if isinstance(body, (bytes, str)):
                return httpx.Response(status, content=body)
            return httpx.Response(status, json=body)

        self.routes[path] = handler
        return self

    def raise_on(self, path: str, exc: Exception):
        def handler(request):
            raise exc

        self.routes[path] = handler
        return self

    def calls_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.calls if r.url.path.endswith(path)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        for path, handler in self.routes.items():
            if request.url.path.endswith(path):
                return handler(request)
        return httpx.Response(500, json={"detail": "unexpected " + request.url.path})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def fake_cache():
    return FakeCache()


@pytest.fixture
def unreachable_cache():
    return UnreachableCache()


@pytest.fixture
def geocode_match():
    return [{
        "lat": "48.8588897",
        "lon": "2.3200410",
        "display_name": "Paris, Île-de-France, France métropolitaine, France",
    }]


@pytest.fixture
def measurement_records():
    return [
        {
            "location": "Paris 18ème",
            "parameter": "pm25",
            "value": 12.4,
            "unit": "µg/m³",
            "date": {"utc": "2024-03-01T10:00:00Z", "local": "2024-03-01T11:00:00+01:00"},
            "coordinates": {"latitude": 48.8919, "longitude": 2.3458},
        },
        {
            "location": "Paris 18ème",
            "parameter": "no2",
            "value": None,
            "unit": "µg/m³",
            "date": {"utc": "2024-03-01T10:00:00Z"},
        },
        {
            "location": "Paris Centre",
            "parameter": "no2",
            "value": "31.5",
            "unit": "µg/m³",
            "date": {"utc": "2024-03-01T09:00:00Z"},
        },
        {
            "location": "Paris Centre",
            "parameter": "o3",
            "value": "NaN",
            "unit": "µg/m³",
            "date": {"utc": "2024-03-01T09:00:00Z"},
        },
    ]


@pytest.fixture
def location_records():
    def loc(city, value, parameter="pm25", **extra):
        rec = {
            "city": city,
            "country": "IN",
            "coordinates": {"latitude": 28.6, "longitude": 77.2},
            "lastUpdated": "2024-03-01T10:00:00+00:00",
            "parameters": [{"parameter": parameter, "average": value, "unit": "µg/m³"}],
        }
        rec.update(extra)
        return rec

    return [
        loc("Delhi", 40),
        loc("Lucknow", 10),
        loc("Kanpur", 25),
        loc("Patna", 90, parameter="no2"),
    ]


@pytest.fixture
def build_live(upstream):
    """Factory for a live-mode aggregator wired to the mock upstream."""
    from airmetrics.core.config import DataMode
    from airmetrics.services.aggregator import AirQualityAggregator
    from airmetrics.services.geocoding import LocationResolver
    from airmetrics.services.openaq import OpenAQFetcher

    def _build(cache=None):
        client = upstream.client()
        return AirQualityAggregator(
            mode=DataMode.LIVE,
            resolver=LocationResolver(client, base_url=NOMINATIM, user_agent="airmetrics-tests"),
            fetcher=OpenAQFetcher(client, api_key="test-key", base_url=OPENAQ),
            cache=cache,
        )

    return _build
