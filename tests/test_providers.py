"""
Tests for the Nominatim resolver, the OpenAQ fetcher and the shared
HTTP error classification. Upstream is an httpx.MockTransport.
"""

import asyncio

import httpx
import pytest

from airmetrics.core.errors import NotFound, RateLimited, UpstreamUnavailable
from airmetrics.schemas.common import Coordinates
from airmetrics.services.geocoding import LocationResolver
from airmetrics.services.openaq import OpenAQFetcher
from airmetrics.utils.http import get_json

NOMINATIM = "https://nominatim.test"
OPENAQ = "https://openaq.test/v2"


def _resolve(upstream, text):
    async def run():
        async with upstream.client() as client:
            return await LocationResolver(client, base_url=NOMINATIM, user_agent="ua-test").resolve(text)

    return asyncio.run(run())


def _fetch(upstream, method, *args):
    async def run():
        async with upstream.client() as client:
            fetcher = OpenAQFetcher(client, api_key="secret", base_url=OPENAQ)
            return await getattr(fetcher, method)(*args)

    return asyncio.run(run())


# ---------- Resolver ----------

class TestLocationResolver:
    def test_first_match_is_used(self, upstream, geocode_match):
        second = {"lat": "33.66", "lon": "-95.55", "display_name": "Paris, Texas"}
        upstream.on("/search", body=geocode_match + [second])

        place = _resolve(upstream, "Paris")

        assert place.display_name.startswith("Paris, Île-de-France")
        assert place.lat == pytest.approx(48.8588897)
        assert place.lon == pytest.approx(2.320041)

    def test_request_shape(self, upstream, geocode_match):
        upstream.on("/search", body=geocode_match)
        _resolve(upstream, "Paris")

        req = upstream.calls_to("/search")[0]
        assert req.url.params["q"] == "Paris"
        assert req.url.params["format"] == "json"
        assert req.url.params["limit"] == "1"
        assert req.headers["User-Agent"] == "ua-test"

    def test_zero_matches_is_not_found(self, upstream):
        upstream.on("/search", body=[])
        with pytest.raises(NotFound):
            _resolve(upstream, "Atlantis")

    def test_rate_limit(self, upstream):
        upstream.on("/search", status=429, body={"error": "slow down"})
        with pytest.raises(RateLimited):
            _resolve(upstream, "Paris")
        assert len(upstream.calls) == 1

    def test_server_error_is_upstream_unavailable(self, upstream):
        upstream.on("/search", status=503, body={})
        with pytest.raises(UpstreamUnavailable):
            _resolve(upstream, "Paris")

    def test_match_without_lon_fails_as_a_unit(self, upstream):
        upstream.on("/search", body=[{"lat": "1.0", "display_name": "Half"}])
        with pytest.raises(UpstreamUnavailable):
            _resolve(upstream, "Half")

    def test_missing_display_name_falls_back_to_query(self, upstream):
        upstream.on("/search", body=[{"lat": "1.0", "lon": "2.0"}])
        assert _resolve(upstream, "Somewhere").display_name == "Somewhere"


# ---------- Fetcher ----------

class TestOpenAQFetcher:
    def test_measurements_request(self, upstream, measurement_records):
        upstream.on("/measurements", body={"results": measurement_records})

        out = _fetch(upstream, "fetch_measurements", Coordinates(lat=48.85, lon=2.35), 5000)

        assert out == measurement_records
        req = upstream.calls_to("/measurements")[0]
        assert req.url.params["coordinates"] == "48.85,2.35"
        assert req.url.params["radius"] == "5000"
        assert req.url.params["limit"] == "100"
        assert req.url.params["order_by"] == "datetime"
        assert req.url.params["sort"] == "desc"
        assert req.headers["X-API-Key"] == "secret"

    def test_rankings_request(self, upstream, location_records):
        upstream.on("/locations", body={"results": location_records})

        out = _fetch(upstream, "fetch_rankings", "pm25", 10)

        assert len(out) == 4
        req = upstream.calls_to("/locations")[0]
        assert req.url.params["parameter"] == "pm25"
        assert req.url.params["limit"] == "10"
        assert req.url.params["order_by"] == "value"

    def test_empty_results_is_not_found(self, upstream):
        upstream.on("/measurements", body={"results": []})
        with pytest.raises(NotFound):
            _fetch(upstream, "fetch_measurements", Coordinates(lat=0, lon=0), 10000)

    def test_rate_limit_not_retried(self, upstream):
        upstream.on("/locations", status=429, body={"message": "Too Many Requests"})
        with pytest.raises(RateLimited):
            _fetch(upstream, "fetch_rankings", "pm25", 10)
        assert len(upstream.calls_to("/locations")) == 1

    def test_unexpected_shape(self, upstream):
        upstream.on("/locations", body={"results": {"not": "a list"}})
        with pytest.raises(UpstreamUnavailable):
            _fetch(upstream, "fetch_rankings", "pm25", 10)


# ---------- HTTP classification ----------

class TestGetJson:
    def _get(self, upstream):
        async def run():
            async with upstream.client() as client:
                return await get_json(client, "https://x.test/thing", provider="X")

        return asyncio.run(run())

    def test_timeout(self, upstream):
        upstream.raise_on("/thing", httpx.ReadTimeout("too slow"))
        with pytest.raises(UpstreamUnavailable, match="timed out"):
            self._get(upstream)

    def test_transport_error(self, upstream):
        upstream.raise_on("/thing", httpx.ConnectError("refused"))
        with pytest.raises(UpstreamUnavailable, match="unreachable"):
            self._get(upstream)

    def test_non_json_body(self, upstream):
        upstream.on("/thing", body="<html>oops</html>")
        with pytest.raises(UpstreamUnavailable, match="non-JSON"):
            self._get(upstream)

    def test_ok(self, upstream):
        upstream.on("/thing", body={"a": 1})
        assert self._get(upstream) == {"a": 1}
