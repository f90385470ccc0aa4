"""Tests for geocoding and best-effort device location."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from netnotes.errors import GeocodeUnavailableError
from netnotes.location import (
    DeniedLocationProvider,
    FixedPositionProvider,
    Geocoder,
    NominatimGeocoder,
    format_place_label,
    geocode_city,
    resolve_device_location,
)
from netnotes.models import Coordinates
from tests.conftest import FakeLocationProvider

pytestmark = pytest.mark.unit


def _geocoder(handler) -> NominatimGeocoder:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NominatimGeocoder(base_url="https://geo.test/", http_client=client)


class TestFormatPlaceLabel:
    def test_name_first(self):
        assert format_place_label(name="Polo Lounge", street="Sunset", city="LA") == "Polo Lounge"

    def test_street_and_city(self):
        assert format_place_label(street="Sunset Blvd", city="LA") == "Sunset Blvd, LA"
        assert format_place_label(city="LA") == "LA"

    def test_region_last(self):
        assert format_place_label(region="California") == "California"
        assert format_place_label() is None


class TestNominatimGeocoder:
    async def test_forward(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"lat": "34.05", "lon": "-118.24"}])

        coords = await _geocoder(handler).forward_geocode(" Los Angeles ")
        assert coords == Coordinates(lat=34.05, lng=-118.24)
        assert seen[0].url.path == "/search"
        assert seen[0].url.params["q"] == "Los Angeles"
        assert seen[0].url.params["format"] == "jsonv2"

    async def test_forward_no_results(self):
        geocoder = _geocoder(lambda request: httpx.Response(200, json=[]))
        assert await geocoder.forward_geocode("Atlantis") is None
        assert await geocoder.forward_geocode("   ") is None

    async def test_forward_bad_status(self):
        geocoder = _geocoder(lambda request: httpx.Response(503))
        with pytest.raises(GeocodeUnavailableError) as exc_info:
            await geocoder.forward_geocode("Paris")
        assert exc_info.value.status_code == 503

    async def test_forward_bad_payload(self):
        geocoder = _geocoder(lambda request: httpx.Response(200, json=[{"lat": "x"}]))
        with pytest.raises(GeocodeUnavailableError):
            await geocoder.forward_geocode("Paris")

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(GeocodeUnavailableError):
            await _geocoder(handler).forward_geocode("Paris")

    async def test_reverse(self):
        payload = {"name": "", "address": {"road": "Sunset Blvd", "city": "Los Angeles"}}
        geocoder = _geocoder(lambda request: httpx.Response(200, json=payload))
        assert await geocoder.reverse_geocode(34.09, -118.38) == "Sunset Blvd, Los Angeles"

    async def test_reverse_error_payload(self):
        geocoder = _geocoder(lambda request: httpx.Response(200, json={"error": "nothing"}))
        assert await geocoder.reverse_geocode(0.0, 0.0) is None


class TestResolveDeviceLocation:
    async def test_no_provider(self):
        assert await resolve_device_location(None) is None

    async def test_fix_and_label(self):
        location = await resolve_device_location(FakeLocationProvider(1.0, 2.0, "Cafe"))
        assert (location.lat, location.lng, location.place_label) == (1.0, 2.0, "Cafe")

    async def test_denied(self):
        assert await resolve_device_location(DeniedLocationProvider()) is None

    async def test_timeout(self):
        provider = FakeLocationProvider(delay_s=5)
        assert await resolve_device_location(provider, timeout_s=0.01) is None

    async def test_reverse_failure_keeps_fix(self):
        class Failing(Geocoder):
            async def forward_geocode(self, city_text):
                return None

            async def reverse_geocode(self, lat, lng):
                raise GeocodeUnavailableError("down")

        provider = FixedPositionProvider(1.0, 2.0, Failing())
        location = await resolve_device_location(provider)
        assert (location.lat, location.lng, location.place_label) == (1.0, 2.0, None)


class TestGeocodeCity:
    async def test_failures_become_none(self):
        class Slow(Geocoder):
            async def forward_geocode(self, city_text):
                await asyncio.sleep(5)

            async def reverse_geocode(self, lat, lng):
                return None

        assert await geocode_city(None, "Paris") is None
        assert await geocode_city(Slow(), "Paris", timeout_s=0.01) is None
        failing = _geocoder(lambda request: httpx.Response(500))
        assert await geocode_city(failing, "Paris") is None
