"""Tests for the openrouteservice client."""

import json

import httpx
import pytest

from apartment_tracker.errors import ProviderError
from apartment_tracker.geo.openroute import OpenRouteServiceClient, seconds_to_minutes
from apartment_tracker.models.listing import Coordinates

ORIGIN = Coordinates(latitude=45.77, longitude=4.83)
DESTINATION = Coordinates(latitude=45.76, longitude=4.86)


def make_client(handler) -> OpenRouteServiceClient:
    return OpenRouteServiceClient(
        api_key="test-key",
        base_url="https://ors.test",
        transport=httpx.MockTransport(handler),
    )


class TestSecondsToMinutes:

    def test_rounds_half_up(self):
        assert seconds_to_minutes(630) == 11
        assert seconds_to_minutes(690) == 12

    def test_rounds_down(self):
        assert seconds_to_minutes(629) == 10

    def test_zero(self):
        assert seconds_to_minutes(0) == 0


class TestGeocode:

    async def test_first_feature(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, json={
                "features": [
                    {"geometry": {"coordinates": [4.8357, 45.764]}, "properties": {"label": "Bellecour"}},
                    {"geometry": {"coordinates": [0, 0]}, "properties": {"label": "Elsewhere"}},
                ]
            })

        async with make_client(handler) as client:
            result = await client.geocode("place bellecour")

        assert result.latitude == 45.764
        assert result.longitude == 4.8357
        assert result.to_dict()["address"] == "Bellecour"
        assert seen["text"] == "place bellecour"
        assert seen["api_key"] == "test-key"
        assert seen["size"] == "5"

    async def test_no_match(self):
        async with make_client(lambda r: httpx.Response(200, json={"features": []})) as client:
            assert await client.geocode("nowhere") is None

    async def test_provider_error_status_is_not_found(self):
        async with make_client(lambda r: httpx.Response(403, json={"error": "quota"})) as client:
            assert await client.geocode("anywhere") is None

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(ProviderError):
                await client.geocode("anywhere")


class TestRouteMinutes:

    async def test_duration_in_minutes(self):
        captured = {}

        def handler(request):
            captured["path"] = request.url.path
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.read())
            return httpx.Response(200, json={"routes": [{"summary": {"duration": 1290.0}}]})

        async with make_client(handler) as client:
            minutes = await client.route_minutes(ORIGIN, DESTINATION)

        assert minutes == 22
        assert captured["path"] == "/v2/directions/driving-car"
        assert captured["auth"] == "test-key"
        assert captured["body"]["coordinates"] == [[4.83, 45.77], [4.86, 45.76]]

    async def test_no_route(self):
        async with make_client(lambda r: httpx.Response(200, json={"routes": []})) as client:
            assert await client.route_minutes(ORIGIN, DESTINATION) is None

    async def test_error_status_is_not_calculable(self):
        async with make_client(lambda r: httpx.Response(404, json={"error": "no route"})) as client:
            assert await client.route_minutes(ORIGIN, DESTINATION) is None
