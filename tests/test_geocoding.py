"""Tests for the Google Maps geocoding / distance client (mocked with respx)."""

import httpx
import pytest
import respx
from httpx import Response

from riderapp.domain.entities import Location
from riderapp.domain.exceptions import GeocodingError, RoutingError
from riderapp.infrastructure.geocoding import GoogleMapsClient, OfflineGeoProvider

BASE_URL = "https://maps.test/api"
ORIGIN = Location(51.5080, -0.1281)
DESTINATION = Location(51.5308, -0.1238)


@pytest.fixture
def maps_client() -> GoogleMapsClient:
    return GoogleMapsClient("test-key", base_url=BASE_URL, timeout=1.0)


@pytest.fixture
def geocode_response() -> dict:
    return {
        "status": "OK",
        "results": [
            {
                "formatted_address": "London WC2N 5DN, UK",
                "geometry": {"location": {"lat": 51.508, "lng": -0.1281}},
            }
        ],
    }


@pytest.fixture
def matrix_response() -> dict:
    return {
        "status": "OK",
        "rows": [
            {"elements": [{"status": "OK", "distance": {"value": 2534, "text": "2.5 km"}}]}
        ],
    }


class TestResolve:
    @pytest.mark.asyncio
    async def test_resolves_postcode(self, maps_client, geocode_response):
        async with respx.mock:
            route = respx.get(f"{BASE_URL}/geocode/json").mock(
                return_value=Response(200, json=geocode_response)
            )
            location = await maps_client.resolve("WC2N 5DN")

        assert route.called
        params = route.calls.last.request.url.params
        assert params["address"] == "WC2N 5DN"
        assert params["key"] == "test-key"
        assert location == Location(51.508, -0.1281, "London WC2N 5DN, UK", "WC2N 5DN")

    @pytest.mark.asyncio
    async def test_zero_results(self, maps_client):
        async with respx.mock:
            respx.get(f"{BASE_URL}/geocode/json").mock(
                return_value=Response(200, json={"status": "ZERO_RESULTS", "results": []})
            )
            with pytest.raises(GeocodingError, match="ZERO_RESULTS"):
                await maps_client.resolve("nowhere")

    @pytest.mark.asyncio
    async def test_http_error(self, maps_client):
        async with respx.mock:
            respx.get(f"{BASE_URL}/geocode/json").mock(return_value=Response(500))
            with pytest.raises(GeocodingError):
                await maps_client.resolve("WC2N 5DN")

    @pytest.mark.asyncio
    async def test_timeout(self, maps_client):
        async with respx.mock:
            respx.get(f"{BASE_URL}/geocode/json").mock(
                side_effect=httpx.ConnectTimeout("timed out")
            )
            with pytest.raises(GeocodingError):
                await maps_client.resolve("WC2N 5DN")


class TestRouteDistance:
    @pytest.mark.asyncio
    async def test_distance_in_km(self, maps_client, matrix_response):
        async with respx.mock:
            route = respx.get(f"{BASE_URL}/distancematrix/json").mock(
                return_value=Response(200, json=matrix_response)
            )
            distance = await maps_client.route_distance_km(ORIGIN, DESTINATION)

        assert distance == 2.534
        params = route.calls.last.request.url.params
        assert params["origins"] == "51.508,-0.1281"
        assert params["destinations"] == "51.5308,-0.1238"

    @pytest.mark.asyncio
    async def test_no_route(self, maps_client):
        body = {"status": "OK", "rows": [{"elements": [{"status": "ZERO_RESULTS"}]}]}
        async with respx.mock:
            respx.get(f"{BASE_URL}/distancematrix/json").mock(
                return_value=Response(200, json=body)
            )
            with pytest.raises(RoutingError, match="ZERO_RESULTS"):
                await maps_client.route_distance_km(ORIGIN, DESTINATION)

    @pytest.mark.asyncio
    async def test_denied(self, maps_client):
        async with respx.mock:
            respx.get(f"{BASE_URL}/distancematrix/json").mock(
                return_value=Response(200, json={"status": "REQUEST_DENIED"})
            )
            with pytest.raises(RoutingError):
                await maps_client.route_distance_km(ORIGIN, DESTINATION)

    @pytest.mark.asyncio
    async def test_empty_rows(self, maps_client):
        async with respx.mock:
            respx.get(f"{BASE_URL}/distancematrix/json").mock(
                return_value=Response(200, json={"status": "OK", "rows": []})
            )
            with pytest.raises(RoutingError):
                await maps_client.route_distance_km(ORIGIN, DESTINATION)


class TestOfflineGeoProvider:
    @pytest.mark.asyncio
    async def test_haversine_distance(self):
        distance = await OfflineGeoProvider().route_distance_km(ORIGIN, DESTINATION)
        assert 2.3 < distance < 2.7

    @pytest.mark.asyncio
    async def test_cannot_geocode(self):
        with pytest.raises(GeocodingError):
            await OfflineGeoProvider().resolve("WC2N 5DN")
