"""
Geocoding and routing providers.

``GoogleMapsClient`` talks to the Google Geocoding and Distance Matrix JSON
APIs.  Each call is a single request with a timeout; there is no retry.
Anything other than an ``OK`` answer raises ``GeocodingError`` /
``RoutingError`` so the ride request is aborted before it is stored.

``OfflineGeoProvider`` keeps the service runnable without an API key: road
distance is approximated by the great-circle distance and free-form
geocoding is unavailable (rides must then be requested with coordinates).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from riderapp.domain.distance import distance_between
from riderapp.domain.entities import Location
from riderapp.domain.exceptions import GeocodingError, RoutingError

logger = logging.getLogger(__name__)


class GoogleMapsClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api",
        timeout: float = 5.0,
    ):
        self.api_key = api_key
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.get(path, params={**params, "key": self.api_key})
        response.raise_for_status()
        return response.json()

    async def resolve(self, query: str) -> Location:
        """Resolve a postcode or address to coordinates + formatted address."""
        try:
            data = await self._get_json("/geocode/json", {"address": query})
        except httpx.HTTPError as e:
            raise GeocodingError(f"Geocoding request failed: {e}") from e

        status = data.get("status")
        if status != "OK" or not data.get("results"):
            detail = data.get("error_message", "")
            logger.warning("Geocoding %r failed: %s %s", query, status, detail)
            raise GeocodingError(f"Could not geocode {query!r}: {status}")

        result = data["results"][0]
        point = result["geometry"]["location"]
        return Location(
            latitude=float(point["lat"]),
            longitude=float(point["lng"]),
            address=result.get("formatted_address"),
            postcode=query,
        )

    async def route_distance_km(self, origin: Location, destination: Location) -> float:
        """Driving distance in km from the Distance Matrix API."""
        params = {
            "origins": f"{origin.latitude},{origin.longitude}",
            "destinations": f"{destination.latitude},{destination.longitude}",
            "units": "metric",
        }
        try:
            data = await self._get_json("/distancematrix/json", params)
        except httpx.HTTPError as e:
            raise RoutingError(f"Distance request failed: {e}") from e

        if data.get("status") != "OK":
            raise RoutingError(f"Distance lookup failed: {data.get('status')}")
        try:
            element = data["rows"][0]["elements"][0]
        except (KeyError, IndexError) as e:
            raise RoutingError("Distance lookup returned no route") from e
        if element.get("status") != "OK":
            raise RoutingError(f"No route between points: {element.get('status')}")
        return element["distance"]["value"] / 1000.0

    async def aclose(self) -> None:
        await self._client.aclose()


class OfflineGeoProvider:
    async def resolve(self, query: str) -> Location:
        raise GeocodingError(
            f"Cannot geocode {query!r}: no geocoding provider configured"
        )

    async def route_distance_km(self, origin: Location, destination: Location) -> float:
        return distance_between(origin, destination)

    async def aclose(self) -> None:
        return None
