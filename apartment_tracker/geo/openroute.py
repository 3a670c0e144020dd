"""openrouteservice client for geocoding and travel times."""

import logging
import math
from dataclasses import dataclass

import httpx

from apartment_tracker.errors import ProviderError
from apartment_tracker.models.listing import Coordinates

logger = logging.getLogger(__name__)


@dataclass
class GeocodeResult:
    latitude: float
    longitude: float
    label: str

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude, "address": self.label}


def seconds_to_minutes(seconds: float) -> int:
    """Convert a duration to whole minutes, rounding halves up."""
    return int(math.floor(seconds / 60 + 0.5))


class OpenRouteServiceClient:
    """Client for the openrouteservice geocoding and directions APIs."""

    BASE_URL = "https://api.openrouteservice.org"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        profile: str = "driving-car",
        geocode_results: int = 5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL
        self.profile = profile
        self.geocode_results = geocode_results
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    async def geocode(self, address: str) -> GeocodeResult | None:
        """Find the best match for a free-text address.

        Args:
            address: Address to look up

        Returns:
            Coordinates and normalized label of the first match, or None
        """
        client = await self._get_client()
        try:
            response = await client.get(
                "/geocode/search",
                params={"api_key": self.api_key, "text": address, "size": self.geocode_results},
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Geocoding request failed: {e}") from e

        if not response.is_success:
            logger.warning(f"Geocoding error: {response.status_code} - {response.text}")
            return None

        features = response.json().get("features") or []
        if not features:
            logger.info(f"No geocoding match for {address!r}")
            return None

        feature = features[0]
        longitude, latitude = feature["geometry"]["coordinates"][:2]
        return GeocodeResult(
            latitude=latitude,
            longitude=longitude,
            label=feature.get("properties", {}).get("label", address),
        )

    async def route_minutes(self, origin: Coordinates, destination: Coordinates) -> int | None:
        """Travel time between two points in whole minutes.

        Returns None when no route can be computed.
        """
        client = await self._get_client()
        payload = {
            "coordinates": [
                [origin.longitude, origin.latitude],
                [destination.longitude, destination.latitude],
            ]
        }
        try:
            response = await client.post(
                f"/v2/directions/{self.profile}",
                json=payload,
                headers={"Authorization": self.api_key, "Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Routing request failed: {e}") from e

        if not response.is_success:
            logger.warning(f"Routing error: {response.status_code} - {response.text}")
            return None

        routes = response.json().get("routes") or []
        if not routes:
            return None
        duration = routes[0].get("summary", {}).get("duration")
        if duration is None:
            return None
        return seconds_to_minutes(duration)

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
