"""Shared fixtures for apartment-tracker tests."""

import httpx
import pytest

from apartment_tracker.config.settings import Settings
from apartment_tracker.models.database import Database
from apartment_tracker.models.listing import ListingDraft

ORS_URL = "https://ors.test"

LISTING_PAGE = """
<html>
  <head>
    <title>Fallback title</title>
    <meta property="og:title" content="T3 lumineux - Croix-Rousse">
    <meta property="og:description" content="Bel appartement traversant">
    <meta property="og:image" content="/photos/cover.jpg">
    <meta property="product:price:amount" content="1 250">
  </head>
  <body>
    <img src="/photos/cover.jpg" width="800" height="600">
    <img src="/photos/kitchen.jpg" width="800" height="600" alt="Kitchen">
    <img src="/icons/logo.png" width="32" height="32">
    <img data-src="https://cdn.listings.test/bedroom.jpg">
    <img src="data:image/gif;base64,R0lGOD">
  </body>
</html>
"""


def provider_handler(request: httpx.Request) -> httpx.Response:
    """Fake openrouteservice and listing sites."""
    if request.url.host == "ors.test":
        if request.url.path == "/geocode/search":
            if request.url.params["text"] == "nowhere":
                return httpx.Response(200, json={"features": []})
            return httpx.Response(200, json={
                "features": [
                    {
                        "geometry": {"coordinates": [4.8357, 45.764]},
                        "properties": {"label": "Place Bellecour, Lyon, France"},
                    }
                ]
            })
        if request.url.path.startswith("/v2/directions/"):
            # 21.5 minutes
            return httpx.Response(200, json={"routes": [{"summary": {"duration": 1290.0}}]})
    if request.url.host == "listings.test":
        if request.url.path == "/gone":
            return httpx.Response(410)
        return httpx.Response(200, text=LISTING_PAGE)
    return httpx.Response(404)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        db_path=str(tmp_path / "test.db"),
        host="127.0.0.1",
        port=3000,
        ors_api_key="test-key",
        ors_base_url=ORS_URL,
        daily_check_time="08:00",
    )


@pytest.fixture
async def db(tmp_path):
    async with Database(str(tmp_path / "store.db")) as database:
        yield database


@pytest.fixture
def transport():
    return httpx.MockTransport(provider_handler)


@pytest.fixture
def make_draft():
    """Build a listing draft with sensible defaults."""

    def _make(**overrides) -> ListingDraft:
        data = {
            "url": "https://listings.test/annonce/1",
            "title": "T2 Croix-Rousse",
            "type": "apartment",
            "location": "4th floor, street side",
            "address": "12 rue d'Austerlitz, Lyon",
            "price": "950",
            "size": "48",
        }
        data.update(overrides)
        return ListingDraft.from_dict(data)

    return _make


@pytest.fixture
def listing_page():
    return LISTING_PAGE
