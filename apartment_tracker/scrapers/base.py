"""Base scraper interface."""

import re
from abc import ABC, abstractmethod

import httpx

from apartment_tracker.config.settings import ScraperConfig

USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"


class BaseScraper(ABC):
    """Abstract base class for scrapers fetching listing pages over HTTP."""

    def __init__(
        self,
        config: ScraperConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or ScraperConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    @abstractmethod
    async def scrape(self, url: str):
        """Scrape a single page."""
        pass

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _parse_price(self, text: str) -> float | None:
        """Extract numeric price from text like '1 250 €' or '$1,500/mo'."""
        cleaned = re.sub(r"[^\d.]", "", text)
        try:
            return float(cleaned) if cleaned else None
        except ValueError:
            return None

    def _parse_int(self, text: str | None) -> int | None:
        """Extract integer from text."""
        if not text:
            return None
        match = re.search(r"\d+", text)
        return int(match.group()) if match else None
