"""Mark listings offline once their page has been taken down."""

import logging
from dataclasses import dataclass, field

import httpx

from apartment_tracker.models.database import Database
from apartment_tracker.scrapers.base import USER_AGENT

logger = logging.getLogger(__name__)

GONE_STATUS_CODES = {404, 410}


@dataclass
class AvailabilityReport:
    checked: int = 0
    marked_offline: list[int] = field(default_factory=list)
    errors: int = 0

    def to_dict(self) -> dict:
        return {
            "checked": self.checked,
            "marked_offline": self.marked_offline,
            "errors": self.errors,
        }


class AvailabilityChecker:
    """Request the URL of every online listing."""

    def __init__(self, db: Database, transport: httpx.AsyncBaseTransport | None = None):
        self.db = db
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    async def is_gone(self, url: str) -> bool:
        """True when the page answers 404 or 410."""
        client = await self._get_client()
        response = await client.get(url)
        return response.status_code in GONE_STATUS_CODES

    async def check_all(self) -> AvailabilityReport:
        """Check every online listing and mark the gone ones offline."""
        report = AvailabilityReport()
        for listing_id, url in await self.db.get_online_listings():
            report.checked += 1
            try:
                gone = await self.is_gone(url)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                # Network trouble or a malformed URL is not proof the listing is gone
                logger.warning(f"Could not check listing {listing_id} ({url}): {e}")
                report.errors += 1
                continue

            if gone:
                await self.db.set_online(listing_id, False)
                report.marked_offline.append(listing_id)
                logger.info(f"Listing {listing_id} is no longer online: {url}")

        logger.info(
            f"Availability check: {report.checked} checked, "
            f"{len(report.marked_offline)} marked offline, {report.errors} errors"
        )
        return report

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None
