"""Tests for the page scraper and the availability checker."""

import httpx
import pytest

from apartment_tracker.config.settings import ScraperConfig
from apartment_tracker.scrapers.availability import AvailabilityChecker
from apartment_tracker.scrapers.page_scraper import PageScraper


class TestPageScraper:

    def test_parse_meta(self, listing_page):
        page = PageScraper().parse("https://listings.test/annonce/1", listing_page)
        assert page.title == "T3 lumineux - Croix-Rousse"
        assert page.description == "Bel appartement traversant"
        assert page.price == 1250.0

    def test_images_filtered_and_deduplicated(self, listing_page):
        page = PageScraper().parse("https://listings.test/annonce/1", listing_page)
        assert [image.src for image in page.images] == [
            "https://listings.test/photos/cover.jpg",
            "https://listings.test/photos/kitchen.jpg",
            "https://cdn.listings.test/bedroom.jpg",
        ]
        assert page.images[1].alt == "Kitchen"
        assert page.images[1].width == 800

    def test_max_images(self, listing_page):
        scraper = PageScraper(ScraperConfig(max_images=1))
        page = scraper.parse("https://listings.test/annonce/1", listing_page)
        assert len(page.images) == 1

    def test_title_fallback(self):
        page = PageScraper().parse("https://example.test/", "<html><head><title> Studio </title></head></html>")
        assert page.title == "Studio"
        assert page.description is None
        assert page.price is None
        assert page.images == []

    async def test_scrape(self, transport):
        async with PageScraper(transport=transport) as scraper:
            page = await scraper.scrape("https://listings.test/annonce/1")
        assert page.url == "https://listings.test/annonce/1"
        assert page.to_dict()["title"] == "T3 lumineux - Croix-Rousse"

    async def test_scrape_error_status(self, transport):
        async with PageScraper(transport=transport) as scraper:
            with pytest.raises(httpx.HTTPStatusError):
                await scraper.scrape("https://unknown.test/")


class TestAvailabilityChecker:

    async def test_marks_gone_listings_offline(self, db, make_draft, transport):
        alive = await db.create_listing(make_draft(url="https://listings.test/annonce/1"))
        gone = await db.create_listing(make_draft(url="https://listings.test/gone"))
        await db.create_listing(make_draft(url=""))

        checker = AvailabilityChecker(db, transport=transport)
        report = await checker.check_all()
        await checker.close()

        assert report.checked == 2
        assert report.marked_offline == [gone]
        assert (await db.fetch_one(gone)).online is False
        assert (await db.fetch_one(alive)).online is True

    async def test_network_error_leaves_listing_online(self, db, make_draft):
        listing_id = await db.create_listing(make_draft(url="https://down.test/"))

        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        checker = AvailabilityChecker(db, transport=httpx.MockTransport(handler))
        report = await checker.check_all()
        await checker.close()

        assert report.errors == 1
        assert report.marked_offline == []
        assert (await db.fetch_one(listing_id)).online is True

    async def test_malformed_url_does_not_stop_the_check(self, db, make_draft, transport):
        broken = await db.create_listing(make_draft(url="http://listings.test:abc/typo"))
        gone = await db.create_listing(make_draft(url="https://listings.test/gone"))

        checker = AvailabilityChecker(db, transport=transport)
        report = await checker.check_all()
        await checker.close()

        assert report.checked == 2
        assert report.errors == 1
        assert report.marked_offline == [gone]
        assert (await db.fetch_one(broken)).online is True
