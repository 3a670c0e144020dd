"""Listing page scraping and availability checks."""

from apartment_tracker.scrapers.availability import AvailabilityChecker, AvailabilityReport
from apartment_tracker.scrapers.base import BaseScraper
from apartment_tracker.scrapers.page_scraper import PageScraper, ScrapedImage, ScrapedPage

__all__ = [
    "AvailabilityChecker",
    "AvailabilityReport",
    "BaseScraper",
    "PageScraper",
    "ScrapedImage",
    "ScrapedPage",
]
