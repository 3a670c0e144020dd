"""Scraper pulling title, description, price and images from a listing page."""

import logging
from dataclasses import dataclass, field
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from apartment_tracker.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

IMAGE_SOURCE_ATTRIBUTES = ("src", "data-src", "data-lazy-src", "data-original")


@dataclass
class ScrapedImage:
    src: str
    width: int | None = None
    height: int | None = None
    alt: str = ""


@dataclass
class ScrapedPage:
    """What could be read from a listing page, used to prefill a listing."""

    url: str
    title: str | None = None
    description: str | None = None
    price: float | None = None
    images: list[ScrapedImage] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "images": [
                {"src": image.src, "width": image.width, "height": image.height, "alt": image.alt}
                for image in self.images
            ],
        }


class PageScraper(BaseScraper):
    """Scraper for a single static listing page."""

    async def scrape(self, url: str) -> ScrapedPage:
        """Fetch a listing page and extract what can prefill a listing."""
        client = await self._get_client()
        response = await client.get(url)
        response.raise_for_status()

        page = self.parse(str(response.url), response.text)
        logger.info(f"Scraped {url}: {len(page.images)} images")
        return page

    def parse(self, url: str, html: str) -> ScrapedPage:
        soup = BeautifulSoup(html, "html.parser")

        title = self._meta(soup, "og:title")
        if not title and soup.title:
            title = soup.title.get_text(strip=True) or None

        description = self._meta(soup, "og:description") or self._meta(soup, "description")

        price = None
        price_text = self._meta(soup, "product:price:amount") or self._meta(soup, "og:price:amount")
        if price_text:
            price = self._parse_price(price_text)

        return ScrapedPage(
            url=url,
            title=title,
            description=description,
            price=price,
            images=self._parse_images(soup, url),
        )

    def _meta(self, soup: BeautifulSoup, name: str) -> str | None:
        """Content of a <meta property=...> or <meta name=...> tag."""
        tag = soup.find("meta", attrs={"property": name}) or soup.find("meta", attrs={"name": name})
        if tag and tag.get("content"):
            return tag["content"].strip() or None
        return None

    def _parse_images(self, soup: BeautifulSoup, base_url: str) -> list[ScrapedImage]:
        """Collect images large enough to be listing photos, without duplicates."""
        images: list[ScrapedImage] = []
        seen: set[str] = set()

        def add(image: ScrapedImage):
            if image.src not in seen and len(images) < self.config.max_images:
                seen.add(image.src)
                images.append(image)

        og_image = self._meta(soup, "og:image")
        if og_image:
            add(ScrapedImage(src=urljoin(base_url, og_image)))

        for img in soup.find_all("img"):
            src = next((img.get(attr) for attr in IMAGE_SOURCE_ATTRIBUTES if img.get(attr)), None)
            if not src or src.startswith("data:"):
                continue

            width = self._parse_int(img.get("width"))
            height = self._parse_int(img.get("height"))
            # Images without declared dimensions are kept
            if width is not None and width < self.config.min_width:
                continue
            if height is not None and height < self.config.min_height:
                continue

            add(ScrapedImage(
                src=urljoin(base_url, src),
                width=width,
                height=height,
                alt=img.get("alt", ""),
            ))

        return images
