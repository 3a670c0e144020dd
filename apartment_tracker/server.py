"""Main server - HTTP endpoints, store lifecycle and the daily availability check."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from apartment_tracker.config.settings import Settings
from apartment_tracker.errors import ProviderError, ValidationError
from apartment_tracker.geo.openroute import OpenRouteServiceClient
from apartment_tracker.handlers.requests import (
    AppointmentPayload,
    CommentPayload,
    GeocodePayload,
    ListingPayload,
    ManualTravelTimePayload,
    OnlinePayload,
    ReferenceAddressPayload,
    ScrapePayload,
    StatusPayload,
    TravelTimeRequest,
    TravelTimeUpdatePayload,
    VotePayload,
)
from apartment_tracker.models.database import Database
from apartment_tracker.models.listing import group_appointments_by_day
from apartment_tracker.scrapers.availability import AvailabilityChecker
from apartment_tracker.scrapers.page_scraper import PageScraper

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class TrackerServer:
    """Owns the store handle and the outbound clients for the app's lifetime."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or Settings.load()
        self.db = Database(self.settings.db_path)
        self.geo = OpenRouteServiceClient(
            api_key=self.settings.ors_api_key,
            base_url=self.settings.ors_base_url,
            profile=self.settings.routing.profile,
            geocode_results=self.settings.routing.geocode_results,
            transport=transport,
        )
        self.scraper = PageScraper(self.settings.scraper, transport=transport)
        self.availability = AvailabilityChecker(self.db, transport=transport)
        self.scheduler = AsyncIOScheduler()

    async def startup(self, start_scheduler: bool = True):
        """Initialize server components."""
        logging.getLogger().setLevel(self.settings.log_level.upper())

        errors = self.settings.validate()
        for error in errors:
            logger.warning(f"Config warning: {error}")

        await self.db.connect()

        if start_scheduler:
            hour, minute = self.settings.check_hour_minute
            self.scheduler.add_job(
                self.availability.check_all,
                CronTrigger(hour=hour, minute=minute),
                id="daily_availability_check",
                replace_existing=True,
            )
            self.scheduler.start()
            logger.info(f"Scheduled daily availability check at {self.settings.daily_check_time}")

    async def shutdown(self):
        """Clean up server components."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        await self.availability.close()
        await self.scraper.close()
        await self.geo.close()
        await self.db.close()


def create_app(server: TrackerServer | None = None) -> FastAPI:
    """Build the FastAPI application.

    When no server is given, one is created from the environment at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.server is None:
            app.state.server = TrackerServer()
            await app.state.server.startup()
        yield
        await app.state.server.shutdown()

    app = FastAPI(title="Apartment Tracker", lifespan=lifespan)
    app.state.server = server
    _register_routes(app)
    return app


def _server(request: Request) -> TrackerServer:
    return request.app.state.server


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": message})


def _register_routes(app: FastAPI):

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(ProviderError)
    async def handle_provider_error(request: Request, exc: ProviderError):
        logger.error(f"Provider error: {exc}")
        return JSONResponse(status_code=502, content={"error": str(exc)})

    # Listings

    @app.get("/")
    @app.get("/listings")
    async def list_listings(request: Request, sort: str = Query("votes")):
        db = _server(request).db
        listings, addresses = await asyncio.gather(
            db.fetch_all(sort),
            db.get_reference_addresses(),
        )
        return {
            "listings": [listing.to_dict() for listing in listings],
            "reference_addresses": [address.to_dict() for address in addresses],
            "sort": sort,
        }

    @app.get("/listing/{listing_id}")
    async def get_listing(request: Request, listing_id: int):
        db = _server(request).db
        listing, travel_times, addresses = await asyncio.gather(
            db.fetch_one(listing_id),
            db.get_travel_times(listing_id),
            db.get_reference_addresses(),
        )
        if listing is None:
            return _not_found("Listing not found")
        return {
            "listing": listing.to_dict(),
            "travel_times": [travel_time.to_dict() for travel_time in travel_times],
            "reference_addresses": [address.to_dict() for address in addresses],
        }

    @app.post("/listing")
    async def create_listing(request: Request, payload: ListingPayload):
        listing_id = await _server(request).db.create_listing(payload.to_draft())
        return {"success": True, "id": listing_id}

    @app.put("/listing/{listing_id}")
    async def update_listing(request: Request, listing_id: int, payload: ListingPayload):
        if not await _server(request).db.update_listing(listing_id, payload.to_draft()):
            return _not_found("Listing not found")
        return {"success": True}

    @app.delete("/listing/{listing_id}")
    async def delete_listing(request: Request, listing_id: int):
        if not await _server(request).db.delete_listing(listing_id):
            return _not_found("Listing not found")
        return {"success": True}

    @app.post("/listing/{listing_id}/vote")
    async def vote(request: Request, listing_id: int, payload: VotePayload):
        votes = await _server(request).db.adjust_votes(listing_id, payload.delta)
        if votes is None:
            return _not_found("Listing not found")
        return {"votes": votes}

    @app.post("/listing/{listing_id}/comment")
    async def add_comment(request: Request, listing_id: int, payload: CommentPayload):
        comment_id = await _server(request).db.add_comment(listing_id, payload.content)
        if comment_id is None:
            return _not_found("Listing not found")
        return {"success": True, "id": comment_id}

    @app.get("/listing/{listing_id}/comments")
    async def list_comments(request: Request, listing_id: int):
        db = _server(request).db
        if await db.fetch_one(listing_id) is None:
            return _not_found("Listing not found")
        return [comment.to_dict() for comment in await db.get_comments(listing_id)]

    @app.post("/listing/{listing_id}/status")
    async def update_status(request: Request, listing_id: int, payload: StatusPayload):
        if not await _server(request).db.update_status(listing_id, payload.checked_status()):
            return _not_found("Listing not found")
        return {"success": True}

    @app.post("/listing/{listing_id}/online")
    async def set_online(request: Request, listing_id: int, payload: OnlinePayload):
        if not await _server(request).db.set_online(listing_id, payload.online):
            return _not_found("Listing not found")
        return {"success": True}

    # Appointments

    @app.post("/listing/{listing_id}/appointment")
    async def set_appointment(request: Request, listing_id: int, payload: AppointmentPayload):
        db = _server(request).db
        if not await db.set_appointment(listing_id, payload.date, payload.notes):
            return _not_found("Listing not found")
        return {"success": True}

    @app.delete("/listing/{listing_id}/appointment")
    async def cancel_appointment(request: Request, listing_id: int):
        if not await _server(request).db.cancel_appointment(listing_id):
            return _not_found("Listing not found")
        return {"success": True}

    @app.get("/appointments")
    async def list_appointments(request: Request):
        appointments = await _server(request).db.get_appointments()
        by_day = group_appointments_by_day(appointments)
        return {
            "appointments": [appointment.to_dict() for appointment in appointments],
            "by_day": {
                day: [appointment.to_dict() for appointment in day_appointments]
                for day, day_appointments in by_day.items()
            },
        }

    # Reference addresses

    @app.get("/api/reference-addresses")
    async def list_reference_addresses(request: Request):
        addresses = await _server(request).db.get_reference_addresses()
        return [address.to_dict() for address in addresses]

    @app.post("/api/reference-addresses")
    async def create_reference_address(request: Request, payload: ReferenceAddressPayload):
        address_id = await _server(request).db.create_reference_address(
            payload.name, payload.address, payload.latitude, payload.longitude
        )
        return {"success": True, "id": address_id}

    @app.put("/api/reference-addresses/{address_id}")
    async def update_reference_address(
        request: Request, address_id: int, payload: ReferenceAddressPayload
    ):
        updated = await _server(request).db.update_reference_address(
            address_id, payload.name, payload.address, payload.latitude, payload.longitude
        )
        if not updated:
            return _not_found("Reference address not found")
        return {"success": True}

    @app.delete("/api/reference-addresses/{address_id}")
    async def delete_reference_address(request: Request, address_id: int):
        if not await _server(request).db.delete_reference_address(address_id):
            return _not_found("Reference address not found")
        return {"success": True}

    # External services

    @app.post("/api/geocode")
    async def geocode(request: Request, payload: GeocodePayload):
        result = await _server(request).geo.geocode(payload.address)
        if result is None:
            return _not_found("Address not found")
        return result.to_dict()

    @app.post("/api/travel-time")
    async def compute_travel_time(request: Request, payload: TravelTimeRequest):
        server = _server(request)
        origin, destination = await asyncio.gather(
            server.db.get_listing_coordinates(payload.listing_id),
            server.db.get_address_coordinates(payload.address_id),
        )
        if origin is None or destination is None:
            return _not_found("Listing or address not found")

        minutes = await server.geo.route_minutes(origin, destination)
        if minutes is None:
            return _not_found("Route cannot be calculated")

        if payload.save:
            existing = await server.db.find_travel_time(payload.listing_id, payload.address_id)
            if existing:
                await server.db.update_travel_time(existing.id, minutes, is_manual=False)
            else:
                await server.db.add_travel_time(payload.listing_id, payload.address_id, minutes)
        return {"travelTime": minutes}

    @app.post("/api/travel-times")
    async def add_manual_travel_time(request: Request, payload: ManualTravelTimePayload):
        travel_time_id = await _server(request).db.add_travel_time(
            payload.listing_id, payload.address_id, payload.travel_time, is_manual=True
        )
        if travel_time_id is None:
            return _not_found("Listing or address not found")
        return {"success": True, "id": travel_time_id}

    @app.put("/api/travel-times/{travel_time_id}")
    async def update_travel_time(
        request: Request, travel_time_id: int, payload: TravelTimeUpdatePayload
    ):
        updated = await _server(request).db.update_travel_time(
            travel_time_id, payload.travel_time, payload.is_manual
        )
        if not updated:
            return _not_found("Travel time not found")
        return {"success": True}

    @app.post("/api/scrape")
    async def scrape_page(request: Request, payload: ScrapePayload):
        try:
            page = await _server(request).scraper.scrape(payload.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Error scraping {payload.url}: {e}")
            return JSONResponse(status_code=502, content={"error": f"Could not fetch {payload.url}"})
        return page.to_dict()

    @app.post("/api/availability-check")
    async def trigger_availability_check(request: Request):
        """Manual availability check trigger endpoint."""
        report = await _server(request).availability.check_all()
        return report.to_dict()

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        db = _server(request).db
        return {
            "status": "healthy",
            "listings": await db.get_listing_count(),
            "reference_addresses": await db.count_reference_addresses(),
            "timestamp": datetime.now().isoformat(),
        }


app = create_app()


def main():
    """Entry point for running the server."""
    import uvicorn

    settings = Settings.load()
    uvicorn.run(
        "apartment_tracker.server:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
