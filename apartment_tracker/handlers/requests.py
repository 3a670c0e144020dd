"""Request bodies accepted by the HTTP endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from apartment_tracker.errors import InvalidStatusError
from apartment_tracker.models.listing import ENDPOINT_STATUSES, ListingDraft

# Form fields may arrive as strings, including "" for unset numbers.
Number = float | str | None


class ListingPayload(BaseModel):
    """Flat field set for creating or replacing a listing."""

    url: str | None = None
    title: str | None = None
    type: str | None = None
    rooms: Number = None
    location: str | None = None
    address: str | None = None
    latitude: Number = None
    longitude: Number = None
    images: str | list[str] | None = None
    existing_images: str | None = None
    size: Number = None
    floor: Number = None
    price: Number = None
    charges: Number = None
    description: str | None = None
    agency_contact: str | None = None
    conditions: str | None = None
    dpe: str | None = None
    heating: str | None = None
    status: str | None = None
    appointment_date: str | None = None
    appointment_notes: str | None = None

    def to_draft(self) -> ListingDraft:
        data = self.model_dump(exclude={"existing_images"})
        if not data["images"] and self.existing_images:
            data["images"] = self.existing_images
        return ListingDraft.from_dict(data)


class VotePayload(BaseModel):
    direction: Literal["up", "down"]

    @property
    def delta(self) -> int:
        return 1 if self.direction == "up" else -1


class CommentPayload(BaseModel):
    content: str = ""


class StatusPayload(BaseModel):
    status: str

    def checked_status(self) -> str:
        """The status, if the status endpoint allows it."""
        if self.status not in ENDPOINT_STATUSES:
            raise InvalidStatusError(self.status)
        return self.status


class OnlinePayload(BaseModel):
    online: bool


class AppointmentPayload(BaseModel):
    date: str
    notes: str = ""


class ReferenceAddressPayload(BaseModel):
    name: str
    address: str
    latitude: float | None = None
    longitude: float | None = None


class GeocodePayload(BaseModel):
    address: str


class TravelTimeRequest(BaseModel):
    """Compute the travel time between a listing and a reference address."""

    model_config = ConfigDict(populate_by_name=True)

    listing_id: int = Field(alias="listingId")
    address_id: int = Field(alias="addressId")
    save: bool = False


class ManualTravelTimePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    listing_id: int = Field(alias="listingId")
    address_id: int = Field(alias="addressId")
    travel_time: int = Field(alias="travelTime", ge=0)


class TravelTimeUpdatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    travel_time: int = Field(alias="travelTime", ge=0)
    is_manual: bool = Field(default=True, alias="isManual")


class ScrapePayload(BaseModel):
    url: str
