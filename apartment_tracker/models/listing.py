"""Listing data model and the records attached to it."""

import json
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Literal

from apartment_tracker.errors import InvalidStatusError, ValidationError

ListingStatus = Literal[
    "evaluating",
    "waiting_for_call",
    "to_contact",
    "contacting",
    "apt",
    "visited",
    "ended",
    "offline",
]

# Every status the store accepts.
LISTING_STATUSES: tuple[str, ...] = (
    "evaluating",
    "waiting_for_call",
    "to_contact",
    "contacting",
    "apt",
    "visited",
    "ended",
    "offline",
)

# Statuses reachable through the status endpoint.
ENDPOINT_STATUSES: tuple[str, ...] = (
    "to_contact",
    "contacting",
    "apt",
    "visited",
    "ended",
    "offline",
)

DEFAULT_STATUS = "to_contact"


def validate_status(status: str | None) -> ListingStatus:
    """Return the status if it belongs to the workflow, else raise."""
    if status not in LISTING_STATUSES:
        raise InvalidStatusError(status)
    return status


def split_images(value: str | list[str] | None) -> list[str]:
    """Turn a comma-joined string (or list) of filenames into a clean list."""
    if not value:
        return []
    parts = value.split(",") if isinstance(value, str) else value
    return [part.strip() for part in parts if part and part.strip()]


def load_images(raw: str | None) -> list[str]:
    """Decode the JSON images column."""
    if not raw:
        return []
    return split_images(json.loads(raw))


def dump_images(images: list[str]) -> str:
    return json.dumps(images)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse a stored or submitted timestamp, keeping None as None."""
    if value is None or isinstance(value, datetime):
        return value
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r}") from e


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def to_optional_float(value, name: str = "value") -> float | None:
    """Normalize a numeric field; blanks become None, zero stays zero."""
    if _blank(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid number for {name}: {value!r}") from e


def to_optional_int(value, name: str = "value") -> int | None:
    number = to_optional_float(value, name)
    if number is None:
        return None
    if not number.is_integer():
        raise ValidationError(f"Expected a whole number for {name}: {value!r}")
    return int(number)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class Coordinates:
    latitude: float
    longitude: float


@dataclass
class ListingDraft:
    """Writable listing fields, as accepted by create and update."""

    url: str | None = None
    title: str | None = None
    type: str | None = None
    rooms: int | None = None
    location: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    images: list[str] = field(default_factory=list)
    size: float | None = None
    floor: int | None = None
    price: float | None = None
    charges: float | None = None
    description: str | None = None
    agency_contact: str | None = None
    conditions: str | None = None
    dpe: str | None = None
    heating: str | None = None
    # None keeps the stored status on update, DEFAULT_STATUS on insert
    status: str | None = None
    appointment_date: datetime | None = None
    appointment_notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ListingDraft":
        """Build a draft from a flat field set, normalizing blanks and numbers."""
        status = data.get("status")
        return cls(
            url=data.get("url"),
            title=data.get("title"),
            type=data.get("type"),
            rooms=to_optional_int(data.get("rooms"), "rooms"),
            location=data.get("location"),
            address=data.get("address"),
            latitude=to_optional_float(data.get("latitude"), "latitude"),
            longitude=to_optional_float(data.get("longitude"), "longitude"),
            images=split_images(data.get("images")),
            size=to_optional_float(data.get("size"), "size"),
            floor=to_optional_int(data.get("floor"), "floor"),
            price=to_optional_float(data.get("price"), "price"),
            charges=to_optional_float(data.get("charges"), "charges"),
            description=data.get("description"),
            agency_contact=data.get("agency_contact"),
            conditions=data.get("conditions"),
            dpe=data.get("dpe"),
            heating=data.get("heating"),
            status=None if _blank(status) else status,
            appointment_date=parse_datetime(data.get("appointment_date")),
            appointment_notes=data.get("appointment_notes"),
        )

    def to_row(self) -> dict:
        """Column values for an INSERT or UPDATE."""
        if self.status is not None:
            validate_status(self.status)
        row = {f.name: getattr(self, f.name) for f in fields(self)}
        row["images"] = dump_images(self.images)
        row["appointment_date"] = _isoformat(self.appointment_date)
        return row


@dataclass
class Listing:
    """A tracked property, optionally enriched with comments and travel times."""

    id: int
    url: str | None = None
    title: str | None = None
    type: str | None = None
    rooms: int | None = None
    location: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    images: list[str] = field(default_factory=list)
    size: float | None = None
    floor: int | None = None
    price: float | None = None
    charges: float | None = None
    description: str | None = None
    agency_contact: str | None = None
    conditions: str | None = None
    dpe: str | None = None
    heating: str | None = None
    status: str = DEFAULT_STATUS
    votes: int = 0
    online: bool = True
    appointment_date: datetime | None = None
    appointment_notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    comments: list[str] = field(default_factory=list)
    comment_count: int = 0
    travel_times: list[int] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict) -> "Listing":
        """Create a Listing from a database row."""
        return cls(
            id=row["id"],
            url=row.get("url"),
            title=row.get("title"),
            type=row.get("type"),
            rooms=row.get("rooms"),
            location=row.get("location"),
            address=row.get("address"),
            latitude=row.get("latitude"),
            longitude=row.get("longitude"),
            images=load_images(row.get("images")),
            size=row.get("size"),
            floor=row.get("floor"),
            price=row.get("price"),
            charges=row.get("charges"),
            description=row.get("description"),
            agency_contact=row.get("agency_contact"),
            conditions=row.get("conditions"),
            dpe=row.get("dpe"),
            heating=row.get("heating"),
            status=row.get("status") or DEFAULT_STATUS,
            votes=row.get("votes") or 0,
            online=bool(row.get("online", 1)),
            appointment_date=parse_datetime(row.get("appointment_date")),
            appointment_notes=row.get("appointment_notes"),
            created_at=parse_datetime(row.get("created_at")),
            updated_at=parse_datetime(row.get("updated_at")),
        )

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        data = asdict(self)
        for key in ("appointment_date", "created_at", "updated_at"):
            data[key] = _isoformat(data[key])
        return data


@dataclass
class Comment:
    id: int
    listing_id: int
    content: str
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "Comment":
        return cls(
            id=row["id"],
            listing_id=row["listing_id"],
            content=row["content"],
            created_at=parse_datetime(row.get("created_at")),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = _isoformat(self.created_at)
        return data


@dataclass
class ReferenceAddress:
    """A point of interest used as a travel-time destination."""

    id: int
    name: str
    address: str
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "ReferenceAddress":
        return cls(
            id=row["id"],
            name=row["name"],
            address=row["address"],
            latitude=row.get("latitude"),
            longitude=row.get("longitude"),
            created_at=parse_datetime(row.get("created_at")),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = _isoformat(self.created_at)
        return data


@dataclass
class TravelTime:
    """Minutes between a listing and a reference address."""

    id: int
    listing_id: int
    reference_address_id: int
    travel_time: int
    is_manual: bool = False
    created_at: datetime | None = None
    address_name: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "TravelTime":
        return cls(
            id=row["id"],
            listing_id=row["listing_id"],
            reference_address_id=row["reference_address_id"],
            travel_time=row["travel_time"],
            is_manual=bool(row.get("is_manual")),
            created_at=parse_datetime(row.get("created_at")),
            address_name=row.get("address_name"),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = _isoformat(self.created_at)
        return data


@dataclass
class Appointment:
    """A scheduled visit, as shown on the calendar."""

    listing_id: int
    title: str | None
    location: str | None
    appointment_date: datetime
    notes: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "Appointment":
        return cls(
            listing_id=row["id"],
            title=row.get("title"),
            location=row.get("location"),
            appointment_date=parse_datetime(row["appointment_date"]),
            notes=row.get("appointment_notes"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.listing_id,
            "title": self.title,
            "location": self.location,
            "date": self.appointment_date.isoformat(),
            "time": self.appointment_date.strftime("%H:%M"),
            "notes": self.notes,
        }


def group_appointments_by_day(appointments: list[Appointment]) -> dict[str, list[Appointment]]:
    """Group appointments under their ISO day, keeping their order."""
    days: dict[str, list[Appointment]] = {}
    for appointment in appointments:
        key = appointment.appointment_date.date().isoformat()
        days.setdefault(key, []).append(appointment)
    return days
