"""Data models and database operations."""

from apartment_tracker.models.listing import (
    Appointment,
    Comment,
    Coordinates,
    Listing,
    ListingDraft,
    ReferenceAddress,
    TravelTime,
)
from apartment_tracker.models.database import Database

__all__ = [
    "Appointment",
    "Comment",
    "Coordinates",
    "Database",
    "Listing",
    "ListingDraft",
    "ReferenceAddress",
    "TravelTime",
]
