"""Tests for listing models."""

from datetime import datetime

import pytest

from apartment_tracker.errors import InvalidStatusError, ValidationError
from apartment_tracker.models.listing import (
    LISTING_STATUSES,
    Appointment,
    Listing,
    ListingDraft,
    group_appointments_by_day,
    split_images,
    validate_status,
)


class TestSplitImages:
    """Tests for turning joined filenames into lists."""

    def test_none_is_empty(self):
        assert split_images(None) == []

    def test_empty_string_is_empty(self):
        assert split_images("") == []

    def test_comma_joined(self):
        assert split_images("a.jpg,b.jpg") == ["a.jpg", "b.jpg"]

    def test_drops_blank_fragments(self):
        assert split_images("a.jpg, ,,b.jpg,") == ["a.jpg", "b.jpg"]

    def test_list_input(self):
        assert split_images(["a.jpg", "  ", "b.jpg "]) == ["a.jpg", "b.jpg"]


class TestListingDraft:
    """Tests for normalizing submitted listing fields."""

    def test_blank_numbers_are_unset(self):
        draft = ListingDraft.from_dict({"latitude": "", "longitude": None, "size": " ", "price": ""})
        assert draft.latitude is None
        assert draft.longitude is None
        assert draft.size is None
        assert draft.price is None

    def test_zero_stays_zero(self):
        draft = ListingDraft.from_dict({"latitude": "0", "price": 0, "floor": "0"})
        assert draft.latitude == 0.0
        assert draft.price == 0.0
        assert draft.floor == 0

    def test_numbers_from_strings(self):
        draft = ListingDraft.from_dict({"size": "48.5", "floor": "3", "charges": "75"})
        assert draft.size == 48.5
        assert draft.floor == 3
        assert draft.charges == 75.0

    def test_invalid_number(self):
        with pytest.raises(ValidationError):
            ListingDraft.from_dict({"price": "cheap"})

    def test_fractional_integer_field_rejected(self):
        with pytest.raises(ValidationError):
            ListingDraft.from_dict({"floor": "2.7"})
        with pytest.raises(ValidationError):
            ListingDraft.from_dict({"rooms": 3.5})

    def test_whole_float_accepted_for_integer_field(self):
        assert ListingDraft.from_dict({"floor": "3.0"}).floor == 3
        assert ListingDraft.from_dict({"rooms": 2.0}).rooms == 2

    def test_missing_status_left_unset(self):
        assert ListingDraft.from_dict({}).status is None
        assert ListingDraft.from_dict({"status": ""}).status is None
        assert ListingDraft.from_dict({}).to_row()["status"] is None

    def test_invalid_status_rejected_on_write(self):
        draft = ListingDraft.from_dict({"status": "sold"})
        with pytest.raises(InvalidStatusError):
            draft.to_row()

    def test_to_row_encodes_images_and_date(self):
        draft = ListingDraft.from_dict({
            "images": "a.jpg,b.jpg",
            "appointment_date": "2025-03-01T10:00",
        })
        row = draft.to_row()
        assert row["images"] == '["a.jpg", "b.jpg"]'
        assert row["appointment_date"] == "2025-03-01T10:00:00"

    def test_invalid_appointment_date(self):
        with pytest.raises(ValidationError):
            ListingDraft.from_dict({"appointment_date": "next tuesday"})


class TestStatus:

    def test_all_statuses_valid(self):
        for status in LISTING_STATUSES:
            assert validate_status(status) == status

    def test_none_is_invalid(self):
        with pytest.raises(InvalidStatusError):
            validate_status(None)

    def test_error_message_names_value(self):
        with pytest.raises(InvalidStatusError, match="sold"):
            validate_status("sold")


class TestListing:

    def test_from_row_defaults(self):
        listing = Listing.from_row({"id": 1, "images": None, "votes": None, "online": 1})
        assert listing.images == []
        assert listing.comments == []
        assert listing.travel_times == []
        assert listing.votes == 0
        assert listing.online is True

    def test_to_dict_serializes_dates(self):
        listing = Listing.from_row({
            "id": 1,
            "images": '["a.jpg"]',
            "appointment_date": "2025-03-01T10:00:00",
            "created_at": "2025-02-01 09:30:00",
        })
        data = listing.to_dict()
        assert data["images"] == ["a.jpg"]
        assert data["appointment_date"] == "2025-03-01T10:00:00"
        assert data["created_at"] == "2025-02-01T09:30:00"


def test_group_appointments_by_day():
    appointments = [
        Appointment(1, "T2", None, datetime(2025, 3, 1, 10, 0)),
        Appointment(2, "T3", None, datetime(2025, 3, 1, 14, 30)),
        Appointment(3, "Loft", None, datetime(2025, 3, 4, 9, 0)),
    ]
    days = group_appointments_by_day(appointments)
    assert list(days) == ["2025-03-01", "2025-03-04"]
    assert [a.listing_id for a in days["2025-03-01"]] == [1, 2]
    assert days["2025-03-01"][1].to_dict()["time"] == "14:30"
