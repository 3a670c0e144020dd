"""SQLite database operations for listings and their related records."""

import logging
from datetime import datetime
from pathlib import Path

import aiosqlite

from apartment_tracker.errors import AddressLimitError, EmptyCommentError, ValidationError
from apartment_tracker.models.listing import (
    DEFAULT_STATUS,
    LISTING_STATUSES,
    Appointment,
    Comment,
    Coordinates,
    Listing,
    ListingDraft,
    ReferenceAddress,
    TravelTime,
    parse_datetime,
    validate_status,
)

logger = logging.getLogger(__name__)

MAX_REFERENCE_ADDRESSES = 4

SORT_ORDERS = {
    "votes": "votes DESC, id DESC",
    "alphabetical": "title ASC, id ASC",
}

_STATUS_SET = ", ".join(f"'{status}'" for status in LISTING_STATUSES)

LISTING_COLUMNS = (
    "url", "title", "type", "rooms", "location", "address", "latitude", "longitude",
    "images", "size", "floor", "price", "charges", "description", "agency_contact",
    "conditions", "dpe", "heating", "status", "appointment_date", "appointment_notes",
)


class Database:
    """Async SQLite store for listings, comments, reference addresses and travel times."""

    def __init__(self, db_path: str = "real_estate.db"):
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self):
        """Open database connection and create tables if needed."""
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        await self._connection.execute("PRAGMA foreign_keys = ON")
        await self._create_tables()
        logger.info(f"Connected to database {self.db_path}")

    async def close(self):
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _create_tables(self):
        """Create tables, indexes and status triggers if they don't exist."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS reference_addresses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                address TEXT NOT NULL,
                latitude REAL,
                longitude REAL,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS listings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                url TEXT,
                title TEXT,
                type TEXT,
                rooms INTEGER,
                location TEXT,
                address TEXT,
                latitude REAL,
                longitude REAL,
                images TEXT,
                size REAL,
                floor INTEGER,
                price REAL,
                charges REAL,
                description TEXT,
                agency_contact TEXT,
                conditions TEXT,
                dpe TEXT,
                heating TEXT,
                status TEXT DEFAULT 'to_contact',
                votes INTEGER DEFAULT 0,
                online INTEGER DEFAULT 1,
                appointment_date TEXT,
                appointment_notes TEXT,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS comments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                listing_id INTEGER NOT NULL,
                content TEXT NOT NULL,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (listing_id) REFERENCES listings (id) ON DELETE CASCADE
            )
        """)
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS travel_times (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                listing_id INTEGER NOT NULL,
                reference_address_id INTEGER NOT NULL,
                travel_time INTEGER,
                is_manual INTEGER DEFAULT 0,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (listing_id) REFERENCES listings (id) ON DELETE CASCADE,
                FOREIGN KEY (reference_address_id) REFERENCES reference_addresses (id) ON DELETE CASCADE
            )
        """)
        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_comments_listing ON comments(listing_id)
        """)
        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_travel_times_listing ON travel_times(listing_id)
        """)
        for event in ("INSERT", "UPDATE"):
            await self._connection.execute(f"""
                CREATE TRIGGER IF NOT EXISTS validate_status_{event.lower()}
                BEFORE {event} ON listings
                FOR EACH ROW
                BEGIN
                    SELECT CASE
                        WHEN NEW.status IS NULL OR NEW.status NOT IN ({_STATUS_SET})
                        THEN RAISE(ABORT, 'Invalid status value')
                    END;
                END
            """)
        await self._connection.commit()

    async def _fetchall(self, query: str, params: tuple = ()) -> list[dict]:
        cursor = await self._connection.execute(query, params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def _fetchone(self, query: str, params: tuple = ()) -> dict | None:
        cursor = await self._connection.execute(query, params)
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def _write(self, query: str, params: tuple = ()) -> aiosqlite.Cursor:
        """Run a single write statement and commit it."""
        cursor = await self._connection.execute(query, params)
        await self._connection.commit()
        return cursor

    # Listings

    async def fetch_all(self, sort_by: str = "votes") -> list[Listing]:
        """Get every listing with its comments and travel times.

        Unknown sort keys fall back to vote ordering.
        """
        order_by = SORT_ORDERS.get(sort_by, SORT_ORDERS["votes"])
        rows = await self._fetchall(f"SELECT * FROM listings ORDER BY {order_by}")
        listings = [Listing.from_row(row) for row in rows]
        if not listings:
            return listings

        comments = await self._comments_by_listing()
        travel_times = await self._travel_minutes_by_listing()
        for listing in listings:
            listing.comments = comments.get(listing.id, [])
            listing.comment_count = len(listing.comments)
            listing.travel_times = travel_times.get(listing.id, [])
        return listings

    async def fetch_one(self, listing_id: int) -> Listing | None:
        """Get a single listing with its comments and travel times."""
        row = await self._fetchone("SELECT * FROM listings WHERE id = ?", (listing_id,))
        if row is None:
            return None

        listing = Listing.from_row(row)
        comments = await self._comments_by_listing(listing_id)
        travel_times = await self._travel_minutes_by_listing(listing_id)
        listing.comments = comments.get(listing_id, [])
        listing.comment_count = len(listing.comments)
        listing.travel_times = travel_times.get(listing_id, [])
        return listing

    async def _comments_by_listing(self, listing_id: int | None = None) -> dict[int, list[str]]:
        """Comment texts grouped per listing, most recent first."""
        query = "SELECT listing_id, content FROM comments"
        params: tuple = ()
        if listing_id is not None:
            query += " WHERE listing_id = ?"
            params = (listing_id,)
        query += " ORDER BY created_at DESC, id DESC"

        grouped: dict[int, list[str]] = {}
        for row in await self._fetchall(query, params):
            if row["content"] and row["content"].strip():
                grouped.setdefault(row["listing_id"], []).append(row["content"])
        return grouped

    async def _travel_minutes_by_listing(self, listing_id: int | None = None) -> dict[int, list[int]]:
        query = "SELECT listing_id, travel_time FROM travel_times"
        params: tuple = ()
        if listing_id is not None:
            query += " WHERE listing_id = ?"
            params = (listing_id,)
        query += " ORDER BY id"

        grouped: dict[int, list[int]] = {}
        for row in await self._fetchall(query, params):
            if row["travel_time"] is not None:
                grouped.setdefault(row["listing_id"], []).append(row["travel_time"])
        return grouped

    async def get_comments(self, listing_id: int) -> list[Comment]:
        """Get the comment records of a listing, most recent first."""
        rows = await self._fetchall(
            "SELECT * FROM comments WHERE listing_id = ? ORDER BY created_at DESC, id DESC",
            (listing_id,),
        )
        return [Comment.from_row(row) for row in rows]

    async def create_listing(self, draft: ListingDraft) -> int:
        """Insert a listing and return its id."""
        row = draft.to_row()
        row["status"] = row["status"] or DEFAULT_STATUS
        columns = ", ".join(LISTING_COLUMNS)
        placeholders = ", ".join("?" * len(LISTING_COLUMNS))
        cursor = await self._write(
            f"INSERT INTO listings ({columns}, updated_at) VALUES ({placeholders}, CURRENT_TIMESTAMP)",
            tuple(row[column] for column in LISTING_COLUMNS),
        )
        logger.info(f"Created listing {cursor.lastrowid}: {draft.title}")
        return cursor.lastrowid

    async def update_listing(self, listing_id: int, draft: ListingDraft) -> bool:
        """Replace the writable fields of a listing.

        A draft without a status keeps the current one.
        Returns False if the listing doesn't exist.
        """
        row = draft.to_row()
        assignments = ", ".join(
            "status = COALESCE(?, status)" if column == "status" else f"{column} = ?"
            for column in LISTING_COLUMNS
        )
        cursor = await self._write(
            f"UPDATE listings SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (*(row[column] for column in LISTING_COLUMNS), listing_id),
        )
        return cursor.rowcount > 0

    async def delete_listing(self, listing_id: int) -> bool:
        """Delete a listing along with its comments and travel times."""
        cursor = await self._write("DELETE FROM listings WHERE id = ?", (listing_id,))
        return cursor.rowcount > 0

    async def get_listing_count(self) -> int:
        """Get total number of listings in database."""
        cursor = await self._connection.execute("SELECT COUNT(*) FROM listings")
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def get_online_listings(self) -> list[tuple[int, str]]:
        """(id, url) of every listing still marked online and having a URL."""
        rows = await self._fetchall(
            "SELECT id, url FROM listings WHERE online = 1 AND url IS NOT NULL AND url != ''"
        )
        return [(row["id"], row["url"]) for row in rows]

    async def set_online(self, listing_id: int, online: bool) -> bool:
        cursor = await self._write(
            "UPDATE listings SET online = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (1 if online else 0, listing_id),
        )
        return cursor.rowcount > 0

    # Votes and status

    async def adjust_votes(self, listing_id: int, delta: int) -> int | None:
        """Add +1 or -1 to a listing's votes and return the new total.

        Returns None if the listing doesn't exist.
        """
        if delta not in (1, -1):
            raise ValidationError(f"Vote delta must be +1 or -1, got {delta!r}")
        cursor = await self._connection.execute(
            "UPDATE listings SET votes = votes + ? WHERE id = ? RETURNING votes",
            (delta, listing_id),
        )
        rows = await cursor.fetchall()
        await self._connection.commit()
        return rows[0][0] if rows else None

    async def update_status(self, listing_id: int, status: str) -> bool:
        """Set the workflow status of a listing (any of the 8 statuses)."""
        validate_status(status)
        cursor = await self._write(
            "UPDATE listings SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (status, listing_id),
        )
        return cursor.rowcount > 0

    # Appointments

    async def set_appointment(
        self, listing_id: int, when: datetime | str, notes: str | None = None
    ) -> bool:
        """Attach a visit appointment to a listing."""
        when = parse_datetime(when)
        if when is None:
            raise ValidationError("Appointment date is required")
        cursor = await self._write(
            """
            UPDATE listings
            SET appointment_date = ?, appointment_notes = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (when.isoformat(), notes, listing_id),
        )
        return cursor.rowcount > 0

    async def cancel_appointment(self, listing_id: int) -> bool:
        """Clear the appointment date and notes of a listing."""
        cursor = await self._write(
            """
            UPDATE listings
            SET appointment_date = NULL, appointment_notes = NULL, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (listing_id,),
        )
        return cursor.rowcount > 0

    async def get_appointments(self) -> list[Appointment]:
        """Get every scheduled appointment, earliest first."""
        rows = await self._fetchall(
            """
            SELECT id, title, location, appointment_date, appointment_notes
            FROM listings
            WHERE appointment_date IS NOT NULL
            ORDER BY appointment_date
            """
        )
        return [Appointment.from_row(row) for row in rows]

    # Comments

    async def add_comment(self, listing_id: int, content: str) -> int | None:
        """Attach a comment to a listing.

        Returns the comment id, or None if the listing doesn't exist.
        """
        if not content or not content.strip():
            raise EmptyCommentError()
        cursor = await self._write(
            "INSERT INTO comments (listing_id, content) SELECT id, ? FROM listings WHERE id = ?",
            (content, listing_id),
        )
        return cursor.lastrowid if cursor.rowcount > 0 else None

    # Reference addresses

    async def get_reference_addresses(self) -> list[ReferenceAddress]:
        rows = await self._fetchall("SELECT * FROM reference_addresses ORDER BY created_at, id")
        return [ReferenceAddress.from_row(row) for row in rows]

    async def get_reference_address(self, address_id: int) -> ReferenceAddress | None:
        row = await self._fetchone("SELECT * FROM reference_addresses WHERE id = ?", (address_id,))
        return ReferenceAddress.from_row(row) if row else None

    async def count_reference_addresses(self) -> int:
        cursor = await self._connection.execute("SELECT COUNT(*) FROM reference_addresses")
        row = await cursor.fetchone()
        return row[0]

    async def create_reference_address(
        self,
        name: str,
        address: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> int:
        """Insert a reference address, refusing once the limit is reached."""
        cursor = await self._write(
            """
            INSERT INTO reference_addresses (name, address, latitude, longitude)
            SELECT ?, ?, ?, ?
            WHERE (SELECT COUNT(*) FROM reference_addresses) < ?
            """,
            (name, address, latitude, longitude, MAX_REFERENCE_ADDRESSES),
        )
        if cursor.rowcount == 0:
            raise AddressLimitError(MAX_REFERENCE_ADDRESSES)
        return cursor.lastrowid

    async def update_reference_address(
        self,
        address_id: int,
        name: str,
        address: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> bool:
        cursor = await self._write(
            "UPDATE reference_addresses SET name = ?, address = ?, latitude = ?, longitude = ? WHERE id = ?",
            (name, address, latitude, longitude, address_id),
        )
        return cursor.rowcount > 0

    async def delete_reference_address(self, address_id: int) -> bool:
        """Delete a reference address along with its travel times."""
        cursor = await self._write("DELETE FROM reference_addresses WHERE id = ?", (address_id,))
        return cursor.rowcount > 0

    # Travel times

    async def add_travel_time(
        self,
        listing_id: int,
        reference_address_id: int,
        travel_time: int,
        is_manual: bool = False,
    ) -> int | None:
        """Record a travel time; duplicates for the same pair are allowed.

        Returns None if the listing or the reference address doesn't exist.
        """
        cursor = await self._write(
            """
            INSERT INTO travel_times (listing_id, reference_address_id, travel_time, is_manual)
            SELECT ?, ?, ?, ?
            WHERE EXISTS (SELECT 1 FROM listings WHERE id = ?)
              AND EXISTS (SELECT 1 FROM reference_addresses WHERE id = ?)
            """,
            (
                listing_id,
                reference_address_id,
                travel_time,
                1 if is_manual else 0,
                listing_id,
                reference_address_id,
            ),
        )
        return cursor.lastrowid if cursor.rowcount > 0 else None

    async def update_travel_time(self, travel_time_id: int, travel_time: int, is_manual: bool) -> bool:
        cursor = await self._write(
            "UPDATE travel_times SET travel_time = ?, is_manual = ? WHERE id = ?",
            (travel_time, 1 if is_manual else 0, travel_time_id),
        )
        return cursor.rowcount > 0

    async def find_travel_time(self, listing_id: int, reference_address_id: int) -> TravelTime | None:
        """Latest travel time recorded for a (listing, address) pair."""
        row = await self._fetchone(
            """
            SELECT * FROM travel_times
            WHERE listing_id = ? AND reference_address_id = ?
            ORDER BY id DESC LIMIT 1
            """,
            (listing_id, reference_address_id),
        )
        return TravelTime.from_row(row) if row else None

    async def get_travel_times(self, listing_id: int) -> list[TravelTime]:
        """Travel times of a listing with the name of each reference address."""
        rows = await self._fetchall(
            """
            SELECT tt.*, ra.name AS address_name
            FROM travel_times tt
            JOIN reference_addresses ra ON tt.reference_address_id = ra.id
            WHERE tt.listing_id = ?
            ORDER BY ra.created_at, ra.id
            """,
            (listing_id,),
        )
        return [TravelTime.from_row(row) for row in rows]

    # Coordinates

    async def get_listing_coordinates(self, listing_id: int) -> Coordinates | None:
        """Coordinates of a listing, or None if missing or not geocoded."""
        row = await self._fetchone(
            "SELECT latitude, longitude FROM listings WHERE id = ?", (listing_id,)
        )
        return _coordinates(row)

    async def get_address_coordinates(self, address_id: int) -> Coordinates | None:
        row = await self._fetchone(
            "SELECT latitude, longitude FROM reference_addresses WHERE id = ?", (address_id,)
        )
        return _coordinates(row)

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def _coordinates(row: dict | None) -> Coordinates | None:
    if not row or row["latitude"] is None or row["longitude"] is None:
        return None
    return Coordinates(latitude=row["latitude"], longitude=row["longitude"])
