"""Exceptions raised by the store and the provider clients."""


class TrackerError(Exception):
    """Base class for apartment tracker errors."""


class ValidationError(TrackerError):
    """A write was rejected before touching the database."""


class InvalidStatusError(ValidationError):
    """Status value outside the listing workflow."""

    def __init__(self, status):
        self.status = status
        super().__init__(f"Invalid status value: {status!r}")


class AddressLimitError(ValidationError):
    """Too many reference addresses."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Maximum {limit} reference addresses allowed")


class EmptyCommentError(ValidationError):
    """Comment content is blank."""

    def __init__(self):
        super().__init__("Comment cannot be empty")


class ProviderError(TrackerError):
    """The geocoding/routing provider could not be reached."""
