class ListingSourceError(Exception):
    """Raised when a listing source cannot produce a snapshot."""


class ListingFetchError(ListingSourceError):
    """Transport failure: network error, timeout, HTTP error status or rate limit."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ListingParseError(ListingSourceError):
    """The response arrived but did not have the expected shape."""
