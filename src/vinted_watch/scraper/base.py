"""Listing source interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..schemas import ListingSnapshot, WatchQuery


class ListingSource(ABC):
    """Produces snapshots of the listings currently visible for a query."""

    @abstractmethod
    async def fetch(self, query: WatchQuery, limit: int) -> list[ListingSnapshot]:
        """Return at most ``limit`` listings, newest first.

        An empty result is an empty list. Failures raise ListingFetchError
        (transport) or ListingParseError (unexpected content).
        """
        ...

    async def fetch_details(self, url: str) -> dict:
        """Return extra attributes for one listing page. Empty if unsupported."""
        return {}

    async def close(self) -> None:
        pass
