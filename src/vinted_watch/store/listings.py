"""Listing store: one row per provider listing, keyed by provider_id."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from ..models import BACKFILL_ATTRIBUTES, Listing
from ..schemas import ListingSnapshot
from .sql import insert_ignore

logger = logging.getLogger(__name__)


class ListingStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, provider_id: str) -> Listing | None:
        with self._session_factory() as db:
            return db.scalars(select(Listing).where(Listing.provider_id == provider_id)).first()

    def get_by_id(self, listing_id: int) -> Listing | None:
        with self._session_factory() as db:
            return db.get(Listing, listing_id)

    def exists(self, listing_id: int) -> bool:
        with self._session_factory() as db:
            return db.scalar(select(Listing.id).where(Listing.id == listing_id)) is not None

    def upsert(self, snapshot: ListingSnapshot, now: datetime | None = None) -> tuple[Listing, bool]:
        """Store a snapshot unless its provider_id is already known.

        Returns the stored row and whether this call created it. Title and
        price of an existing row are never overwritten; empty attributes are
        backfilled from the snapshot.
        """
        now = now or datetime.now(timezone.utc)
        values = snapshot.model_dump()
        values["first_seen_at"] = now
        values["updated_at"] = now

        with self._session_factory() as db:
            created = insert_ignore(db, Listing, values, ["provider_id"])
            listing = db.scalars(
                select(Listing).where(Listing.provider_id == snapshot.provider_id)
            ).one()
            if not created and self._fill_empty(listing, values):
                listing.updated_at = now
            db.commit()

        if created:
            logger.debug("New listing %s (%s)", snapshot.provider_id, snapshot.title[:40])
        return listing, created

    def backfill(self, provider_id: str, **attrs) -> Listing | None:
        """Fill attribute columns that are still empty. Returns None if unknown."""
        invalid = set(attrs) - set(BACKFILL_ATTRIBUTES)
        if invalid:
            raise ValueError(f"not backfillable: {', '.join(sorted(invalid))}")

        with self._session_factory() as db:
            listing = db.scalars(select(Listing).where(Listing.provider_id == provider_id)).first()
            if listing is None:
                return None
            if self._fill_empty(listing, attrs):
                listing.updated_at = datetime.now(timezone.utc)
                db.commit()
                logger.info("Backfilled listing %s", provider_id)
            return listing

    def list_recent(self, limit: int = 50, offset: int = 0) -> list[Listing]:
        with self._session_factory() as db:
            stmt = (
                select(Listing)
                .order_by(Listing.first_seen_at.desc(), Listing.id.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(db.scalars(stmt))

    def count(self) -> int:
        with self._session_factory() as db:
            return db.scalar(select(func.count(Listing.id))) or 0

    @staticmethod
    def _fill_empty(listing: Listing, attrs: dict) -> bool:
        changed = False
        for key in BACKFILL_ATTRIBUTES:
            value = attrs.get(key)
            if value and not getattr(listing, key):
                setattr(listing, key, value)
                changed = True
        return changed
