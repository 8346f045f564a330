"""Notification ledger: which listings each subscription has been sent.

The ledger is the only record of "already notified". It is read fresh on
every decision; nothing caches it in memory.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from ..models import Listing, NotificationRecord
from . import InvariantViolation
from .sql import insert_ignore

logger = logging.getLogger(__name__)


class NotificationLedger:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def is_notified(self, subscription_id: int, listing_id: int) -> bool:
        with self._session_factory() as db:
            row = db.scalar(
                select(NotificationRecord.id).where(
                    NotificationRecord.subscription_id == subscription_id,
                    NotificationRecord.listing_id == listing_id,
                )
            )
            return row is not None

    def record(self, subscription_id: int, listing_id: int, now: datetime | None = None) -> bool:
        """Record a delivered (subscription, listing) pair.

        Idempotent: an existing pair is left alone and False is returned.
        Raises InvariantViolation if the listing row does not exist.
        """
        with self._session_factory() as db:
            if db.scalar(select(Listing.id).where(Listing.id == listing_id)) is None:
                raise InvariantViolation(
                    f"notification for subscription {subscription_id} references "
                    f"unknown listing {listing_id}"
                )
            created = insert_ignore(
                db,
                NotificationRecord,
                {
                    "subscription_id": subscription_id,
                    "listing_id": listing_id,
                    "notified_at": now or datetime.now(timezone.utc),
                },
                ["subscription_id", "listing_id"],
            )
            db.commit()
        if not created:
            logger.debug("Ledger already has (%d, %d)", subscription_id, listing_id)
        return created

    def list_for(self, subscription_id: int, limit: int = 50) -> list[tuple[NotificationRecord, Listing]]:
        with self._session_factory() as db:
            stmt = (
                select(NotificationRecord, Listing)
                .join(Listing, Listing.id == NotificationRecord.listing_id)
                .where(NotificationRecord.subscription_id == subscription_id)
                .order_by(NotificationRecord.notified_at.desc(), NotificationRecord.id.desc())
                .limit(limit)
            )
            return [(rec, listing) for rec, listing in db.execute(stmt)]

    def count_for(self, subscription_id: int) -> int:
        with self._session_factory() as db:
            return db.scalar(
                select(func.count(NotificationRecord.id)).where(
                    NotificationRecord.subscription_id == subscription_id
                )
            ) or 0
