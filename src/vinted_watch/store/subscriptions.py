"""Subscription store: watches are created, listed, touched and soft-deleted."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from pydantic import ValidationError
from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import sessionmaker

from ..models import Subscription, UserSettings
from ..schemas import WatchQuery
from . import SubscriptionValidationError

logger = logging.getLogger(__name__)


class SubscriptionStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def create(
        self,
        owner: str,
        destination: str,
        query: WatchQuery | dict,
        search_url: str = "",
    ) -> int:
        if not owner or not destination:
            raise SubscriptionValidationError("owner and destination are required")
        if isinstance(query, dict):
            try:
                query = WatchQuery(**query)
            except ValidationError as e:
                raise SubscriptionValidationError(str(e)) from e
        if not (query.text or query.filters):
            raise SubscriptionValidationError("query needs search text or filters")

        sub = Subscription(
            owner=owner,
            destination=destination,
            query_text=query.text,
            filters_json=json.dumps(query.filters, sort_keys=True),
            search_url=search_url,
            price_min=query.price_min,
            price_max=query.price_max,
        )
        with self._session_factory() as db:
            db.add(sub)
            db.commit()
            logger.info("Subscription %d created for %s: %r", sub.id, owner, query.text)
            return sub.id

    def deactivate(self, subscription_id: int, owner: str) -> bool:
        """Soft-delete a watch. False if missing, not owned by ``owner`` or already inactive."""
        with self._session_factory() as db:
            result = db.execute(
                update(Subscription)
                .where(
                    Subscription.id == subscription_id,
                    Subscription.owner == owner,
                    Subscription.active == True,
                )
                .values(active=False)
            )
            db.commit()
        if result.rowcount:
            logger.info("Subscription %d deactivated by %s", subscription_id, owner)
        return result.rowcount > 0

    def get(self, subscription_id: int) -> Subscription | None:
        with self._session_factory() as db:
            return db.get(Subscription, subscription_id)

    def list_for_owner(self, owner: str, include_inactive: bool = False) -> list[Subscription]:
        with self._session_factory() as db:
            stmt = select(Subscription).where(Subscription.owner == owner)
            if not include_inactive:
                stmt = stmt.where(Subscription.active == True)
            stmt = stmt.order_by(Subscription.created_at.desc(), Subscription.id.desc())
            return list(db.scalars(stmt))

    def list_active(self) -> list[Subscription]:
        """Active watches, least recently checked first.

        Owners who muted notifications in their user settings are left out.
        """
        with self._session_factory() as db:
            stmt = (
                select(Subscription)
                .outerjoin(UserSettings, UserSettings.owner == Subscription.owner)
                .where(
                    Subscription.active == True,
                    or_(UserSettings.id.is_(None), UserSettings.notifications_enabled == True),
                )
                .order_by(
                    Subscription.last_checked_at.is_not(None),
                    Subscription.last_checked_at.asc(),
                    Subscription.id.asc(),
                )
            )
            return list(db.scalars(stmt))

    def count(self, active_only: bool = False) -> int:
        with self._session_factory() as db:
            stmt = select(func.count(Subscription.id))
            if active_only:
                stmt = stmt.where(Subscription.active == True)
            return db.scalar(stmt) or 0

    def touch_checked(self, subscription_id: int, now: datetime | None = None) -> None:
        with self._session_factory() as db:
            db.execute(
                update(Subscription)
                .where(Subscription.id == subscription_id)
                .values(last_checked_at=now or datetime.now(timezone.utc))
            )
            db.commit()
