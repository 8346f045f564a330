"""Per-owner preferences."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ..models import UserSettings

logger = logging.getLogger(__name__)


class UserSettingsStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, owner: str) -> UserSettings | None:
        with self._session_factory() as db:
            return db.scalars(select(UserSettings).where(UserSettings.owner == owner)).first()

    def update(
        self,
        owner: str,
        *,
        notifications_enabled: bool | None = None,
        max_price_alerts: float | None = None,
        preferred_brands: list[str] | None = None,
    ) -> UserSettings:
        """Create or update an owner's settings; None leaves a field unchanged."""
        with self._session_factory() as db:
            row = db.scalars(select(UserSettings).where(UserSettings.owner == owner)).first()
            if row is None:
                row = UserSettings(owner=owner, notifications_enabled=True, preferred_brands="")
                db.add(row)
            if notifications_enabled is not None:
                row.notifications_enabled = notifications_enabled
            if max_price_alerts is not None:
                row.max_price_alerts = max_price_alerts
            if preferred_brands is not None:
                row.preferred_brands = ",".join(b.strip() for b in preferred_brands if b.strip())
            db.commit()
            logger.info(
                "Settings for %s: notifications %s",
                owner, "on" if row.notifications_enabled else "off",
            )
            return row
