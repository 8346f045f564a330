import json
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base
from .schemas import WatchQuery


class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner: Mapped[str] = mapped_column(Text, index=True)
    destination: Mapped[str] = mapped_column(Text)
    query_text: Mapped[str] = mapped_column(Text, default="")
    filters_json: Mapped[str] = mapped_column(Text, default="{}")
    search_url: Mapped[str] = mapped_column(Text, default="")
    price_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    price_max: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    last_checked_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    @property
    def filters(self) -> dict[str, str]:
        return json.loads(self.filters_json) if self.filters_json else {}

    def to_query(self) -> WatchQuery:
        return WatchQuery(
            text=self.query_text,
            price_min=self.price_min,
            price_max=self.price_max,
            filters=self.filters,
        )


class Listing(Base):
    __tablename__ = "listings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    provider_id: Mapped[str] = mapped_column(Text, unique=True, index=True)
    title: Mapped[str] = mapped_column(Text, default="")
    price: Mapped[float] = mapped_column(Float, default=0.0)
    currency: Mapped[str] = mapped_column(Text, default="EUR")
    url: Mapped[str] = mapped_column(Text, default="")
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Source-dependent attributes; the only columns backfill may touch
    size: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand: Mapped[str | None] = mapped_column(Text, nullable=True)
    condition: Mapped[str | None] = mapped_column(Text, nullable=True)
    seller: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)

    first_seen_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


BACKFILL_ATTRIBUTES = ("image_url", "size", "brand", "condition", "seller", "location")


class NotificationRecord(Base):
    __tablename__ = "notification_records"
    __table_args__ = (
        UniqueConstraint("subscription_id", "listing_id", name="uq_notification_pair"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subscription_id: Mapped[int] = mapped_column(Integer, ForeignKey("subscriptions.id"), index=True)
    listing_id: Mapped[int] = mapped_column(Integer, ForeignKey("listings.id"))
    notified_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class UserSettings(Base):
    __tablename__ = "user_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner: Mapped[str] = mapped_column(Text, unique=True, index=True)
    notifications_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    max_price_alerts: Mapped[float | None] = mapped_column(Float, nullable=True)
    preferred_brands: Mapped[str] = mapped_column(Text, default="")  # comma separated
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    @property
    def brand_list(self) -> list[str]:
        return [b.strip() for b in self.preferred_brands.split(",") if b.strip()]
