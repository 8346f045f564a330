from datetime import datetime

from pydantic import BaseModel, Field, model_validator

# Structured Vinted filters a watch may carry (search URL parameter names)
FILTER_KEYS = ("brand_id", "size_id", "catalog_id", "material_id", "color_id", "status_id")


# --- Listing source ---

class ListingSnapshot(BaseModel):
    """One listing as returned by a listing source, already validated."""

    provider_id: str = Field(..., min_length=1)
    title: str = ""
    price: float = 0.0
    currency: str = "EUR"
    url: str = ""
    image_url: str | None = None
    size: str | None = None
    brand: str | None = None
    condition: str | None = None
    seller: str | None = None
    location: str | None = None


class WatchQuery(BaseModel):
    text: str = ""
    price_min: float | None = Field(None, ge=0)
    price_max: float | None = Field(None, ge=0)
    filters: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.price_min is not None and self.price_max is not None and self.price_min > self.price_max:
            raise ValueError("price_min must not exceed price_max")
        unknown = set(self.filters) - set(FILTER_KEYS)
        if unknown:
            raise ValueError(f"unknown filters: {', '.join(sorted(unknown))}")
        return self

    def price_in_bounds(self, price: float) -> bool:
        if self.price_min is not None and price < self.price_min:
            return False
        if self.price_max is not None and price > self.price_max:
            return False
        return True


# --- Subscription ---

class SubscriptionCreate(BaseModel):
    owner: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    query: str | None = None
    search_url: str | None = None
    price_min: float | None = Field(None, ge=0)
    price_max: float | None = Field(None, ge=0)
    filters: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _require_query(self):
        if not (self.query or self.search_url):
            raise ValueError("query or search_url required")
        return self


class SubscriptionResponse(BaseModel):
    id: int
    owner: str
    destination: str
    query_text: str
    filters: dict[str, str]
    search_url: str
    price_min: float | None
    price_max: float | None
    created_at: datetime
    last_checked_at: datetime | None
    active: bool
    notified_count: int = 0

    model_config = {"from_attributes": True}


class SubscriptionListResponse(BaseModel):
    subscriptions: list[SubscriptionResponse]
    total: int


# --- Listing ---

class ListingResponse(BaseModel):
    id: int
    provider_id: str
    title: str
    price: float
    currency: str
    url: str
    image_url: str | None
    size: str | None
    brand: str | None
    condition: str | None
    seller: str | None
    location: str | None
    first_seen_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ListingListResponse(BaseModel):
    listings: list[ListingResponse]
    total: int


class NotificationRecordResponse(BaseModel):
    subscription_id: int
    listing_id: int
    notified_at: datetime
    listing: ListingResponse | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationRecordResponse]
    total: int


# --- Checks ---

class CheckResultResponse(BaseModel):
    subscription_id: int
    new_count: int
    skipped_count: int
    failed_count: int
    filtered_count: int
    errors: list[str]


# --- User settings ---

class UserSettingsUpdate(BaseModel):
    notifications_enabled: bool | None = None
    max_price_alerts: float | None = Field(None, ge=0)
    preferred_brands: list[str] | None = None


class UserSettingsResponse(BaseModel):
    owner: str
    notifications_enabled: bool
    max_price_alerts: float | None
    preferred_brands: list[str]
    updated_at: datetime | None = None


# --- Search ---

class SearchResponse(BaseModel):
    query: WatchQuery
    search_url: str
    items: list[ListingSnapshot]


# --- System ---

class ServiceStatus(BaseModel):
    name: str
    status: str  # ok / degraded / unavailable
    detail: str = ""


class HealthResponse(BaseModel):
    status: str
    scheduler_running: bool
    subscription_count: int
    active_count: int
    listing_count: int
    last_sweep: dict | None = None
    services: list[ServiceStatus] = []
