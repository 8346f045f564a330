"""Watch subscriptions: subscribe, list, unsubscribe, check now."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from ..models import Subscription
from ..schemas import (
    CheckResultResponse,
    ListingResponse,
    NotificationListResponse,
    NotificationRecordResponse,
    SubscriptionCreate,
    SubscriptionListResponse,
    SubscriptionResponse,
    WatchQuery,
)
from ..scraper.vinted import build_search_url, parse_search_url
from ..store import SubscriptionValidationError
from ..store.ledger import NotificationLedger
from ..store.subscriptions import SubscriptionStore
from .deps import get_app_component, get_ledger, get_subscription_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])


def _to_response(sub: Subscription, ledger: NotificationLedger) -> SubscriptionResponse:
    resp = SubscriptionResponse.model_validate(sub)
    resp.notified_count = ledger.count_for(sub.id)
    return resp


def _resolve_query(body: SubscriptionCreate) -> WatchQuery:
    """Build the watch query from a pasted URL and/or explicit fields.

    Explicit text, bounds and filters override what the URL carries.
    """
    base = parse_search_url(body.search_url) if body.search_url else WatchQuery()
    return WatchQuery(
        text=body.query or base.text,
        price_min=body.price_min if body.price_min is not None else base.price_min,
        price_max=body.price_max if body.price_max is not None else base.price_max,
        filters={**base.filters, **body.filters},
    )


@router.post("", response_model=SubscriptionResponse, status_code=201)
def create_subscription(
    body: SubscriptionCreate,
    store: SubscriptionStore = Depends(get_subscription_store),
    ledger: NotificationLedger = Depends(get_ledger),
):
    try:
        query = _resolve_query(body)
    except (ValueError, ValidationError) as e:
        raise HTTPException(400, str(e))

    try:
        sub_id = store.create(body.owner, body.destination, query, search_url=build_search_url(query))
    except SubscriptionValidationError as e:
        raise HTTPException(400, str(e))
    return _to_response(store.get(sub_id), ledger)


@router.get("", response_model=SubscriptionListResponse)
def list_subscriptions(
    owner: str = Query(..., min_length=1),
    include_inactive: bool = False,
    store: SubscriptionStore = Depends(get_subscription_store),
    ledger: NotificationLedger = Depends(get_ledger),
):
    subs = store.list_for_owner(owner, include_inactive=include_inactive)
    return SubscriptionListResponse(
        subscriptions=[_to_response(s, ledger) for s in subs],
        total=len(subs),
    )


@router.get("/{subscription_id}", response_model=SubscriptionResponse)
def get_subscription(
    subscription_id: int,
    store: SubscriptionStore = Depends(get_subscription_store),
    ledger: NotificationLedger = Depends(get_ledger),
):
    sub = store.get(subscription_id)
    if not sub:
        raise HTTPException(404, f"Subscription {subscription_id} not found")
    return _to_response(sub, ledger)


@router.delete("/{subscription_id}", status_code=204)
def deactivate_subscription(
    subscription_id: int,
    owner: str = Query(..., min_length=1),
    store: SubscriptionStore = Depends(get_subscription_store),
):
    if not store.deactivate(subscription_id, owner):
        raise HTTPException(404, f"Subscription {subscription_id} not found or not owned by {owner}")


@router.get("/{subscription_id}/notifications", response_model=NotificationListResponse)
def list_notifications(
    subscription_id: int,
    limit: int = Query(50, ge=1, le=500),
    store: SubscriptionStore = Depends(get_subscription_store),
    ledger: NotificationLedger = Depends(get_ledger),
):
    if not store.get(subscription_id):
        raise HTTPException(404, f"Subscription {subscription_id} not found")
    rows = ledger.list_for(subscription_id, limit=limit)
    return NotificationListResponse(
        notifications=[
            NotificationRecordResponse(
                subscription_id=rec.subscription_id,
                listing_id=rec.listing_id,
                notified_at=rec.notified_at,
                listing=ListingResponse.model_validate(listing),
            )
            for rec, listing in rows
        ],
        total=ledger.count_for(subscription_id),
    )


@router.post("/{subscription_id}/check", response_model=CheckResultResponse)
async def check_subscription(
    subscription_id: int,
    store: SubscriptionStore = Depends(get_subscription_store),
):
    sub = store.get(subscription_id)
    if not sub:
        raise HTTPException(404, f"Subscription {subscription_id} not found")
    if not sub.active:
        raise HTTPException(409, f"Subscription {subscription_id} is inactive")

    checker = get_app_component("checker")
    result = await checker.check(sub)
    return CheckResultResponse(
        subscription_id=result.subscription_id,
        new_count=result.new_count,
        skipped_count=result.skipped_count,
        failed_count=result.failed_count,
        filtered_count=result.filtered_count,
        errors=result.errors,
    )
