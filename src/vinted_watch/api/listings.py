"""Stored listings and attribute backfill."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ..models import BACKFILL_ATTRIBUTES
from ..schemas import ListingListResponse, ListingResponse
from ..scraper import ListingSourceError
from ..store.listings import ListingStore
from .deps import get_app_component, get_listing_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/listings", tags=["listings"])


@router.get("", response_model=ListingListResponse)
def list_listings(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    store: ListingStore = Depends(get_listing_store),
):
    listings = store.list_recent(limit=limit, offset=offset)
    return ListingListResponse(listings=listings, total=store.count())


@router.get("/{provider_id}", response_model=ListingResponse)
def get_listing(provider_id: str, store: ListingStore = Depends(get_listing_store)):
    listing = store.get(provider_id)
    if not listing:
        raise HTTPException(404, f"Listing {provider_id} not found")
    return listing


@router.post("/{provider_id}/refresh", response_model=ListingResponse)
async def refresh_listing(provider_id: str, store: ListingStore = Depends(get_listing_store)):
    """Fetch the item page and fill in attributes the listing is still missing."""
    listing = store.get(provider_id)
    if not listing:
        raise HTTPException(404, f"Listing {provider_id} not found")

    source = get_app_component("source")
    try:
        details = await source.fetch_details(listing.url)
    except ListingSourceError as e:
        logger.warning("Detail fetch failed for %s: %s", provider_id, e)
        raise HTTPException(502, f"Could not fetch listing {provider_id}: {e}")

    attrs = {k: v for k, v in details.items() if k in BACKFILL_ATTRIBUTES}
    return store.backfill(provider_id, **attrs)
