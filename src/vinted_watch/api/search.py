"""One-off Vinted search; nothing is stored or notified."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query
from pydantic import ValidationError

from ..schemas import SearchResponse, WatchQuery
from ..scraper import ListingSourceError
from ..scraper.vinted import build_search_url
from .deps import get_app_component

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["search"])


@router.get("/search", response_model=SearchResponse)
async def search_vinted(
    q: str = Query(..., min_length=1, description="Search query"),
    price_min: float | None = Query(None, ge=0),
    price_max: float | None = Query(None, ge=0),
    limit: int = Query(5, ge=1, le=50),
):
    try:
        query = WatchQuery(text=q, price_min=price_min, price_max=price_max)
    except ValidationError as e:
        raise HTTPException(400, str(e))

    source = get_app_component("source")
    try:
        items = await source.fetch(query, limit)
    except ListingSourceError as e:
        logger.warning("Vinted search failed for '%s': %s", q, e)
        raise HTTPException(502, f"Vinted search failed: {e}")
    return SearchResponse(query=query, search_url=build_search_url(query), items=items[:limit])
