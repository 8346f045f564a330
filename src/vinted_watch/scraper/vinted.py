"""Vinted listing source and search URL helpers."""

from __future__ import annotations

import logging
from urllib.parse import parse_qsl, urlencode, urlparse

from ..config import settings
from ..schemas import FILTER_KEYS, ListingSnapshot, WatchQuery
from . import ListingParseError
from .base import ListingSource
from .client import VintedClient
from .parser import CatalogParser, FeedPageParser, ItemPageParser

logger = logging.getLogger(__name__)

SEARCH_PATH = "/vetements"


def _format_price(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def build_search_url(query: WatchQuery, base_url: str | None = None) -> str:
    """Canonical Vinted search URL for a query, newest listings first."""
    base = (base_url or settings.vinted_base_url).rstrip("/")
    params: list[tuple[str, str]] = []
    if query.text:
        params.append(("search_text", query.text))
    if query.price_min is not None:
        params.append(("price_from", _format_price(query.price_min)))
    if query.price_max is not None:
        params.append(("price_to", _format_price(query.price_max)))
    for key in FILTER_KEYS:
        if key in query.filters:
            params.append((key, query.filters[key]))
    params.append(("order", "newest_first"))
    return f"{base}{SEARCH_PATH}?{urlencode(params)}"


def parse_search_url(url: str) -> WatchQuery:
    """Turn a pasted Vinted search URL back into a WatchQuery.

    Array-style keys (``brand_ids[]``) are folded into their singular
    filter name; repeated values are joined with commas.
    """
    parsed = urlparse(url)
    if not parsed.scheme.startswith("http") or "vinted." not in parsed.netloc:
        raise ValueError(f"not a Vinted URL: {url}")

    text = ""
    price_min = price_max = None
    filters: dict[str, list[str]] = {}
    for key, value in parse_qsl(parsed.query):
        if not value:
            continue
        if key == "search_text":
            text = value
        elif key == "price_from":
            price_min = float(value.replace(",", "."))
        elif key == "price_to":
            price_max = float(value.replace(",", "."))
        else:
            name = key.removesuffix("[]")
            if name.endswith("_ids"):
                name = name[:-4] + "_id"
            if name in FILTER_KEYS:
                filters.setdefault(name, []).append(value)
    return WatchQuery(
        text=text,
        price_min=price_min,
        price_max=price_max,
        filters={k: ",".join(v) for k, v in filters.items()},
    )


def catalog_params(query: WatchQuery, limit: int) -> list[tuple[str, str]]:
    params: list[tuple[str, str]] = [
        ("page", "1"),
        ("per_page", str(limit)),
        ("order", "newest_first"),
    ]
    if query.text:
        params.append(("search_text", query.text))
    if query.price_min is not None:
        params.append(("price_from", _format_price(query.price_min)))
    if query.price_max is not None:
        params.append(("price_to", _format_price(query.price_max)))
    for key in FILTER_KEYS:
        for value in query.filters.get(key, "").split(","):
            if value:
                params.append((f"{key}s[]", value))
    return params


class VintedSource(ListingSource):
    """Listing source backed by the Vinted catalog endpoint."""

    def __init__(self, client: VintedClient | None = None, use_html_fallback: bool | None = None) -> None:
        self.client = client or VintedClient()
        self.use_html_fallback = (
            settings.scraper_use_html_fallback if use_html_fallback is None else use_html_fallback
        )
        self._catalog_parser = CatalogParser(self.client.base_url)
        self._feed_parser = FeedPageParser(self.client.base_url)
        self._item_parser = ItemPageParser()

    async def fetch(self, query: WatchQuery, limit: int) -> list[ListingSnapshot]:
        try:
            data = await self.client.fetch_catalog(catalog_params(query, limit))
            return self._catalog_parser.parse(data, limit=limit)
        except ListingParseError as e:
            if not self.use_html_fallback:
                raise
            logger.warning("Catalog endpoint unusable (%s); falling back to search page", e)

        html = await self.client.fetch_page(build_search_url(query, self.client.base_url))
        return self._feed_parser.parse(html, limit=limit)

    async def fetch_details(self, url: str) -> dict:
        html = await self.client.fetch_page(url)
        return self._item_parser.parse(html)

    async def close(self) -> None:
        await self.client.close()
