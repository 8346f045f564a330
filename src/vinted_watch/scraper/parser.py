"""Parsers for Vinted responses.

CatalogParser   : catalog JSON endpoint (primary source)
FeedPageParser  : rendered search page (BS4 DOM parsing, fallback)
ItemPageParser  : single item page, used to backfill attributes
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ..schemas import ListingSnapshot
from . import ListingParseError

logger = logging.getLogger(__name__)

_ITEM_ID_RE = re.compile(r"/items/(\d+)")
_PRICE_RE = re.compile(r"(\d[\d.,\s]*)")


def parse_price(text: str | None) -> float:
    """Parse Vinted price text such as '€ 12,50' or '1.234,56 €'."""
    if not text:
        return 0.0
    m = _PRICE_RE.search(text.replace("\xa0", " "))
    if not m:
        return 0.0
    raw = m.group(1).replace(" ", "").strip(".,")
    if "," in raw and "." in raw:
        raw = raw.replace(".", "").replace(",", ".")
    else:
        raw = raw.replace(",", ".")
    try:
        return float(raw)
    except ValueError:
        return 0.0


class CatalogParser:
    """Parse the JSON returned by /api/v2/catalog/items."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")

    def parse(self, data: dict, limit: int | None = None) -> list[ListingSnapshot]:
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ListingParseError("catalog response has no 'items' list")

        results: list[ListingSnapshot] = []
        for raw in items:
            try:
                results.append(self._parse_item(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("Skipping catalog item due to parse error: %s", e)
            if limit is not None and len(results) >= limit:
                break
        return results

    def _parse_item(self, raw: dict) -> ListingSnapshot:
        item_id = raw["id"]
        price = raw.get("price")
        if isinstance(price, dict):
            amount = float(price.get("amount") or 0)
            currency = price.get("currency_code") or raw.get("currency") or "EUR"
        else:
            amount = parse_price(str(price)) if price is not None else 0.0
            currency = raw.get("currency") or "EUR"

        photo = raw.get("photo") or {}
        user = raw.get("user") or {}
        city = raw.get("city") or user.get("city")
        if isinstance(city, dict):
            city = city.get("title")

        return ListingSnapshot(
            provider_id=str(item_id),
            title=(raw.get("title") or "").strip(),
            price=amount,
            currency=currency,
            url=raw.get("url") or f"{self.base_url}/items/{item_id}",
            image_url=photo.get("url") or None,
            size=raw.get("size_title") or None,
            brand=raw.get("brand_title") or None,
            condition=raw.get("status") or None,
            seller=user.get("login") or None,
            location=city or None,
        )


class FeedPageParser:
    """Parse the feed grid of a rendered search page."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")

    def parse(self, html: str, limit: int | None = None) -> list[ListingSnapshot]:
        soup = BeautifulSoup(html, "html.parser")
        grid = soup.select_one('[data-testid="feed-grid"]')
        if grid is None:
            raise ListingParseError("feed grid not found in search page")

        results: list[ListingSnapshot] = []
        for cell in grid.find_all("div", recursive=False):
            snapshot = self._parse_cell(cell)
            if snapshot is None:
                continue
            results.append(snapshot)
            if limit is not None and len(results) >= limit:
                break
        return results

    def _parse_cell(self, cell: Tag) -> ListingSnapshot | None:
        link = cell.select_one('a[href*="/items/"]')
        if link is None:
            return None
        href = link.get("href", "")
        m = _ITEM_ID_RE.search(href)
        if not m:
            return None

        title = self._text(cell, '[data-testid="item-title"]') or link.get("title", "").strip()
        img = cell.find("img")
        return ListingSnapshot(
            provider_id=m.group(1),
            title=title,
            price=parse_price(self._text(cell, '[data-testid="item-price"]')),
            url=urljoin(self.base_url + "/", href),
            image_url=(img.get("src") if img else None) or None,
            size=self._text(cell, '[data-testid="item-size"]'),
            seller=self._text(cell, '[data-testid="item-seller"]'),
        )

    @staticmethod
    def _text(node: Tag, selector: str) -> str | None:
        el = node.select_one(selector)
        if el is None:
            return None
        return el.get_text(strip=True) or None


class ItemPageParser:
    """Extract backfillable attributes from an item detail page."""

    _LABELS = {
        "size": ("maat", "size"),
        "brand": ("merk", "brand"),
        "condition": ("staat", "condition"),
        "location": ("locatie", "location"),
    }

    def parse(self, html: str) -> dict:
        soup = BeautifulSoup(html, "html.parser")
        result: dict[str, str] = {}

        for el in soup.select('[data-testid="item-details"] div, .item-attributes div'):
            if el.find("div") is not None:
                continue
            text = el.get_text(" ", strip=True)
            if ":" not in text:
                continue
            label, _, value = text.partition(":")
            label = label.strip().lower()
            value = value.strip()
            if not value:
                continue
            for key, names in self._LABELS.items():
                if label in names and key not in result:
                    result[key] = value

        seller = soup.select_one('[data-testid="seller-name"]') or soup.select_one(".user-login")
        if seller is not None and seller.get_text(strip=True):
            result["seller"] = seller.get_text(strip=True)

        og_image = soup.find("meta", attrs={"property": "og:image"})
        if og_image is not None and og_image.get("content"):
            result["image_url"] = og_image["content"]
        return result
