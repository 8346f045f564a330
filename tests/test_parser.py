"""Tests for Vinted parsers and search URL helpers."""

import json

import pytest

from vinted_watch.schemas import WatchQuery
from vinted_watch.scraper import ListingParseError
from vinted_watch.scraper.parser import CatalogParser, FeedPageParser, ItemPageParser, parse_price
from vinted_watch.scraper.vinted import build_search_url, catalog_params, parse_search_url

BASE = "https://www.vinted.nl"


class TestParsePrice:
    def test_euro_prefix(self):
        assert parse_price("€ 12,50") == 12.5

    def test_nbsp(self):
        assert parse_price("€\xa015,00") == 15.0

    def test_thousands_and_decimals(self):
        assert parse_price("1.234,56 €") == 1234.56

    def test_plain_decimal(self):
        assert parse_price("25.50") == 25.5

    def test_empty(self):
        assert parse_price("") == 0.0
        assert parse_price(None) == 0.0
        assert parse_price("Gratis") == 0.0


class TestCatalogParser:
    def test_parse_sample(self, catalog_json):
        items = CatalogParser(BASE).parse(json.loads(catalog_json))

        # the row without an id is skipped
        assert [i.provider_id for i in items] == ["4821907731", "4821899012", "4821870443"]

        zara = items[0]
        assert zara.title == "Zwarte winterjas Zara"
        assert zara.price == 15.0
        assert zara.currency == "EUR"
        assert zara.brand == "Zara"
        assert zara.size == "M"
        assert zara.condition == "Zeer goed"
        assert zara.seller == "annemiek_k"
        assert zara.url == "https://www.vinted.nl/items/4821907731-zwarte-winterjas-zara"
        assert zara.image_url.endswith("4821907731.jpeg")

    def test_string_price_and_missing_fields(self, catalog_json):
        regenjas = CatalogParser(BASE).parse(json.loads(catalog_json))[1]

        assert regenjas.title == "Regenjas"
        assert regenjas.price == 25.5
        assert regenjas.brand is None
        assert regenjas.image_url is None
        assert regenjas.location == "Utrecht"
        assert regenjas.url == "https://www.vinted.nl/items/4821899012"

    def test_limit(self, catalog_json):
        items = CatalogParser(BASE).parse(json.loads(catalog_json), limit=2)
        assert len(items) == 2

    def test_empty_items(self):
        assert CatalogParser(BASE).parse({"items": []}) == []

    @pytest.mark.parametrize("data", [{}, {"items": None}, {"code": 106}, []])
    def test_unexpected_shape(self, data):
        with pytest.raises(ListingParseError):
            CatalogParser(BASE).parse(data)


class TestFeedPageParser:
    def test_parse_sample(self, feed_html):
        items = FeedPageParser(BASE).parse(feed_html)

        assert [i.provider_id for i in items] == ["4821907731", "4821899012"]
        first = items[0]
        assert first.title == "Zwarte winterjas Zara"
        assert first.price == 15.0
        assert first.size == "M"
        assert first.seller == "annemiek_k"
        assert first.url == "https://www.vinted.nl/items/4821907731-zwarte-winterjas-zara"
        assert first.image_url.endswith("4821907731.jpeg")

    def test_title_from_link_and_absolute_url(self, feed_html):
        second = FeedPageParser(BASE).parse(feed_html)[1]

        assert second.title == "Regenjas"
        assert second.price == 1025.5
        assert second.url == "https://www.vinted.nl/items/4821899012-regenjas"
        assert second.size is None
        assert second.image_url is None

    def test_limit(self, feed_html):
        assert len(FeedPageParser(BASE).parse(feed_html, limit=1)) == 1

    def test_missing_grid(self):
        with pytest.raises(ListingParseError):
            FeedPageParser(BASE).parse("<html><body><p>Captcha</p></body></html>")


class TestItemPageParser:
    def test_parse_sample(self, item_html):
        details = ItemPageParser().parse(item_html)

        assert details == {
            "brand": "Zara",
            "size": "M",
            "condition": "Zeer goed",
            "location": "Amsterdam, Nederland",
            "seller": "annemiek_k",
            "image_url": "https://images1.vinted.net/t/01_zara/f800/4821907731.jpeg",
        }

    def test_empty_page(self):
        assert ItemPageParser().parse("<html></html>") == {}


class TestSearchUrl:
    def test_build(self):
        url = build_search_url(
            WatchQuery(text="winter jas", price_min=5, price_max=20.5, filters={"brand_id": "53"}),
            base_url=BASE,
        )
        assert url == (
            "https://www.vinted.nl/vetements?search_text=winter+jas"
            "&price_from=5&price_to=20.5&brand_id=53&order=newest_first"
        )

    def test_parse(self):
        query = parse_search_url(
            "https://www.vinted.nl/catalog?search_text=jas&price_to=20"
            "&brand_ids[]=53&brand_ids[]=88&size_ids[]=207&foo=bar&order=newest_first"
        )
        assert query.text == "jas"
        assert query.price_min is None
        assert query.price_max == 20
        assert query.filters == {"brand_id": "53,88", "size_id": "207"}

    def test_round_trip_through_canonical_url(self):
        original = WatchQuery(text="laarzen", price_min=10, filters={"size_id": "207"})
        assert parse_search_url(build_search_url(original, base_url=BASE)) == original

    @pytest.mark.parametrize("url", [
        "https://www.marktplaats.nl/q/jas/",
        "ftp://www.vinted.nl/catalog?search_text=jas",
        "not a url",
    ])
    def test_parse_rejects_non_vinted(self, url):
        with pytest.raises(ValueError):
            parse_search_url(url)

    def test_catalog_params(self):
        params = catalog_params(
            WatchQuery(text="jas", price_max=20, filters={"brand_id": "53,88"}), limit=15,
        )
        assert ("per_page", "15") in params
        assert ("order", "newest_first") in params
        assert ("search_text", "jas") in params
        assert ("price_to", "20") in params
        assert ("price_from", "20") not in params
        assert [v for k, v in params if k == "brand_ids[]"] == ["53", "88"]
