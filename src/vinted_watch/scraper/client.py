"""HTTP client for the Vinted website and its catalog endpoint."""

from __future__ import annotations

import logging

import httpx

from ..config import settings
from . import ListingFetchError, ListingParseError

logger = logging.getLogger(__name__)

CATALOG_API_PATH = "/api/v2/catalog/items"

_HEADERS = {
    "User-Agent": settings.scraper_user_agent,
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "nl-NL,nl;q=0.9,en-US;q=0.7,en;q=0.3",
}


class VintedClient:
    """Async HTTP client holding the anonymous session cookies Vinted requires."""

    def __init__(self, base_url: str | None = None, timeout: int | None = None) -> None:
        self.base_url = (base_url or settings.vinted_base_url).rstrip("/")
        self.timeout = timeout or settings.scraper_request_timeout
        self._client: httpx.AsyncClient | None = None
        self._has_session = False

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=_HEADERS,
                timeout=self.timeout,
                follow_redirects=True,
            )
            self._has_session = False
        return self._client

    async def _ensure_session(self) -> httpx.AsyncClient:
        """Visit the home page once so the client carries session cookies."""
        client = await self._get_client()
        if not self._has_session:
            await self._request(client, self.base_url + "/")
            self._has_session = True
        return client

    async def fetch_catalog(self, params: list[tuple[str, str]]) -> dict:
        """GET the catalog endpoint. Retries once with fresh cookies on 401."""
        url = self.base_url + CATALOG_API_PATH
        for attempt in range(2):
            client = await self._ensure_session()
            try:
                resp = await self._request(client, url, params=params)
            except ListingFetchError as e:
                if e.status_code == 401 and attempt == 0:
                    logger.info("Vinted session expired; refreshing cookies")
                    client.cookies.clear()
                    self._has_session = False
                    continue
                raise
            try:
                return resp.json()
            except ValueError as e:
                raise ListingParseError(f"catalog response is not JSON: {e}") from e
        raise ListingFetchError("catalog request unauthorized after session refresh", 401)

    async def fetch_page(self, url: str, params: list[tuple[str, str]] | None = None) -> str:
        client = await self._get_client()
        resp = await self._request(client, url, params=params)
        return resp.text

    @staticmethod
    async def _request(
        client: httpx.AsyncClient, url: str, params: list[tuple[str, str]] | None = None,
    ) -> httpx.Response:
        try:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.warning("HTTP %s for %s", status_code, url)
            if status_code == 429:
                raise ListingFetchError(f"rate limited by {url}", status_code) from e
            raise ListingFetchError(f"HTTP {status_code} for {url}", status_code) from e
        except httpx.RequestError as e:
            logger.warning("Request error for %s: %s", url, e)
            raise ListingFetchError(f"request to {url} failed: {e}") from e

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
