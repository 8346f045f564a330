"""Webhook notifier for Discord / Slack / generic JSON endpoints."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from ..config import settings
from ..models import Listing, Subscription
from .base import BaseNotifier, format_price

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_BACKOFF = (1, 3, 5)  # seconds
EMBED_COLOR = 0x1DB584


async def send_webhook(
    url: str,
    payload: dict,
    *,
    max_retries: int = MAX_RETRIES,
) -> bool:
    """POST JSON to a webhook URL with retry + backoff. Never raises."""
    for attempt in range(max_retries):
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                resp = await client.post(url, json=payload)
                resp.raise_for_status()
            return True
        except Exception as e:
            wait = RETRY_BACKOFF[attempt] if attempt < len(RETRY_BACKOFF) else RETRY_BACKOFF[-1]
            if attempt < max_retries - 1:
                logger.warning("Webhook attempt %d/%d failed: %s (retry in %ds)", attempt + 1, max_retries, e, wait)
                await asyncio.sleep(wait)
            else:
                logger.warning("Webhook failed after %d attempts: %s", max_retries, e)
    return False


class WebhookNotifier(BaseNotifier):
    """Posts to the subscription's destination when it is a URL, else to the default webhook."""

    def __init__(self, url: str | None = None, webhook_type: str | None = None) -> None:
        self.url = url or settings.webhook_url
        self.webhook_type = webhook_type or settings.webhook_type

    def resolve_url(self, subscription: Subscription) -> str:
        if subscription.destination.startswith(("http://", "https://")):
            return subscription.destination
        return self.url

    async def notify(self, subscription: Subscription, listing: Listing) -> bool:
        url = self.resolve_url(subscription)
        if not url:
            logger.warning("No webhook for subscription %d; cannot deliver", subscription.id)
            return False

        msg = self.format_message(subscription, listing)
        payload = self._build_payload(msg, subscription, listing)
        return await send_webhook(url, payload)

    def _build_payload(self, message: str, subscription: Subscription, listing: Listing) -> dict:
        if self.webhook_type == "discord":
            fields = [
                {"name": "Price", "value": format_price(listing.price, listing.currency), "inline": True},
                {"name": "Size", "value": listing.size or "Unknown", "inline": True},
                {"name": "Brand", "value": listing.brand or "Unknown", "inline": True},
            ]
            if listing.seller:
                fields.append({"name": "Seller", "value": listing.seller, "inline": True})
            embed = {
                "author": {"name": f"New Vinted find for: {subscription.query_text}"},
                "title": listing.title[:256],
                "url": listing.url,
                "color": EMBED_COLOR,
                "fields": fields,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
            if listing.image_url:
                embed["image"] = {"url": listing.image_url}
            return {"content": f"<@{subscription.owner}>", "embeds": [embed]}
        elif self.webhook_type == "slack":
            return {
                "text": message,
                "blocks": [{
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": message},
                }],
            }
        else:
            # Generic
            return {
                "message": message,
                "subscription_id": subscription.id,
                "owner": subscription.owner,
                "listing": {
                    "provider_id": listing.provider_id,
                    "title": listing.title,
                    "price": listing.price,
                    "currency": listing.currency,
                    "url": listing.url,
                },
            }
