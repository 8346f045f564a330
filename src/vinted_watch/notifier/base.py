"""Notification interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Listing, Subscription


def format_price(amount: float, currency: str = "EUR") -> str:
    symbol = {"EUR": "€", "GBP": "£", "USD": "$"}.get(currency)
    value = f"{amount:,.2f}"
    return f"{symbol}{value}" if symbol else f"{value} {currency}"


class BaseNotifier(ABC):
    """Abstract base for notification channels."""

    @abstractmethod
    async def notify(self, subscription: Subscription, listing: Listing) -> bool:
        """Deliver one listing to the subscription's destination. Return True on success."""
        ...

    def format_message(self, subscription: Subscription, listing: Listing) -> str:
        lines = [f"[new listing] {listing.title}"]
        lines.append(f"Watch #{subscription.id}: {subscription.query_text}")
        lines.append(f"Price: {format_price(listing.price, listing.currency)}")
        if listing.size:
            lines.append(f"Size: {listing.size}")
        if listing.brand:
            lines.append(f"Brand: {listing.brand}")
        if listing.seller:
            lines.append(f"Seller: {listing.seller}")
        lines.append(f"URL: {listing.url}")
        return "\n".join(lines)
