"""Per-subscription check: fetch, dedup, persist, notify, record.

One check walks the snapshot in the order the source returned it
(newest first). For each listing the row is upserted before anything
else, so a ledger entry can only ever point at a stored listing. The
ledger entry is the commit point and is written only after the notifier
reports success; a failed delivery leaves the pair pending for the next
check.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from ..models import Listing, Subscription
from ..notifier.base import BaseNotifier
from ..scraper import ListingSourceError
from ..scraper.base import ListingSource
from ..store.ledger import NotificationLedger
from ..store.listings import ListingStore
from ..store.subscriptions import SubscriptionStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 15


@dataclass
class CheckResult:
    subscription_id: int
    new_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    filtered_count: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class WatchChecker:
    def __init__(
        self,
        source: ListingSource,
        notifier: BaseNotifier,
        listings: ListingStore,
        subscriptions: SubscriptionStore,
        ledger: NotificationLedger,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        enforce_price_bounds: bool = False,
    ) -> None:
        self.source = source
        self.notifier = notifier
        self.listings = listings
        self.subscriptions = subscriptions
        self.ledger = ledger
        self.page_size = page_size
        self.enforce_price_bounds = enforce_price_bounds
        self._locks: dict[int, asyncio.Lock] = {}

    async def check(self, subscription: Subscription) -> CheckResult:
        """Run one check. Store errors propagate; last_checked_at is touched regardless.

        Checks of the same subscription never overlap: a manual check that
        arrives during a sweep waits for the running one to finish, then
        sees its ledger entries.
        """
        result = CheckResult(subscription_id=subscription.id)
        lock = self._locks.setdefault(subscription.id, asyncio.Lock())
        async with lock:
            try:
                await self._run(subscription, result)
            finally:
                self.subscriptions.touch_checked(subscription.id)

        if result.new_count or result.errors:
            logger.info(
                "Subscription %d checked: %d new, %d already sent, %d failed",
                subscription.id, result.new_count, result.skipped_count, result.failed_count,
            )
        return result

    async def _run(self, subscription: Subscription, result: CheckResult) -> None:
        query = subscription.to_query()
        try:
            snapshot = await self.source.fetch(query, self.page_size)
        except ListingSourceError as e:
            logger.warning(
                "Fetch failed for subscription %d (%r): %s: %s",
                subscription.id, query.text, type(e).__name__, e,
            )
            result.errors.append(f"fetch: {type(e).__name__}: {e}")
            return

        logger.debug("Subscription %d: %d listings in snapshot", subscription.id, len(snapshot))
        for item in snapshot[: self.page_size]:
            listing, _ = self.listings.upsert(item)

            if self.ledger.is_notified(subscription.id, listing.id):
                result.skipped_count += 1
                continue

            if self.enforce_price_bounds and not query.price_in_bounds(listing.price):
                result.filtered_count += 1
                continue

            if not await self._notify(subscription, listing):
                result.failed_count += 1
                result.errors.append(f"notify: listing {listing.provider_id} not delivered")
                continue

            self.ledger.record(subscription.id, listing.id)
            result.new_count += 1

    async def _notify(self, subscription: Subscription, listing: Listing) -> bool:
        channel = type(self.notifier).__name__
        try:
            success = await self.notifier.notify(subscription, listing)
        except Exception as e:
            logger.warning("Notifier %s failed for subscription %d: %s", channel, subscription.id, e)
            return False
        if not success:
            logger.warning(
                "Notifier %s could not deliver %s to subscription %d; will retry next check",
                channel, listing.provider_id, subscription.id,
            )
        return bool(success)
