"""Log-based notifier: writes notifications to the application log."""

from __future__ import annotations

import logging

from ..models import Listing, Subscription
from .base import BaseNotifier

logger = logging.getLogger(__name__)


class LogNotifier(BaseNotifier):
    async def notify(self, subscription: Subscription, listing: Listing) -> bool:
        msg = self.format_message(subscription, listing)
        logger.info("NOTIFICATION for %s:\n%s", subscription.destination, msg)
        return True
