"""FastAPI application with lifespan-managed listing source and scheduler."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.router import api_router
from .config import settings
from .database import SessionLocal, run_migrations
from .monitor.checker import WatchChecker
from .monitor.scheduler import WatchScheduler
from .notifier.base import BaseNotifier
from .notifier.log_notifier import LogNotifier
from .notifier.webhook import WebhookNotifier
from .scraper.vinted import VintedSource
from .store.ledger import NotificationLedger
from .store.listings import ListingStore
from .store.subscriptions import SubscriptionStore

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Shared state accessible by API endpoints
app_state: dict = {}

SHUTDOWN_GRACE_SECONDS = 60


def build_notifier() -> BaseNotifier:
    if settings.webhook_url:
        logger.info("Webhook notifications enabled (%s)", settings.webhook_type)
        return WebhookNotifier()
    logger.info("No webhook configured; notifications go to the log")
    return LogNotifier()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Running database migrations...")
    run_migrations()

    source = VintedSource()
    notifier = build_notifier()
    subscriptions = SubscriptionStore(SessionLocal)
    checker = WatchChecker(
        source,
        notifier,
        ListingStore(SessionLocal),
        subscriptions,
        NotificationLedger(SessionLocal),
        page_size=settings.page_size,
        enforce_price_bounds=settings.check_enforce_price_bounds,
    )
    scheduler = WatchScheduler(
        checker,
        subscriptions,
        interval_seconds=settings.sweep_interval_seconds,
        check_delay_seconds=settings.check_delay_seconds,
    )
    app_state.update(source=source, notifier=notifier, checker=checker, scheduler=scheduler)
    scheduler.start()

    logger.info("Vinted Watch started")
    yield

    # Shutdown
    scheduler.stop()
    await scheduler.wait_idle(timeout=SHUTDOWN_GRACE_SECONDS)
    await source.close()
    app_state.clear()
    logger.info("Vinted Watch stopped")


app = FastAPI(
    title="Vinted Watch",
    description="Watches Vinted searches and notifies subscribers of new listings",
    version="0.1.0",
    lifespan=lifespan,
)
if settings.api_key:
    from .auth import ApiKeyMiddleware
    app.add_middleware(ApiKeyMiddleware)

app.include_router(api_router)
