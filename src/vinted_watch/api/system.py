"""Health check and scheduler control endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ..schemas import HealthResponse, ServiceStatus
from ..store.listings import ListingStore
from ..store.subscriptions import SubscriptionStore
from .deps import get_app_component, get_listing_store, get_subscription_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health", response_model=HealthResponse)
def health_check(
    subscriptions: SubscriptionStore = Depends(get_subscription_store),
    listings: ListingStore = Depends(get_listing_store),
):
    from ..main import app_state

    services: list[ServiceStatus] = []
    overall = "ok"

    # Database
    try:
        total = subscriptions.count()
        active = subscriptions.count(active_only=True)
        listing_count = listings.count()
        services.append(ServiceStatus(name="database", status="ok"))
    except Exception as e:
        logger.warning("Health check: DB error: %s", e)
        total = active = listing_count = 0
        services.append(ServiceStatus(name="database", status="degraded", detail=str(e)))
        overall = "degraded"

    # Scheduler
    scheduler = app_state.get("scheduler")
    running = scheduler.running if scheduler else False
    services.append(ServiceStatus(
        name="scheduler",
        status="ok" if running else "unavailable",
        detail="" if running else "not running",
    ))
    if not running:
        overall = "degraded"

    # Notifier
    notifier = app_state.get("notifier")
    services.append(ServiceStatus(
        name="notifier",
        status="ok" if notifier else "unavailable",
        detail=type(notifier).__name__ if notifier else "not configured",
    ))

    last_sweep = scheduler.last_sweep if scheduler else None
    return HealthResponse(
        status=overall,
        scheduler_running=running,
        subscription_count=total,
        active_count=active,
        listing_count=listing_count,
        last_sweep=last_sweep.as_dict() if last_sweep else None,
        services=services,
    )


@router.post("/scheduler/pause")
def pause_scheduler():
    get_app_component("scheduler").pause()
    return {"status": "paused"}


@router.post("/scheduler/resume")
def resume_scheduler():
    get_app_component("scheduler").resume()
    return {"status": "resumed"}


@router.post("/scheduler/run", status_code=202)
async def run_sweep_now():
    started = get_app_component("scheduler").trigger()
    return {"status": "started" if started else "busy"}
