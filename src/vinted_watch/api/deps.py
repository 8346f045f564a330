"""Dependencies shared by the API routers."""

from __future__ import annotations

from fastapi import Depends, HTTPException
from sqlalchemy.orm import sessionmaker

from ..database import get_session_factory
from ..store.ledger import NotificationLedger
from ..store.listings import ListingStore
from ..store.subscriptions import SubscriptionStore
from ..store.users import UserSettingsStore


def get_subscription_store(factory: sessionmaker = Depends(get_session_factory)) -> SubscriptionStore:
    return SubscriptionStore(factory)


def get_listing_store(factory: sessionmaker = Depends(get_session_factory)) -> ListingStore:
    return ListingStore(factory)


def get_ledger(factory: sessionmaker = Depends(get_session_factory)) -> NotificationLedger:
    return NotificationLedger(factory)


def get_user_settings_store(factory: sessionmaker = Depends(get_session_factory)) -> UserSettingsStore:
    return UserSettingsStore(factory)


def get_app_component(name: str):
    from ..main import app_state

    component = app_state.get(name)
    if component is None:
        raise HTTPException(503, f"{name} not available")
    return component
