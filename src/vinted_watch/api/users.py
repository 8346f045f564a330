"""Per-owner notification preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..models import UserSettings
from ..schemas import UserSettingsResponse, UserSettingsUpdate
from ..store.users import UserSettingsStore
from .deps import get_user_settings_store

router = APIRouter(prefix="/api/users", tags=["users"])


def _to_response(owner: str, row: UserSettings | None) -> UserSettingsResponse:
    if row is None:
        return UserSettingsResponse(
            owner=owner, notifications_enabled=True, max_price_alerts=None, preferred_brands=[],
        )
    return UserSettingsResponse(
        owner=row.owner,
        notifications_enabled=row.notifications_enabled,
        max_price_alerts=row.max_price_alerts,
        preferred_brands=row.brand_list,
        updated_at=row.updated_at,
    )


@router.get("/{owner}/settings", response_model=UserSettingsResponse)
def get_settings(owner: str, store: UserSettingsStore = Depends(get_user_settings_store)):
    return _to_response(owner, store.get(owner))


@router.put("/{owner}/settings", response_model=UserSettingsResponse)
def update_settings(
    owner: str,
    body: UserSettingsUpdate,
    store: UserSettingsStore = Depends(get_user_settings_store),
):
    row = store.update(owner, **body.model_dump(exclude_unset=True))
    return _to_response(owner, row)
