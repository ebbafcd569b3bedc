"""Endpoints for reading and updating delivery preferences."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from notifyhub.application.service import NotificationService
from notifyhub.domain.exceptions import NotificationValidationError, PreferenceStoreError
from notifyhub.interfaces.api.dependencies import get_notification_service
from notifyhub.interfaces.api.schemas import (
    ActionResponse,
    PreferencesRead,
    PreferencesResponse,
    PreferencesUpdateRequest,
    PreferencesUpdateResponse,
)

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("", response_model=PreferencesResponse)
async def get_preferences(
    user_id: str = Query(..., alias="userId", min_length=1),
    service: NotificationService = Depends(get_notification_service),
) -> PreferencesResponse:
    preferences = await service.preferences.get(user_id)
    return PreferencesResponse(preferences=PreferencesRead.from_entity(preferences))


@router.put("", response_model=PreferencesUpdateResponse)
async def update_preferences(
    payload: PreferencesUpdateRequest,
    service: NotificationService = Depends(get_notification_service),
) -> PreferencesUpdateResponse:
    """Merge the submitted changes into the user's stored preferences."""

    try:
        preferences = await service.preferences.set(payload.user_id, payload.to_update())
    except NotificationValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PreferenceStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update user preferences",
        ) from exc
    return PreferencesUpdateResponse(preferences=PreferencesRead.from_entity(preferences))


@router.delete("", response_model=ActionResponse)
async def reset_preferences(
    user_id: str = Query(..., alias="userId", min_length=1),
    service: NotificationService = Depends(get_notification_service),
) -> ActionResponse:
    """Drop stored preferences so the defaults apply again."""

    removed = await service.preferences.delete(user_id)
    message = "Preferences reset to defaults" if removed else "No stored preferences to reset"
    return ActionResponse(success=removed, message=message)


@router.get("/settings")
async def get_notification_settings(
    service: NotificationService = Depends(get_notification_service),
) -> dict[str, Any]:
    """Return the cached channel, category and frequency options."""

    settings = await service.preferences.get_notification_settings()
    if settings is not None:
        return settings
    try:
        return await service.preferences.cache_notification_settings()
    except PreferenceStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification settings unavailable",
        ) from exc
