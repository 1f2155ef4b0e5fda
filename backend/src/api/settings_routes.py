"""Notification preference endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import AuthContext, get_auth_context, get_settings_service
from api.models.account_models import UpdateSettingsRequest, UserSettings
from services.settings_service import SettingsService, SettingsServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["Settings"])


def _settings_error(exc: SettingsServiceError) -> HTTPException:
    logger.error(f"Settings service error: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "settings_error", "message": str(exc)},
    )


@router.get("", response_model=UserSettings)
def get_settings(
    auth: AuthContext = Depends(get_auth_context),
    service: SettingsService = Depends(get_settings_service),
) -> UserSettings:
    """Return the caller's settings; every flag defaults to false."""
    try:
        return UserSettings(**service.get_settings(auth.user_id))
    except SettingsServiceError as exc:
        raise _settings_error(exc)


@router.patch("", response_model=UserSettings)
def update_settings(
    body: UpdateSettingsRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: SettingsService = Depends(get_settings_service),
) -> UserSettings:
    try:
        row = service.update_settings(auth.user_id, body.model_dump(exclude_none=True))
    except SettingsServiceError as exc:
        raise _settings_error(exc)
    return UserSettings(**row)
