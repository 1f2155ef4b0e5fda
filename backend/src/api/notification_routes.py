"""Notification inbox endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import AuthContext, get_auth_context, get_notifications_service
from api.models.notification_models import MarkAllReadResponse, Notification
from services.notifications_service import NotificationsService, NotificationsServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


def _not_found(notification_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"code": "not_found", "message": f"Notification {notification_id} not found"},
    )


def _service_error(exc: NotificationsServiceError) -> HTTPException:
    logger.error(f"Notifications service error: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "notifications_error", "message": str(exc)},
    )


@router.get("", response_model=List[Notification])
def list_notifications(
    unread_only: bool = Query(False),
    auth: AuthContext = Depends(get_auth_context),
    service: NotificationsService = Depends(get_notifications_service),
) -> List[Notification]:
    try:
        rows = service.list_notifications(auth.user_id, unread_only=unread_only)
    except NotificationsServiceError as exc:
        raise _service_error(exc)
    return [Notification(**row) for row in rows]


@router.patch("/{notification_id}/read", response_model=Notification)
def mark_notification_read(
    notification_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: NotificationsService = Depends(get_notifications_service),
) -> Notification:
    try:
        row = service.mark_as_read(auth.user_id, notification_id)
    except NotificationsServiceError as exc:
        raise _service_error(exc)
    if row is None:
        raise _not_found(notification_id)
    return Notification(**row)


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    auth: AuthContext = Depends(get_auth_context),
    service: NotificationsService = Depends(get_notifications_service),
) -> MarkAllReadResponse:
    try:
        updated = service.mark_all_as_read(auth.user_id)
    except NotificationsServiceError as exc:
        raise _service_error(exc)
    return MarkAllReadResponse(updated=updated)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: NotificationsService = Depends(get_notifications_service),
) -> None:
    try:
        deleted = service.delete_notification(auth.user_id, notification_id)
    except NotificationsServiceError as exc:
        raise _service_error(exc)
    if not deleted:
        raise _not_found(notification_id)
