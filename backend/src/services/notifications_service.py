from __future__ import annotations

from typing import Any, Dict, List, Optional

from supabase import Client

from services.supabase_client import build_client

NOTIFICATIONS_TABLE = "notifications"


class NotificationsServiceError(Exception):
    """Raised when notification operations fail."""


class NotificationsService:
    """Read, acknowledge and remove the caller's notifications."""

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        *,
        client: Optional[Client] = None,
    ) -> None:
        self.client: Client = client or build_client(NotificationsServiceError, supabase_url, supabase_key)

    def list_notifications(self, user_id: str, *, unread_only: bool = False) -> List[Dict[str, Any]]:
        try:
            query = self.client.table(NOTIFICATIONS_TABLE).select("*").eq("user_id", user_id)
            if unread_only:
                query = query.eq("read", False)
            response = query.order("created_at", desc=True).execute()
        except Exception as exc:
            raise NotificationsServiceError(f"Failed to list notifications for user {user_id}: {exc}") from exc
        return response.data or []

    def mark_as_read(self, user_id: str, notification_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = (
                self.client.table(NOTIFICATIONS_TABLE)
                .update({"read": True})
                .eq("user_id", user_id)
                .eq("id", notification_id)
                .execute()
            )
        except Exception as exc:
            raise NotificationsServiceError(f"Failed to mark notification {notification_id} as read: {exc}") from exc
        if not response.data:
            return None
        return response.data[0]

    def mark_all_as_read(self, user_id: str) -> int:
        try:
            response = (
                self.client.table(NOTIFICATIONS_TABLE)
                .update({"read": True})
                .eq("user_id", user_id)
                .eq("read", False)
                .execute()
            )
        except Exception as exc:
            raise NotificationsServiceError(f"Failed to mark notifications as read: {exc}") from exc
        return len(response.data or [])

    def delete_notification(self, user_id: str, notification_id: str) -> bool:
        try:
            response = (
                self.client.table(NOTIFICATIONS_TABLE)
                .delete()
                .eq("user_id", user_id)
                .eq("id", notification_id)
                .execute()
            )
        except Exception as exc:
            raise NotificationsServiceError(f"Failed to delete notification {notification_id}: {exc}") from exc
        return bool(response.data)
