from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import Client

from services.supabase_client import build_client

SETTINGS_TABLE = "user_settings"
PROFILE_TABLE = "users"

SETTING_FLAGS = ("email_notifications", "project_reminders", "payment_alerts", "weekly_reports")


class SettingsServiceError(Exception):
    """Raised when user settings cannot be read or written."""


def default_settings(user_id: str) -> Dict[str, Any]:
    settings: Dict[str, Any] = {flag: False for flag in SETTING_FLAGS}
    settings["user_id"] = user_id
    settings["updated_at"] = None
    return settings


def normalize_settings(user_id: str, row: Dict[str, Any]) -> Dict[str, Any]:
    settings = default_settings(user_id)
    for flag in SETTING_FLAGS:
        settings[flag] = bool(row.get(flag))
    settings["updated_at"] = row.get("updated_at")
    return settings


class SettingsService:
    """Notification preference flags, one ``user_settings`` row per user."""

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        *,
        client: Optional[Client] = None,
    ) -> None:
        self.client: Client = client or build_client(SettingsServiceError, supabase_url, supabase_key)

    def get_settings(self, user_id: str) -> Dict[str, Any]:
        """Return stored settings, or all-false defaults when no row exists."""
        try:
            response = self.client.table(SETTINGS_TABLE).select("*").eq("user_id", user_id).execute()
        except Exception as exc:
            raise SettingsServiceError(f"Failed to load settings for user {user_id}: {exc}") from exc
        if not response.data:
            return default_settings(user_id)
        return normalize_settings(user_id, response.data[0])

    def update_settings(self, user_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        payload = {key: bool(value) for key, value in updates.items() if key in SETTING_FLAGS}
        if not payload:
            return self.get_settings(user_id)

        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            response = (
                self.client.table(SETTINGS_TABLE)
                .update(payload)
                .eq("user_id", user_id)
                .execute()
            )
            rows = response.data or []
            if not rows:
                # First save for this user
                payload["user_id"] = user_id
                response = self.client.table(SETTINGS_TABLE).insert(payload).execute()
                rows = response.data or []
        except Exception as exc:
            raise SettingsServiceError(f"Failed to save settings for user {user_id}: {exc}") from exc

        if not rows:
            raise SettingsServiceError("Settings update returned empty")
        return normalize_settings(user_id, rows[0])

    def seed_account_defaults(self, user_id: str, email: Optional[str]) -> None:
        """Create the profile and settings rows for a new account.

        Existing rows are left untouched, so calling this twice is harmless.
        """
        try:
            self.client.table(PROFILE_TABLE).upsert(
                {"id": user_id, "email": email}, on_conflict="id", ignore_duplicates=True
            ).execute()
            self.client.table(SETTINGS_TABLE).upsert(
                {"user_id": user_id}, on_conflict="user_id", ignore_duplicates=True
            ).execute()
        except Exception as exc:
            raise SettingsServiceError(f"Failed to create account rows for user {user_id}: {exc}") from exc
