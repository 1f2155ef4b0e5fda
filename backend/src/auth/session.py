from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from config.settings import AppConfig, get_config


AUTH_SIGNUP_PATH = "/auth/v1/signup"
AUTH_TOKEN_PATH = "/auth/v1/token?grant_type=password"
AUTH_REFRESH_PATH = "/auth/v1/token?grant_type=refresh_token"
AUTH_RECOVER_PATH = "/auth/v1/recover"
AUTH_VERIFY_PATH = "/auth/v1/verify"
AUTH_USER_PATH = "/auth/v1/user"
AUTH_LOGOUT_PATH = "/auth/v1/logout"


class AuthError(Exception):
    """Raised when authentication with Supabase fails.

    ``code`` is one of ``authentication_failed``, ``validation_error``,
    ``configuration_error`` or ``upstream_error``.
    """

    def __init__(self, message: str, code: str = "authentication_failed") -> None:
        super().__init__(message)
        self.code = code


@dataclass
class Session:
    """Represents an authenticated Supabase session."""

    user_id: str
    email: str
    access_token: str
    refresh_token: Optional[str] = None


class SupabaseAuth:
    """Thin wrapper around Supabase REST auth endpoints."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
    ):
        config = config or get_config()
        self.base_url = (url or config.supabase_url or "").rstrip("/")
        self.anon_key = anon_key or config.supabase_anon_key
        if not self.base_url or not self.anon_key:
            raise AuthError(
                "Supabase credentials missing. Set SUPABASE_URL and SUPABASE_ANON_KEY.",
                code="configuration_error",
            )

    def signup(self, email: str, password: str) -> Session:
        """Create a new user account and return a valid session."""
        self._request("POST", AUTH_SIGNUP_PATH, {"email": email, "password": password})
        # Supabase may not auto-return a session after signup, so perform a login.
        return self.login(email, password)

    def login(self, email: str, password: str) -> Session:
        """Authenticate a user and return a session."""
        payload = self._request("POST", AUTH_TOKEN_PATH, {"email": email, "password": password})
        return self._to_session(payload, fallback_email=email, operation="login")

    def refresh_session(self, refresh_token: str) -> Session:
        if not refresh_token:
            raise AuthError("Refresh token missing.", code="validation_error")
        payload = self._request("POST", AUTH_REFRESH_PATH, {"refresh_token": refresh_token})
        return self._to_session(payload, fallback_email="", operation="refresh")

    def request_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Send the Supabase recovery email."""
        path = AUTH_RECOVER_PATH
        if redirect_to:
            path = f"{path}?redirect_to={quote(redirect_to, safe='')}"
        self._request("POST", path, {"email": email})

    def reset_password(self, token: str, new_password: str) -> None:
        """Exchange a recovery token for a session and set the new password."""
        payload = self._request("POST", AUTH_VERIFY_PATH, {"type": "recovery", "token_hash": token})
        access_token = payload.get("access_token")
        if not access_token:
            raise AuthError("Recovery token is invalid or expired.")
        self._request(
            "PUT",
            AUTH_USER_PATH,
            {"password": new_password},
            access_token=access_token,
        )

    def logout(self, access_token: str) -> None:
        """Revoke the refresh tokens issued for this access token."""
        self._request("POST", AUTH_LOGOUT_PATH, {}, access_token=access_token)

    def _to_session(self, payload: Dict[str, Any], *, fallback_email: str, operation: str) -> Session:
        access_token = payload.get("access_token")
        user = payload.get("user") or {}
        user_id = user.get("id")
        if not access_token or not user_id:
            raise AuthError(f"Incomplete response from Supabase during {operation}.", code="upstream_error")
        return Session(
            user_id=user_id,
            email=user.get("email") or fallback_email,
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
        )

    def _request(
        self,
        method: str,
        path: str,
        data: Dict[str, Any],
        *,
        access_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {
            "apikey": self.anon_key,
            "Content-Type": "application/json",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        try:
            response = requests.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                data=json.dumps(data),
                timeout=20,
            )
        except requests.RequestException as exc:
            raise AuthError(f"Unable to reach Supabase auth: {exc}", code="upstream_error") from exc
        if response.status_code >= 400:
            try:
                details = response.json()
            except ValueError:
                details = response.text
            code = "upstream_error" if response.status_code >= 500 else "authentication_failed"
            raise AuthError(f"Supabase error {response.status_code}: {details}", code=code)
        if not response.text:
            return {}
        return response.json()
