"""HTTP client for the dashboard API used by the terminal dashboard."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from auth.session import Session
from config.settings import get_config

logger = logging.getLogger(__name__)


class DashboardAPIError(Exception):
    """Raised when the dashboard API cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def unauthorized(self) -> bool:
        return self.status_code == 401


class DashboardAPIClient:
    """
    Talk to the FastAPI backend on behalf of the signed-in user.

    Every method returns decoded JSON and raises ``DashboardAPIError`` with
    the API's ``detail.message`` when the call fails.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        access_token: Optional[str] = None,
        *,
        timeout: float = 15.0,
    ) -> None:
        self.base_url = (base_url or get_config().api_url).rstrip("/")
        self._access_token = access_token
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> Session:
        data = self._request("POST", "/api/auth/login", json={"email": email, "password": password}, auth=False)
        return self._to_session(data, fallback_email=email)

    def refresh_session(self, refresh_token: str) -> Session:
        if not refresh_token:
            raise DashboardAPIError("Refresh token missing. Sign in again.")
        data = self._request("POST", "/api/auth/refresh", json={"refresh_token": refresh_token}, auth=False)
        return self._to_session(data, fallback_email="")

    def logout(self) -> None:
        self._request("POST", "/api/auth/logout")

    # ------------------------------------------------------------------
    # Projects and finances
    # ------------------------------------------------------------------

    def list_projects(self, status: str = "all", sort: str = "newest") -> List[Dict[str, Any]]:
        data = self._request("GET", "/api/projects", params={"status": status, "sort": sort})
        return data if isinstance(data, list) else []

    def update_progress(self, project_id: str, completion_percentage: int) -> Dict[str, Any]:
        return self._request(
            "PATCH",
            f"/api/projects/{project_id}/progress",
            json={"completion_percentage": completion_percentage},
        )

    def get_summary(self) -> Dict[str, Any]:
        return self._request("GET", "/api/finances/summary")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _headers(self, auth: bool) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if auth:
            if not self._access_token:
                raise DashboardAPIError("Not signed in. Run `freelance-dashboard login` first.", 401)
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        auth: bool = True,
    ) -> Any:
        headers = self._headers(auth)
        try:
            with httpx.Client(base_url=self.base_url, timeout=self._timeout) as client:
                response = client.request(method, path, json=json, params=params, headers=headers)
        except httpx.RequestError as exc:
            logger.debug(f"{method} {path} failed: {exc}")
            raise DashboardAPIError(f"Cannot reach the dashboard API at {self.base_url}: {exc}") from exc

        payload: Any = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = None

        if response.status_code >= 400:
            raise DashboardAPIError(self._error_message(response, payload), response.status_code)
        return payload

    @staticmethod
    def _error_message(response: httpx.Response, payload: Any) -> str:
        detail: Any = payload.get("detail") if isinstance(payload, dict) else None
        if isinstance(detail, dict):
            message = detail.get("message")
            if message:
                return str(message)
        if isinstance(detail, list) and detail:
            # FastAPI validation errors
            first = detail[0]
            if isinstance(first, dict) and first.get("msg"):
                return str(first["msg"])
        if isinstance(detail, str) and detail:
            return detail
        return response.text or f"Dashboard API error (HTTP {response.status_code})."

    @staticmethod
    def _to_session(payload: Any, fallback_email: str) -> Session:
        if not isinstance(payload, dict) or not payload.get("user_id") or not payload.get("access_token"):
            raise DashboardAPIError("Auth API response missing session data.")
        return Session(
            user_id=payload["user_id"],
            email=payload.get("email") or fallback_email,
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
        )
