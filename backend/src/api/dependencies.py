from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

import httpx
from fastapi import Depends, Header, HTTPException, status

from config.settings import get_config
from services.expenses_service import ExpensesService, ExpensesServiceError
from services.notifications_service import NotificationsService, NotificationsServiceError
from services.projects_service import ProjectsService, ProjectsServiceError
from services.settings_service import SettingsService, SettingsServiceError
from services.summary_service import FinancialSummaryService

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    access_token: str
    email: Optional[str] = None


def _raise_auth_error(message: str, status_code: int = status.HTTP_401_UNAUTHORIZED) -> None:
    raise HTTPException(
        status_code=status_code,
        detail={"code": "unauthorized", "message": message},
    )


def service_unavailable(exc: Exception) -> HTTPException:
    logger.error(f"Service initialization failed: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "configuration_error", "message": str(exc)},
    )


async def _fetch_user(access_token: str) -> Dict[str, Any]:
    config = get_config()
    if not config.supabase_configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "configuration_error", "message": "Supabase credentials missing"},
        )

    headers = {
        "Authorization": f"Bearer {access_token}",
        "apikey": config.supabase_key,
        "Content-Type": "application/json",
    }
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            response = await client.get(f"{config.supabase_url}/auth/v1/user", headers=headers)
    except httpx.HTTPError as exc:
        logger.error(f"Token validation request failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"code": "upstream_error", "message": "Failed to validate access token"},
        ) from exc

    if response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        _raise_auth_error("Invalid or expired access token")
    if response.status_code >= 400:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"code": "upstream_error", "message": "Failed to validate access token"},
        )

    payload = response.json()
    if not payload.get("id"):
        _raise_auth_error("Access token missing user id")
    return payload


async def get_auth_context(authorization: Optional[str] = Header(default=None)) -> AuthContext:
    if not authorization:
        _raise_auth_error("Authorization header missing")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        _raise_auth_error("Authorization header must be Bearer token")

    access_token = parts[1].strip()
    if not access_token:
        _raise_auth_error("Access token missing")

    user = await _fetch_user(access_token)
    return AuthContext(
        user_id=user["id"],
        access_token=access_token,
        email=user.get("email"),
    )


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
# Created lazily so the app can start (and serve /health) without Supabase
# credentials. Tests replace these through ``app.dependency_overrides``.

_instances: Dict[str, Any] = {}
_instances_lock = threading.Lock()


def _singleton(name: str, factory: Callable[[], T], errors: tuple) -> T:
    instance = _instances.get(name)
    if instance is None:
        with _instances_lock:
            # Double-check inside the lock
            instance = _instances.get(name)
            if instance is None:
                try:
                    instance = factory()
                except errors as exc:
                    raise service_unavailable(exc) from exc
                _instances[name] = instance
    return instance


def get_projects_service() -> ProjectsService:
    return _singleton("projects", ProjectsService, (ProjectsServiceError,))


def get_expenses_service() -> ExpensesService:
    return _singleton("expenses", ExpensesService, (ExpensesServiceError,))


def get_settings_service() -> SettingsService:
    return _singleton("settings", SettingsService, (SettingsServiceError,))


def get_notifications_service() -> NotificationsService:
    return _singleton("notifications", NotificationsService, (NotificationsServiceError,))


def get_summary_service(
    projects_service: ProjectsService = Depends(get_projects_service),
) -> FinancialSummaryService:
    return FinancialSummaryService(projects_service=projects_service)


def reset_services() -> None:
    """Drop cached service instances (used after configuration changes)."""
    with _instances_lock:
        _instances.clear()
