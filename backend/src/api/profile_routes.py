"""Profile endpoints – GET, PATCH, avatar upload, and password change."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

import httpx
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from api.dependencies import AuthContext, get_auth_context
from api.models.account_models import (
    AvatarUploadResponse,
    ChangePasswordRequest,
    UpdateProfileRequest,
    UserProfile,
)
from config.settings import AppConfig, get_config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["Profile"])

_ALLOWED_AVATAR_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}
_MAX_AVATAR_BYTES = 5 * 1024 * 1024  # 5 MB

_PROFILE_TABLE = "users"


# ---------------------------------------------------------------------------
# Supabase helpers
# ---------------------------------------------------------------------------

def _require_config() -> AppConfig:
    config = get_config()
    if not config.supabase_url:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "configuration_error", "message": "SUPABASE_URL not set"},
        )
    return config


def _supabase_headers(config: AppConfig, access_token: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {access_token}",
        "apikey": config.supabase_key or "",
        "Content-Type": "application/json",
        "Prefer": "return=representation",
    }


def _upstream_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"code": "upstream_error", "message": message},
    )


def _to_profile(row: Dict[str, Any], auth: AuthContext) -> UserProfile:
    return UserProfile(
        user_id=row.get("id", auth.user_id),
        name=row.get("name"),
        email=auth.email or row.get("email"),
        company=row.get("company"),
        avatar_url=row.get("avatar_url"),
        currency=row.get("currency") or "usd",
        theme=row.get("theme") or "light",
        date_format=row.get("date_format") or "dd/mm/yyyy",
        updated_at=row.get("updated_at"),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("", response_model=UserProfile)
async def get_profile(auth: AuthContext = Depends(get_auth_context)):
    """Return the profile for the currently authenticated user.

    If no profile row exists yet, a skeleton with default preferences is
    returned so clients always have a valid shape to work with.
    """
    config = _require_config()
    url = f"{config.rest_url}/{_PROFILE_TABLE}?id=eq.{auth.user_id}&select=*"

    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(url, headers=_supabase_headers(config, auth.access_token))
    except httpx.HTTPError as exc:
        logger.error(f"Profile fetch failed: {exc}")
        raise _upstream_error("Failed to fetch profile") from exc

    if resp.status_code >= 400:
        raise _upstream_error("Failed to fetch profile")

    rows = resp.json()
    if rows:
        return _to_profile(rows[0], auth)

    # No row yet – return skeleton
    return UserProfile(user_id=auth.user_id, email=auth.email)


@router.patch("", response_model=UserProfile)
async def update_profile(
    body: UpdateProfileRequest,
    auth: AuthContext = Depends(get_auth_context),
):
    """Upsert profile fields for the authenticated user."""
    payload: Dict[str, Any] = body.model_dump(exclude_none=True)
    if not payload:
        return await get_profile(auth)

    config = _require_config()
    payload["updated_at"] = datetime.now(timezone.utc).isoformat()
    headers = _supabase_headers(config, auth.access_token)
    url = f"{config.rest_url}/{_PROFILE_TABLE}?id=eq.{auth.user_id}"

    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.patch(url, json=payload, headers=headers)
            if resp.status_code >= 400:
                logger.error(f"Profile update rejected with HTTP {resp.status_code}: {resp.text}")
                raise _upstream_error(f"Failed to update profile (HTTP {resp.status_code})")

            rows = resp.json()
            if not rows:
                # Row doesn't exist yet – INSERT
                payload["id"] = auth.user_id
                payload["email"] = auth.email
                resp = await client.post(f"{config.rest_url}/{_PROFILE_TABLE}", json=payload, headers=headers)
                if resp.status_code >= 400:
                    raise _upstream_error("Failed to create profile")
                rows = resp.json()
    except httpx.HTTPError as exc:
        logger.error(f"Profile update failed: {exc}")
        raise _upstream_error("Failed to update profile") from exc

    if not rows:
        raise _upstream_error("Profile update returned empty")

    return _to_profile(rows[0], auth)


@router.post("/avatar", response_model=AvatarUploadResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    auth: AuthContext = Depends(get_auth_context),
):
    """Upload an avatar image to Supabase Storage and update the profile.

    Accepts PNG, JPEG, GIF, or WebP up to 5 MB.  The file is stored in the
    avatar bucket under ``<user_id>/avatar``.
    """
    if file.content_type not in _ALLOWED_AVATAR_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "invalid_file_type",
                "message": f"Allowed types: {', '.join(sorted(_ALLOWED_AVATAR_TYPES))}",
            },
        )

    contents = await file.read()
    if len(contents) > _MAX_AVATAR_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "file_too_large", "message": "Avatar must be under 5 MB"},
        )

    config = _require_config()
    # Fixed filename so upsert always overwrites the same object
    storage_path = f"{config.avatar_bucket}/{auth.user_id}/avatar"
    headers = {
        "Authorization": f"Bearer {auth.access_token}",
        "apikey": config.supabase_key or "",
        "Content-Type": file.content_type or "application/octet-stream",
        "x-upsert": "true",
    }

    try:
        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.put(f"{config.storage_url}/object/{storage_path}", content=contents, headers=headers)
    except httpx.HTTPError as exc:
        logger.error(f"Avatar upload failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"code": "storage_error", "message": "Failed to upload avatar"},
        ) from exc

    if resp.status_code >= 400:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "code": "storage_error",
                "message": f"Failed to upload avatar: {resp.text}",
            },
        )

    public_url = f"{config.storage_url}/object/public/{storage_path}"
    await update_profile(UpdateProfileRequest(avatar_url=public_url), auth)

    return AvatarUploadResponse(avatar_url=public_url)


@router.delete("/avatar")
async def delete_avatar(auth: AuthContext = Depends(get_auth_context)):
    """Delete the avatar file from Supabase Storage and clear the profile URL."""
    config = _require_config()
    delete_url = f"{config.storage_url}/object/{config.avatar_bucket}/{auth.user_id}/avatar"
    headers = {
        "Authorization": f"Bearer {auth.access_token}",
        "apikey": config.supabase_key or "",
    }

    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.delete(delete_url, headers=headers)
        if resp.status_code >= 400:
            logger.warning(f"Avatar object delete returned HTTP {resp.status_code}")
    except httpx.HTTPError as exc:
        logger.warning(f"Avatar object delete failed: {exc}")

    # Clear the URL in the profile regardless of storage result
    await update_profile(UpdateProfileRequest(avatar_url=""), auth)

    return {"ok": True, "message": "Avatar removed"}


@router.post("/password")
async def change_password(
    body: ChangePasswordRequest,
    auth: AuthContext = Depends(get_auth_context),
):
    """Change the authenticated user's password via the Supabase Auth API.

    Verifies the current password first by attempting a sign-in, then
    updates to the new password.
    """
    config = _require_config()
    key = config.supabase_anon_key or config.supabase_key or ""

    try:
        async with httpx.AsyncClient(timeout=10) as client:
            verify_resp = await client.post(
                f"{config.supabase_url}/auth/v1/token?grant_type=password",
                json={"email": auth.email, "password": body.current_password},
                headers={"apikey": key, "Content-Type": "application/json"},
            )
            if verify_resp.status_code >= 400:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail={
                        "code": "invalid_current_password",
                        "message": "Current password is incorrect.",
                    },
                )

            resp = await client.put(
                f"{config.supabase_url}/auth/v1/user",
                json={"password": body.new_password},
                headers={
                    "Authorization": f"Bearer {auth.access_token}",
                    "apikey": key,
                    "Content-Type": "application/json",
                },
            )
    except httpx.HTTPError as exc:
        logger.error(f"Password change request failed: {exc}")
        raise _upstream_error("Password change failed") from exc

    if resp.status_code >= 400:
        detail = resp.json() if resp.headers.get("content-type", "").startswith("application/json") else {}
        raise HTTPException(
            status_code=resp.status_code if resp.status_code < 500 else status.HTTP_502_BAD_GATEWAY,
            detail={
                "code": "password_change_failed",
                "message": detail.get("msg") or detail.get("message") or "Password change failed",
            },
        )

    return {"ok": True, "message": "Password updated successfully"}
