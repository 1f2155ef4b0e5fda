"""Sign-up, sign-in and password recovery for dashboard accounts.

Supabase auth does the credential work; new accounts also get their
``users`` and ``user_settings`` rows so profile and settings reads find
stored data from the first request.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import AuthContext, get_auth_context, get_settings_service
from api.models.account_models import (
    Credentials,
    CurrentUser,
    MessageResponse,
    RefreshRequest,
    ResetEmailRequest,
    ResetPasswordRequest,
    SessionTokens,
    SignupRequest,
)
from auth.session import AuthError, Session, SupabaseAuth
from config.settings import get_config
from services.settings_service import SettingsService, SettingsServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

_STATUS_BY_CODE = {
    "authentication_failed": status.HTTP_401_UNAUTHORIZED,
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "configuration_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "upstream_error": status.HTTP_502_BAD_GATEWAY,
}


def get_supabase_auth() -> SupabaseAuth:
    try:
        return SupabaseAuth(get_config())
    except AuthError as exc:
        raise _auth_http_error(exc) from exc


def _auth_http_error(error: AuthError) -> HTTPException:
    status_code = _STATUS_BY_CODE.get(error.code, status.HTTP_401_UNAUTHORIZED)
    if status_code >= 500:
        logger.error(f"Supabase auth failed ({error.code}): {error}")
    return HTTPException(status_code=status_code, detail={"code": error.code, "message": str(error)})


def _tokens(session: Session) -> SessionTokens:
    return SessionTokens(
        user_id=session.user_id,
        email=session.email,
        access_token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.post("/signup", response_model=SessionTokens)
def signup(
    body: SignupRequest,
    supabase_auth: SupabaseAuth = Depends(get_supabase_auth),
    settings_service: SettingsService = Depends(get_settings_service),
) -> SessionTokens:
    """Create the account, sign it in and seed its profile and settings rows.

    Seeding failures are logged only: reads fall back to defaults, so the
    account is usable either way.
    """
    try:
        session = supabase_auth.signup(body.email, body.password)
    except AuthError as exc:
        raise _auth_http_error(exc) from exc

    try:
        settings_service.seed_account_defaults(session.user_id, session.email)
    except SettingsServiceError as exc:
        logger.warning(f"Account rows not created for {session.user_id}: {exc}")
    else:
        logger.info(f"Created account {session.user_id}")
    return _tokens(session)


@router.post("/login", response_model=SessionTokens)
def login(body: Credentials, supabase_auth: SupabaseAuth = Depends(get_supabase_auth)) -> SessionTokens:
    try:
        return _tokens(supabase_auth.login(body.email, body.password))
    except AuthError as exc:
        raise _auth_http_error(exc) from exc


@router.post("/refresh", response_model=SessionTokens)
def refresh(body: RefreshRequest, supabase_auth: SupabaseAuth = Depends(get_supabase_auth)) -> SessionTokens:
    try:
        return _tokens(supabase_auth.refresh_session(body.refresh_token))
    except AuthError as exc:
        raise _auth_http_error(exc) from exc


@router.post("/logout", response_model=MessageResponse)
def logout(
    auth: AuthContext = Depends(get_auth_context),
    supabase_auth: SupabaseAuth = Depends(get_supabase_auth),
) -> MessageResponse:
    try:
        supabase_auth.logout(auth.access_token)
    except AuthError as exc:
        raise _auth_http_error(exc) from exc
    return MessageResponse(message="Signed out.")


@router.post("/request-reset", response_model=MessageResponse)
def request_reset(
    body: ResetEmailRequest,
    supabase_auth: SupabaseAuth = Depends(get_supabase_auth),
) -> MessageResponse:
    try:
        supabase_auth.request_password_reset(body.email, body.redirect_to)
    except AuthError as exc:
        raise _auth_http_error(exc) from exc
    return MessageResponse(message="Password reset email sent.")


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    supabase_auth: SupabaseAuth = Depends(get_supabase_auth),
) -> MessageResponse:
    try:
        supabase_auth.reset_password(body.token, body.new_password)
    except AuthError as exc:
        raise _auth_http_error(exc) from exc
    return MessageResponse(message="Password has been reset.")


@router.get("/session", response_model=CurrentUser)
async def current_user(auth: AuthContext = Depends(get_auth_context)) -> CurrentUser:
    return CurrentUser(user_id=auth.user_id, email=auth.email)
