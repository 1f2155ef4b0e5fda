from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

Currency = Literal["usd", "eur", "gbp", "egp", "sar"]
Theme = Literal["light", "dark", "system"]
DateFormat = Literal["mm/dd/yyyy", "dd/mm/yyyy", "yyyy-mm-dd"]


class UserProfile(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    avatar_url: Optional[str] = None
    currency: Currency = "usd"
    theme: Theme = "light"
    date_format: DateFormat = "dd/mm/yyyy"
    updated_at: Optional[str] = None


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=2048)
    currency: Optional[Currency] = None
    theme: Optional[Theme] = None
    date_format: Optional[DateFormat] = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class AvatarUploadResponse(BaseModel):
    avatar_url: str


class UserSettings(BaseModel):
    user_id: str
    email_notifications: bool = False
    project_reminders: bool = False
    payment_alerts: bool = False
    weekly_reports: bool = False
    updated_at: Optional[str] = None


class UpdateSettingsRequest(BaseModel):
    email_notifications: Optional[bool] = None
    project_reminders: Optional[bool] = None
    payment_alerts: Optional[bool] = None
    weekly_reports: Optional[bool] = None


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class Credentials(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class SignupRequest(Credentials):
    password: str = Field(..., min_length=6)


class RefreshRequest(BaseModel):
    refresh_token: str


class SessionTokens(BaseModel):
    """Tokens handed to the dashboard client after sign-in."""

    user_id: str
    email: str
    access_token: str
    refresh_token: Optional[str] = None


class CurrentUser(BaseModel):
    user_id: str
    email: Optional[str] = None


class ResetEmailRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    redirect_to: Optional[str] = Field(None, description="Where the reset link should land")


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, description="token_hash from the recovery email")
    new_password: str = Field(..., min_length=6)


class MessageResponse(BaseModel):
    ok: bool = True
    message: str
