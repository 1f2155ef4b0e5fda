from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

NotificationType = Literal["info", "warning", "success", "error"]


class Notification(BaseModel):
    id: str
    title: str
    message: str
    type: NotificationType = "info"
    read: bool = False
    created_at: Optional[datetime] = None

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, value):
        return value or "info"

    @field_validator("read", mode="before")
    @classmethod
    def default_read(cls, value):
        return bool(value)


class MarkAllReadResponse(BaseModel):
    updated: int
