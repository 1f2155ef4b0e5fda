"""Application configuration loaded from the environment.

Values come from process environment variables, optionally seeded from a
``.env`` file in the working directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_API_URL = "http://127.0.0.1:8000"
DEFAULT_SUMMARY_FUNCTION = "financial-summary"
DEFAULT_AVATAR_BUCKET = "avatars"
DEFAULT_REFRESH_INTERVAL_SECONDS = 60


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def _positive_int_env(name: str, default: int) -> int:
    """Read a whole number of at least 1, falling back to ``default`` otherwise."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 1 else default


@dataclass(frozen=True)
class AppConfig:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    summary_function: str = DEFAULT_SUMMARY_FUNCTION
    avatar_bucket: str = DEFAULT_AVATAR_BUCKET
    api_url: str = DEFAULT_API_URL
    refresh_interval_seconds: int = DEFAULT_REFRESH_INTERVAL_SECONDS

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def rest_url(self) -> str:
        return f"{(self.supabase_url or '').rstrip('/')}/rest/v1"

    @property
    def functions_url(self) -> str:
        return f"{(self.supabase_url or '').rstrip('/')}/functions/v1"

    @property
    def storage_url(self) -> str:
        return f"{(self.supabase_url or '').rstrip('/')}/storage/v1"


def load_config() -> AppConfig:
    """Build an ``AppConfig`` from the current environment."""
    origins = os.getenv("CORS_ORIGINS", "*")
    return AppConfig(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=_first_env("SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_KEY", "SUPABASE_ANON_KEY"),
        supabase_anon_key=_first_env("SUPABASE_ANON_KEY", "SUPABASE_KEY"),
        cors_origins=[origin.strip() for origin in origins.split(",") if origin.strip()] or ["*"],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        summary_function=os.getenv("FINANCIAL_SUMMARY_FUNCTION", DEFAULT_SUMMARY_FUNCTION),
        avatar_bucket=os.getenv("AVATAR_BUCKET", DEFAULT_AVATAR_BUCKET),
        api_url=(os.getenv("DASHBOARD_API_URL") or DEFAULT_API_URL).rstrip("/"),
        refresh_interval_seconds=_positive_int_env("REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL_SECONDS),
    )


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Return the process-wide configuration (cached after first read)."""
    return load_config()
