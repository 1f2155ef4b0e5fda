from __future__ import annotations

from typing import Optional, Type

from supabase import Client, create_client

from config.settings import get_config


def build_client(
    error_cls: Type[Exception],
    supabase_url: Optional[str] = None,
    supabase_key: Optional[str] = None,
) -> Client:
    """Create a Supabase client or raise ``error_cls`` with a readable message.

    Explicit arguments win; otherwise the URL and key come from ``get_config()``.
    """
    config = get_config()
    url = supabase_url or config.supabase_url
    key = supabase_key or config.supabase_key
    if not url or not key:
        raise error_cls("Supabase credentials not configured.")
    try:
        return create_client(url, key)
    except Exception as exc:
        raise error_cls(f"Failed to initialize Supabase client: {exc}") from exc
