# Authentication module.
# Wraps the Supabase auth REST endpoints used for signup, login, token
# refresh and password recovery.

from .session import AuthError, Session, SupabaseAuth

__all__ = ["AuthError", "Session", "SupabaseAuth"]
