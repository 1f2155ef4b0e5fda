from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Optional

from auth.session import Session


NotifyFn = Callable[[str, str], None]

DEFAULT_SESSION_PATH = Path.home() / ".freelance_dashboard" / "session.json"


class SessionService:
    """Persist the signed-in session between CLI invocations."""

    def __init__(self, path: Optional[Path] = None, reporter: Optional[NotifyFn] = None) -> None:
        self.path = path or DEFAULT_SESSION_PATH
        self._report = reporter

    def load_session(self) -> Optional[Session]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except PermissionError as exc:
            self._notify(f"Permission denied while reading saved session data: {exc}", "warning")
            return None
        except OSError as exc:
            self._notify(f"Unable to read saved session data ({self.path}): {exc}", "warning")
            return None
        except json.JSONDecodeError as exc:
            self._notify(
                f"Saved session data is corrupted ({exc}). Sign in again to refresh it.",
                "warning",
            )
            return None

        if not isinstance(data, dict):
            return None
        user_id = data.get("user_id")
        token = data.get("access_token")
        if not user_id or not token:
            return None
        return Session(
            user_id=user_id,
            email=data.get("email") or "",
            access_token=token,
            refresh_token=data.get("refresh_token"),
        )

    def persist_session(self, session: Session) -> bool:
        payload = {
            "user_id": session.user_id,
            "email": session.email,
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as exc:
            self._notify(f"Unable to save session data to {self.path}: {exc}", "error")
            return False
        return True

    def clear_session(self) -> None:
        try:
            if self.path.exists():
                self.path.unlink()
        except PermissionError as exc:
            self._notify(
                f"Permission denied while removing stored session data: {exc}",
                "warning",
            )
        except OSError as exc:
            self._notify(
                f"Unable to remove stored session data ({self.path}): {exc}",
                "warning",
            )

    def _notify(self, message: str, tone: str) -> None:
        if self._report:
            self._report(message, tone)
