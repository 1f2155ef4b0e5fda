from __future__ import annotations

from contextlib import contextmanager
from typing import Any, List, Optional

import pytest

import cli.app as cli_app
from auth.session import Session
from cli.app import ConsoleIO, DashboardCLI, build_parser
from cli.services.api_client import DashboardAPIError
from config.settings import load_config


class StubIO(ConsoleIO):
    def __init__(self, prompts: Optional[List[str]] = None):
        super().__init__()
        self.prompts = list(prompts or [])
        self.messages: List[tuple[str, Any]] = []

    def write(self, message: Any = "") -> None:
        self.messages.append(("info", message))

    def write_success(self, message: str) -> None:
        self.messages.append(("success", message))

    def write_warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def write_error(self, message: str) -> None:
        self.messages.append(("error", message))

    def prompt(self, message: str) -> str:
        return self.prompts.pop(0)

    def prompt_hidden(self, message: str) -> str:
        return self.prompts.pop(0)

    @contextmanager
    def status(self, message: str):
        yield

    def texts(self, tone: str) -> List[str]:
        return [str(message) for kind, message in self.messages if kind == tone]


class FakeSessionService:
    def __init__(self, session: Optional[Session] = None):
        self.session = session
        self.persisted: List[Session] = []
        self.cleared = False

    def load_session(self) -> Optional[Session]:
        return self.session

    def persist_session(self, session: Session) -> bool:
        self.persisted.append(session)
        return True

    def clear_session(self) -> None:
        self.cleared = True


class FakeClient:
    def __init__(self):
        self.summaries: List[Any] = []
        self.projects: List[dict] = []
        self.progress_calls: List[tuple[str, int]] = []
        self.logged_out = False
        self.tokens: List[Optional[str]] = []
        self.refreshed_with: List[str] = []

    def login(self, email: str, password: str) -> Session:
        if password != "secret":
            raise DashboardAPIError("Invalid email or password.", 401)
        return Session(user_id="user-1", email=email, access_token="token-1", refresh_token="refresh-1")

    def refresh_session(self, refresh_token: str) -> Session:
        self.refreshed_with.append(refresh_token)
        if refresh_token != "refresh-1":
            raise DashboardAPIError("Invalid Refresh Token", 401)
        return Session(user_id="user-1", email="", access_token="token-2", refresh_token="refresh-2")

    def logout(self) -> None:
        self.logged_out = True

    def list_projects(self, status: str = "all", sort: str = "newest"):
        return self.projects

    def get_summary(self):
        result = self.summaries.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def update_progress(self, project_id: str, completion_percentage: int):
        self.progress_calls.append((project_id, completion_percentage))
        return {"id": project_id, "title": "Brand refresh", "status": "in-progress"}


SIGNED_IN = Session(user_id="user-1", email="me@example.com", access_token="token-1")
REFRESHABLE = Session(user_id="user-1", email="me@example.com", access_token="token-1", refresh_token="refresh-1")

SUMMARY = {
    "total_portfolio_value": 1000,
    "pending_payments": 600,
    "projected_earnings": 1000,
    "active_projects": 1,
    "completed_projects": 0,
    "source": "local",
}


@pytest.fixture
def fake_client():
    return FakeClient()


def _make_cli(fake_client, io=None, session=None, sleep=None):
    sessions = FakeSessionService(session)

    def factory(token):
        fake_client.tokens.append(token)
        return fake_client

    cli = DashboardCLI(
        io or StubIO(),
        client_factory=factory,
        session_service=sessions,
        refresh_interval=5,
        sleep=sleep or (lambda seconds: None),
    )
    return cli, sessions


def test_login_persists_session(fake_client):
    io = StubIO(prompts=["me@example.com", "secret"])
    cli, sessions = _make_cli(fake_client, io=io)

    assert cli.login() == 0

    assert cli.session.access_token == "token-1"
    assert sessions.persisted[0].email == "me@example.com"
    assert io.texts("success") == ["Signed in as me@example.com"]


def test_login_failure_returns_error_code(fake_client):
    io = StubIO(prompts=["wrong"])
    cli, sessions = _make_cli(fake_client, io=io)

    assert cli.login(email="me@example.com") == 1

    assert sessions.persisted == []
    assert "Invalid email or password." in io.texts("error")[0]
    assert any("login" in text for text in io.texts("warning"))


def test_logout_clears_stored_session(fake_client):
    cli, sessions = _make_cli(fake_client, session=SIGNED_IN)

    assert cli.logout() == 0

    assert fake_client.logged_out is True
    assert sessions.cleared is True
    assert cli.session is None


def test_projects_empty_message(fake_client):
    io = StubIO()
    cli, _ = _make_cli(fake_client, io=io, session=SIGNED_IN)

    assert cli.projects(status="pending") == 0

    assert io.texts("info") == ["No projects found."]
    assert fake_client.tokens == ["token-1"]


def test_summary_once(fake_client):
    io = StubIO()
    fake_client.summaries = [SUMMARY]
    cli, _ = _make_cli(fake_client, io=io, session=SIGNED_IN)

    assert cli.summary() == 0
    assert len(io.messages) == 1


def test_summary_watch_refreshes_until_interrupted(fake_client):
    io = StubIO()
    fake_client.summaries = [SUMMARY, DashboardAPIError("Cannot reach the dashboard API"), SUMMARY]
    sleeps = []

    def sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 3:
            raise KeyboardInterrupt

    cli, _ = _make_cli(fake_client, io=io, session=SIGNED_IN, sleep=sleep)

    assert cli.summary(watch=True, interval=2) == 0

    assert sleeps == [2, 2, 2]
    assert len(io.texts("error")) == 1
    assert io.texts("info")[-1] == "Stopped watching."


def test_summary_watch_stops_when_unauthorized(fake_client):
    fake_client.summaries = [DashboardAPIError("Invalid or expired token", 401)]
    cli, _ = _make_cli(fake_client, session=SIGNED_IN)

    assert cli.summary(watch=True) == 1


def test_progress_out_of_range(fake_client):
    io = StubIO()
    cli, _ = _make_cli(fake_client, io=io, session=SIGNED_IN)

    assert cli.progress("p1", 150) == 1

    assert fake_client.progress_calls == []
    assert io.texts("error") == ["Completion must be between 0 and 100."]


def test_progress_updates_project(fake_client):
    io = StubIO()
    cli, _ = _make_cli(fake_client, io=io, session=SIGNED_IN)

    assert cli.progress("p1", 60) == 0

    assert fake_client.progress_calls == [("p1", 60)]
    assert io.texts("success") == ["Brand refresh: 60% complete (in-progress)"]


def test_progress_api_error_returns_one(fake_client):
    io = StubIO()

    def failing_update(project_id, completion_percentage):
        raise DashboardAPIError("Project p1 not found", 404)

    fake_client.update_progress = failing_update
    cli, _ = _make_cli(fake_client, io=io, session=SIGNED_IN)

    assert cli.progress("p1", 10) == 1
    assert io.texts("error") == ["Failed to update progress: Project p1 not found"]


def test_parser_options():
    args = build_parser().parse_args(["--api-url", "http://api.local", "summary", "--watch", "--interval", "10"])

    assert args.api_url == "http://api.local"
    assert args.command == "summary"
    assert args.watch is True
    assert args.interval == 10

    with pytest.raises(SystemExit):
        build_parser().parse_args(["projects", "--status", "archived"])


def test_expired_token_is_refreshed_once_and_persisted(fake_client):
    io = StubIO()
    fake_client.summaries = [DashboardAPIError("Invalid or expired token", 401), SUMMARY]
    cli, sessions = _make_cli(fake_client, io=io, session=REFRESHABLE)

    assert cli.summary() == 0

    assert fake_client.refreshed_with == ["refresh-1"]
    assert fake_client.tokens == ["token-1", None, "token-2"]
    assert cli.session.access_token == "token-2"
    assert cli.session.email == "me@example.com"
    assert sessions.persisted == [cli.session]
    assert io.texts("error") == []


def test_failed_refresh_reports_original_error(fake_client):
    io = StubIO()
    stale = Session(user_id="user-1", email="me@example.com", access_token="token-1", refresh_token="stale")
    fake_client.summaries = [DashboardAPIError("Invalid or expired token", 401)]
    cli, sessions = _make_cli(fake_client, io=io, session=stale)

    assert cli.summary(watch=True) == 1

    assert sessions.persisted == []
    assert io.texts("error") == ["Failed to load financial summary: Invalid or expired token"]
    assert any("Session refresh failed" in text for text in io.texts("warning"))


def test_summary_rejects_non_positive_interval(fake_client):
    io = StubIO()
    sleeps = []
    cli, _ = _make_cli(fake_client, io=io, session=SIGNED_IN, sleep=sleeps.append)

    assert cli.summary(watch=True, interval=-5) == 1
    assert cli.summary(watch=True, interval=0) == 1

    assert sleeps == []
    assert io.texts("error")[0] == "Refresh interval must be at least 1 second."


def test_zero_interval_in_environment_uses_default(fake_client, monkeypatch):
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "0")
    monkeypatch.setattr(cli_app, "get_config", load_config)
    cli = DashboardCLI(
        StubIO(),
        client_factory=lambda token: fake_client,
        session_service=FakeSessionService(SIGNED_IN),
    )

    assert cli.refresh_interval == 60


@pytest.mark.parametrize("value", ["0", "-5", "soon"])
def test_parser_rejects_bad_interval(value):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["summary", "--watch", "--interval", value])
