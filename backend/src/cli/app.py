from __future__ import annotations

import argparse
import sys
import time
from contextlib import contextmanager
from getpass import getpass
from typing import Any, Callable, Iterator, List, Optional, TypeVar

from rich.console import Console

from auth.session import Session
from cli.display import render_projects_table, render_summary_table
from cli.services.api_client import DashboardAPIClient, DashboardAPIError
from cli.services.session_service import SessionService
from config.settings import get_config


STATUS_CHOICES = ["all", "pending", "in-progress", "completed", "cancelled"]
SORT_CHOICES = ["newest", "oldest", "budget-high", "budget-low", "deadline"]

ClientFactory = Callable[[Optional[str]], DashboardAPIClient]
T = TypeVar("T")


class ConsoleIO:
    """Thin wrapper around the rich console to keep the app testable."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    def write(self, message: Any = "") -> None:
        if isinstance(message, str):
            self._console.print(message, markup=False)
        else:
            self._console.print(message)

    def write_success(self, message: str) -> None:
        self._console.print(f"[bold green]{message}[/bold green]")

    def write_warning(self, message: str) -> None:
        self._console.print(f"[bold yellow]{message}[/bold yellow]")

    def write_error(self, message: str) -> None:
        self._console.print(f"[bold red]{message}[/bold red]")

    def prompt(self, message: str) -> str:
        return self._console.input(message)

    def prompt_hidden(self, message: str) -> str:
        return getpass(message)

    @contextmanager
    def status(self, message: str) -> Iterator[None]:
        with self._console.status(message):
            yield


class DashboardCLI:
    """Command handlers for the terminal dashboard.

    Each handler returns the process exit status. API failures are printed
    in red and yield ``1``; everything else yields ``0``.
    """

    def __init__(
        self,
        io: Optional[ConsoleIO] = None,
        *,
        client_factory: Optional[ClientFactory] = None,
        session_service: Optional[SessionService] = None,
        api_url: Optional[str] = None,
        refresh_interval: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.io = io or ConsoleIO()
        self._api_url = api_url
        self._client_factory = client_factory or self._default_client_factory
        self._sessions = session_service or SessionService(reporter=self._notify)
        if refresh_interval is None:
            refresh_interval = get_config().refresh_interval_seconds
        self.refresh_interval = refresh_interval
        self._sleep = sleep
        self.session: Optional[Session] = self._sessions.load_session()

    def _default_client_factory(self, access_token: Optional[str]) -> DashboardAPIClient:
        return DashboardAPIClient(self._api_url, access_token)

    def _client(self) -> DashboardAPIClient:
        return self._client_factory(self.session.access_token if self.session else None)

    def _call(self, operation: Callable[[DashboardAPIClient], T]) -> T:
        """Run ``operation`` with the stored token, refreshing it once on a 401."""
        try:
            return operation(self._client())
        except DashboardAPIError as exc:
            if not exc.unauthorized or not self._refresh_session():
                raise
        return operation(self._client())

    def _refresh_session(self) -> bool:
        if not self.session or not self.session.refresh_token:
            return False
        try:
            refreshed = self._client_factory(None).refresh_session(self.session.refresh_token)
        except DashboardAPIError as exc:
            self.io.write_warning(f"Session refresh failed: {exc}")
            return False
        if not refreshed.email:
            refreshed.email = self.session.email
        self.session = refreshed
        self._sessions.persist_session(refreshed)
        return True

    def _notify(self, message: str, tone: str) -> None:
        if tone == "error":
            self.io.write_error(message)
        else:
            self.io.write_warning(message)

    def _report_api_error(self, action: str, exc: DashboardAPIError) -> int:
        self.io.write_error(f"{action}: {exc}")
        if exc.unauthorized:
            self.io.write_warning("Next steps: run `freelance-dashboard login` to sign in again.")
        return 1

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def login(self, email: Optional[str] = None) -> int:
        email = (email or self.io.prompt("Email: ")).strip()
        password = self.io.prompt_hidden("Password: ")
        if not email or not password:
            self.io.write_error("Email and password are required.")
            return 1
        try:
            with self.io.status("Signing in..."):
                session = self._client_factory(None).login(email, password)
        except DashboardAPIError as exc:
            return self._report_api_error("Login failed", exc)

        self.session = session
        self._sessions.persist_session(session)
        self.io.write_success(f"Signed in as {session.email}")
        return 0

    def logout(self) -> int:
        if not self.session:
            self.io.write_warning("Not signed in.")
            return 0
        try:
            self._client().logout()
        except DashboardAPIError as exc:
            self.io.write_warning(f"Server sign-out failed: {exc}")
        self._sessions.clear_session()
        self.session = None
        self.io.write_success("Signed out.")
        return 0

    def projects(self, status: str = "all", sort: str = "newest") -> int:
        try:
            with self.io.status("Loading projects..."):
                rows = self._call(lambda client: client.list_projects(status=status, sort=sort))
        except DashboardAPIError as exc:
            return self._report_api_error("Failed to load projects", exc)

        if not rows:
            self.io.write("No projects found.")
            return 0
        self.io.write(render_projects_table(rows))
        return 0

    def summary(self, watch: bool = False, interval: Optional[int] = None) -> int:
        """Print the financial summary; with ``watch`` re-fetch until interrupted."""
        if interval is None:
            interval = self.refresh_interval
        if interval < 1:
            self.io.write_error("Refresh interval must be at least 1 second.")
            return 1
        try:
            while True:
                try:
                    data = self._call(lambda client: client.get_summary())
                except DashboardAPIError as exc:
                    code = self._report_api_error("Failed to load financial summary", exc)
                    if not watch or exc.unauthorized:
                        return code
                else:
                    self.io.write(render_summary_table(data))
                    if not watch:
                        return 0
                self.io.write(f"Refreshing in {interval}s (Ctrl+C to stop)")
                self._sleep(interval)
        except KeyboardInterrupt:
            self.io.write("Stopped watching.")
            return 0

    def progress(self, project_id: str, percent: int) -> int:
        if percent < 0 or percent > 100:
            self.io.write_error("Completion must be between 0 and 100.")
            return 1
        try:
            project = self._call(lambda client: client.update_progress(project_id, percent))
        except DashboardAPIError as exc:
            return self._report_api_error("Failed to update progress", exc)

        title = project.get("title", project_id) if isinstance(project, dict) else project_id
        status = project.get("status") if isinstance(project, dict) else None
        message = f"{title}: {percent}% complete"
        if status:
            message += f" ({status})"
        self.io.write_success(message)
        return 0


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="freelance-dashboard",
        description="Terminal dashboard for freelance projects and finances.",
    )
    parser.add_argument("--api-url", help="Dashboard API base URL (defaults to DASHBOARD_API_URL)")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Sign in and store the session")
    login.add_argument("--email", help="Account email (prompted when omitted)")

    commands.add_parser("logout", help="Sign out and forget the stored session")

    projects = commands.add_parser("projects", help="List projects")
    projects.add_argument("--status", choices=STATUS_CHOICES, default="all")
    projects.add_argument("--sort", choices=SORT_CHOICES, default="newest")

    summary = commands.add_parser("summary", help="Show the financial summary")
    summary.add_argument("--watch", action="store_true", help="Keep refreshing until interrupted")
    summary.add_argument("--interval", type=positive_int, help="Seconds between refreshes in watch mode")

    progress = commands.add_parser("progress", help="Set a project's completion percentage")
    progress.add_argument("project_id")
    progress.add_argument("percent", type=int)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entrypoint for the ``freelance-dashboard`` console script."""
    args = build_parser().parse_args(argv)
    cli = DashboardCLI(api_url=args.api_url)

    try:
        if args.command == "login":
            return cli.login(args.email)
        if args.command == "logout":
            return cli.logout()
        if args.command == "projects":
            return cli.projects(status=args.status, sort=args.sort)
        if args.command == "summary":
            return cli.summary(watch=args.watch, interval=args.interval)
        if args.command == "progress":
            return cli.progress(args.project_id, args.percent)
    except KeyboardInterrupt:
        print("\nInterrupted. Exiting.")
        return 130
    return 2


if __name__ == "__main__":
    sys.exit(main())
