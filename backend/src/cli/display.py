from __future__ import annotations

from typing import Any, Iterable, Mapping

from rich.table import Table


STATUS_STYLES = {
    "pending": "yellow",
    "in-progress": "cyan",
    "completed": "green",
    "cancelled": "red",
}


def format_money(value: Any) -> str:
    """Dollar amount with thousands separators, e.g. ``$12,500.00``."""
    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        amount = 0.0
    return f"${amount:,.2f}"


def format_percent(value: Any) -> str:
    try:
        return f"{float(value or 0):.0f}%"
    except (TypeError, ValueError):
        return "0%"


def render_projects_table(projects: Iterable[Mapping[str, Any]]) -> Table:
    """Project list with status, progress, budget and deadline."""
    table = Table(title="Projects", show_lines=False)
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Title", style="bold")
    table.add_column("Client")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Budget", justify="right")
    table.add_column("Due", justify="right")

    for project in projects:
        status = str(project.get("status") or "pending")
        style = STATUS_STYLES.get(status, "white")
        table.add_row(
            str(project.get("id", "")),
            str(project.get("title", "")),
            str(project.get("client", "")),
            f"[{style}]{status}[/{style}]",
            format_percent(project.get("completion_percentage")),
            format_money(project.get("budget")),
            str(project.get("due_date") or ""),
        )
    return table


def render_summary_table(summary: Mapping[str, Any]) -> Table:
    table = Table(title="Financial Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Total portfolio value", format_money(summary.get("total_portfolio_value")))
    table.add_row("Pending payments", format_money(summary.get("pending_payments")))
    table.add_row("Projected earnings (30 days)", format_money(summary.get("projected_earnings")))
    table.add_row("Active projects", str(summary.get("active_projects", 0)))
    table.add_row("Completed projects", str(summary.get("completed_projects", 0)))
    source = summary.get("source")
    if source:
        table.caption = f"source: {source}"
    return table
