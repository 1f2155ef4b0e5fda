"""Financial aggregation over project records.

All functions take project rows in their stored (snake_case) shape, as
returned by the Supabase ``projects`` table, and never perform I/O. The
summary computation mirrors the ``financial-summary`` edge function so the
API can fall back to it when the function is unavailable.
"""

from __future__ import annotations

import math
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import (
    ACTIVE_STATUSES,
    COMPLETED_STATUS,
    PERIOD_DAYS,
    PROJECTION_WINDOW_DAYS,
    CategoryTotal,
    FinancialSummary,
    PortfolioOverview,
    ProjectFinancials,
    ProjectTimeline,
)

UNCATEGORIZED = "Other"


def round_money(value: float) -> float:
    """Round half-up to two decimal places."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _to_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        return 0.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse ISO dates/timestamps into naive UTC datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        cleaned = str(value).strip()
        if cleaned.endswith("Z"):
            cleaned = cleaned[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(cleaned)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(cleaned[:10])
            except ValueError:
                return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def compute_financial_summary(
    projects: Iterable[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> FinancialSummary:
    """Aggregate portfolio metrics for a set of projects.

    - ``total_portfolio_value`` sums every budget regardless of status.
    - pending / in-progress projects are *active*: their unearned share of
      the budget (``budget * (1 - completion / 100)``) is added to
      ``pending_payments`` and, when due within the projection window
      (overdue included), the full budget is added to
      ``projected_earnings``.
    - cancelled projects only count towards the portfolio value.
    """
    current = parse_datetime(now) if now is not None else _utcnow()
    horizon = current + timedelta(days=PROJECTION_WINDOW_DAYS)

    summary = FinancialSummary()
    total_value = 0.0
    pending = 0.0
    projected = 0.0

    for project in projects:
        budget = _to_float(project.get("budget"))
        total_value += budget

        status = project.get("status")
        if status == COMPLETED_STATUS:
            summary.completed_projects += 1
        elif status in ACTIVE_STATUSES:
            summary.active_projects += 1

            completion = _to_float(project.get("completion_percentage"))
            pending += budget * (1 - completion / 100)

            due_date = parse_datetime(project.get("due_date"))
            if due_date is not None and due_date <= horizon:
                projected += budget

    summary.total_portfolio_value = round_money(total_value)
    summary.pending_payments = round_money(pending)
    summary.projected_earnings = round_money(projected)
    return summary


def summary_is_empty(summary: Optional[Mapping[str, Any]]) -> bool:
    """True when a summary payload is missing or every metric is zero."""
    if not summary:
        return True
    return all(_to_float(value) == 0 for value in summary.values())


def _expense_total(project: Mapping[str, Any]) -> float:
    return sum(_to_float(expense.get("amount")) for expense in project.get("expenses") or [])


def _earned(project: Mapping[str, Any]) -> float:
    return _to_float(project.get("hours_worked")) * _to_float(project.get("hourly_rate"))


def project_financials(project: Mapping[str, Any]) -> ProjectFinancials:
    total_expenses = _expense_total(project)
    return ProjectFinancials(
        total_expenses=round_money(total_expenses),
        total_earned=round_money(_earned(project)),
        net_profit=round_money(_to_float(project.get("budget")) - total_expenses),
    )


def portfolio_overview(projects: Iterable[Mapping[str, Any]]) -> PortfolioOverview:
    budget = expenses = earned = 0.0
    for project in projects:
        budget += _to_float(project.get("budget"))
        expenses += _expense_total(project)
        earned += _earned(project)
    return PortfolioOverview(
        total_budget=round_money(budget),
        total_expenses=round_money(expenses),
        total_earned=round_money(earned),
    )


def _category_totals(pairs: Iterable[tuple]) -> List[CategoryTotal]:
    totals: "OrderedDict[str, float]" = OrderedDict()
    for category, amount in pairs:
        key = category or UNCATEGORIZED
        totals[key] = totals.get(key, 0.0) + amount
    return [CategoryTotal(category=name, total=round_money(total)) for name, total in totals.items()]


def budget_by_category(projects: Iterable[Mapping[str, Any]]) -> List[CategoryTotal]:
    return _category_totals(
        (project.get("category"), _to_float(project.get("budget"))) for project in projects
    )


def expenses_by_category(projects: Iterable[Mapping[str, Any]]) -> List[CategoryTotal]:
    return _category_totals(
        (expense.get("category"), _to_float(expense.get("amount")))
        for project in projects
        for expense in project.get("expenses") or []
    )


def _ceil_days(delta: timedelta) -> int:
    return math.ceil(delta.total_seconds() / 86400)


def project_timeline(project: Mapping[str, Any], today: Optional[datetime] = None) -> ProjectTimeline:
    """Where ``today`` sits between a project's start and due dates."""
    current = parse_datetime(today) if today is not None else _utcnow()
    start = parse_datetime(project.get("start_date")) or current
    due = parse_datetime(project.get("due_date")) or start

    total_days = max(_ceil_days(due - start), 0)
    days_elapsed = min(max(_ceil_days(min(current, due) - start), 0), total_days)
    days_remaining = max(_ceil_days(due - current), 0)

    if total_days:
        elapsed_pct = round_money(days_elapsed / total_days * 100)
    else:
        elapsed_pct = 100.0 if current >= due else 0.0

    completion = _to_float(project.get("completion_percentage"))
    return ProjectTimeline(
        total_days=total_days,
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        completion_percentage=completion,
        time_elapsed_percentage=elapsed_pct,
        today_in_range=start <= current <= due,
        overdue=current > due and completion < 100,
    )


def filter_projects_by_period(
    projects: Iterable[Mapping[str, Any]],
    period: str,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Keep projects created within the trailing ``period`` window."""
    if period not in PERIOD_DAYS:
        raise ValueError(f"Unknown period '{period}'. Expected one of: {', '.join(PERIOD_DAYS)}")
    current = parse_datetime(now) if now is not None else _utcnow()
    cutoff = current - timedelta(days=PERIOD_DAYS[period])

    selected: List[Dict[str, Any]] = []
    for project in projects:
        created = parse_datetime(project.get("created_at"))
        if created is None or cutoff <= created <= current:
            selected.append(dict(project))
    return selected
