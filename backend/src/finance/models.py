from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


ACTIVE_STATUSES = frozenset({"pending", "in-progress"})
COMPLETED_STATUS = "completed"

PROJECTION_WINDOW_DAYS = 30

PERIOD_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}


@dataclass(slots=True)
class FinancialSummary:
    total_portfolio_value: float = 0.0
    pending_payments: float = 0.0
    projected_earnings: float = 0.0
    completed_projects: int = 0
    active_projects: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ProjectFinancials:
    total_expenses: float = 0.0
    total_earned: float = 0.0
    net_profit: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class PortfolioOverview:
    total_budget: float = 0.0
    total_expenses: float = 0.0
    total_earned: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class CategoryTotal:
    category: str
    total: float


@dataclass(slots=True)
class ProjectTimeline:
    """Schedule position of a single project, in whole days."""

    total_days: int
    days_elapsed: int
    days_remaining: int
    completion_percentage: float
    time_elapsed_percentage: float
    today_in_range: bool = False
    overdue: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
