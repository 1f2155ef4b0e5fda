# Financial aggregation for the dashboard.
# Pure computations over project/expense rows; shared by the summary API
# and its local fallback when the Supabase edge function is unavailable.

from .aggregation import (
    budget_by_category,
    compute_financial_summary,
    expenses_by_category,
    filter_projects_by_period,
    portfolio_overview,
    project_financials,
    project_timeline,
    round_money,
    summary_is_empty,
)
from .models import FinancialSummary, ProjectFinancials, ProjectTimeline

__all__ = [
    "FinancialSummary",
    "ProjectFinancials",
    "ProjectTimeline",
    "budget_by_category",
    "compute_financial_summary",
    "expenses_by_category",
    "filter_projects_by_period",
    "portfolio_overview",
    "project_financials",
    "project_timeline",
    "round_money",
    "summary_is_empty",
]
