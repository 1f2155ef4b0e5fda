from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

SummarySource = Literal["remote", "local"]
AnalyticsPeriod = Literal["week", "month", "quarter", "year"]


class FinancialSummaryResponse(BaseModel):
    total_portfolio_value: float = 0.0
    pending_payments: float = 0.0
    projected_earnings: float = 0.0
    completed_projects: int = 0
    active_projects: int = 0
    source: SummarySource = "local"


class CategoryTotalModel(BaseModel):
    category: str
    total: float


class PortfolioOverviewModel(BaseModel):
    total_budget: float = 0.0
    total_expenses: float = 0.0
    total_earned: float = 0.0


class AnalyticsResponse(BaseModel):
    period: AnalyticsPeriod
    project_count: int = 0
    overview: PortfolioOverviewModel = Field(default_factory=PortfolioOverviewModel)
    budget_by_category: List[CategoryTotalModel] = Field(default_factory=list)
    expenses_by_category: List[CategoryTotalModel] = Field(default_factory=list)
    summary: FinancialSummaryResponse = Field(default_factory=FinancialSummaryResponse)
