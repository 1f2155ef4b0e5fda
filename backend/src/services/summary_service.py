"""Financial summary retrieval with a local fallback.

The summary is normally computed by the ``financial-summary`` Supabase edge
function. When the function cannot be reached, fails, returns something
that is not a summary, or returns an all-zero summary, the same numbers are
computed here from the caller's projects.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from config.settings import AppConfig, get_config
from finance import (
    budget_by_category,
    compute_financial_summary,
    expenses_by_category,
    filter_projects_by_period,
    portfolio_overview,
    summary_is_empty,
)
from services.projects_service import ProjectsService, ProjectsServiceError

logger = logging.getLogger(__name__)

REMOTE_TIMEOUT_SECONDS = 10

# Edge function payload key -> API field
_REMOTE_FIELDS = {
    "totalPortfolioValue": "total_portfolio_value",
    "pendingPayments": "pending_payments",
    "projectedEarnings": "projected_earnings",
    "completedProjects": "completed_projects",
    "activeProjects": "active_projects",
}


class FinancialSummaryServiceError(Exception):
    """Raised when neither the edge function nor the local fallback can produce a summary."""


def parse_remote_summary(payload: Any) -> Optional[Dict[str, Any]]:
    """Translate the edge function's camelCase payload; ``None`` if malformed."""
    if not isinstance(payload, dict):
        return None
    summary: Dict[str, Any] = {}
    for remote_key, field in _REMOTE_FIELDS.items():
        value = payload.get(remote_key, payload.get(field))
        if value is None:
            return None
        try:
            summary[field] = int(value) if field.endswith("_projects") else float(value)
        except (TypeError, ValueError):
            return None
    return summary


class FinancialSummaryService:
    def __init__(
        self,
        projects_service: Optional[ProjectsService] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._projects_service = projects_service or ProjectsService()
        self._config = config or get_config()

    @property
    def function_url(self) -> str:
        return f"{self._config.functions_url}/{self._config.summary_function}"

    async def fetch_remote_summary(self, access_token: str) -> Optional[Dict[str, Any]]:
        if not self._config.supabase_url:
            return None
        headers = {
            "Authorization": f"Bearer {access_token}",
            "apikey": self._config.supabase_anon_key or self._config.supabase_key or "",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=REMOTE_TIMEOUT_SECONDS) as client:
                response = await client.post(self.function_url, headers=headers, json={})
        except httpx.HTTPError as exc:
            logger.warning(f"Financial summary function unreachable: {exc}")
            return None

        if response.status_code >= 400:
            logger.warning(f"Financial summary function returned HTTP {response.status_code}")
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Financial summary function returned a non-JSON body")
            return None
        return parse_remote_summary(payload)

    def compute_local_summary(self, user_id: str) -> Dict[str, Any]:
        try:
            projects = self._projects_service.list_projects(user_id)
        except ProjectsServiceError as exc:
            raise FinancialSummaryServiceError(str(exc)) from exc
        return compute_financial_summary(projects).to_dict()

    async def get_summary(self, user_id: str, access_token: str) -> Tuple[Dict[str, Any], str]:
        """Return ``(summary, source)`` where source is ``remote`` or ``local``."""
        remote = await self.fetch_remote_summary(access_token)
        if remote is not None and not summary_is_empty(remote):
            return remote, "remote"

        logger.info(f"Falling back to local financial summary for user {user_id}")
        return self.compute_local_summary(user_id), "local"

    def get_analytics(self, user_id: str, period: str = "month") -> Dict[str, Any]:
        """Chart data (overview, income and expense breakdowns) for a trailing period."""
        try:
            projects = self._projects_service.list_projects_with_expenses(user_id)
        except ProjectsServiceError as exc:
            raise FinancialSummaryServiceError(str(exc)) from exc

        selected = filter_projects_by_period(projects, period)
        return {
            "period": period,
            "project_count": len(selected),
            "overview": portfolio_overview(selected).to_dict(),
            "budget_by_category": [
                {"category": item.category, "total": item.total} for item in budget_by_category(selected)
            ],
            "expenses_by_category": [
                {"category": item.category, "total": item.total} for item in expenses_by_category(selected)
            ],
            "summary": {**compute_financial_summary(selected).to_dict(), "source": "local"},
        }
