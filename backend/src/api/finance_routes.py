"""Financial summary and analytics endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import AuthContext, get_auth_context, get_summary_service
from api.models.finance_models import AnalyticsPeriod, AnalyticsResponse, FinancialSummaryResponse
from services.summary_service import FinancialSummaryService, FinancialSummaryServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/finances", tags=["Finances"])


def _summary_error(exc: FinancialSummaryServiceError) -> HTTPException:
    logger.error(f"Financial summary error: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "summary_error", "message": f"Failed to compute financial summary: {exc}"},
    )


@router.get("/summary", response_model=FinancialSummaryResponse)
async def get_financial_summary(
    auth: AuthContext = Depends(get_auth_context),
    service: FinancialSummaryService = Depends(get_summary_service),
) -> FinancialSummaryResponse:
    """Portfolio value, pending payments, 30-day projection and project counts.

    Served by the Supabase edge function when it answers with a non-empty
    summary, otherwise computed from the caller's projects.
    """
    try:
        summary, source = await service.get_summary(auth.user_id, auth.access_token)
    except FinancialSummaryServiceError as exc:
        raise _summary_error(exc)
    return FinancialSummaryResponse(**summary, source=source)


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(
    period: AnalyticsPeriod = Query("month"),
    auth: AuthContext = Depends(get_auth_context),
    service: FinancialSummaryService = Depends(get_summary_service),
) -> AnalyticsResponse:
    """Chart data for projects created within the trailing period."""
    try:
        data = service.get_analytics(auth.user_id, period)
    except FinancialSummaryServiceError as exc:
        raise _summary_error(exc)
    return AnalyticsResponse(**data)
