"""
Payroll CTC Engine - Payroll Analytics Router

Net pay reports over stored payslips.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_actor_id
from app.schemas.analytics import AnomalyReport, MonthlySummaryResponse, PeriodComparison
from app.services.payroll_analytics_service import DEFAULT_ANOMALY_THRESHOLD, PayrollAnalyticsService


router = APIRouter()


@router.get(
    "/monthly-summary",
    response_model=MonthlySummaryResponse,
    summary="Net pay by department",
    description="Total, average and count of net pay per department for one month.",
)
async def monthly_summary(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = PayrollAnalyticsService(db)
    return await service.monthly_summary(year, month)


@router.get(
    "/compare",
    response_model=PeriodComparison,
    summary="Compare two months",
    description="Difference and percent change of total net pay from the first period to the second.",
)
async def compare_periods(
    year1: int = Query(..., ge=1, le=9999),
    month1: int = Query(..., ge=1, le=12),
    year2: int = Query(..., ge=1, le=9999),
    month2: int = Query(..., ge=1, le=12),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = PayrollAnalyticsService(db)
    return await service.compare_periods(year1, month1, year2, month2)


@router.get(
    "/anomalies",
    response_model=AnomalyReport,
    summary="Net pay anomalies",
    description="Payslips whose net pay changed by at least the threshold against the previous month.",
)
async def anomalies(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    threshold_percent: Decimal = Query(DEFAULT_ANOMALY_THRESHOLD, ge=0),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = PayrollAnalyticsService(db)
    return await service.anomalies(year, month, threshold_percent)
