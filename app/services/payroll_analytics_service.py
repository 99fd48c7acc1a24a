"""
Payroll CTC Engine - Payroll Analytics Service

Read-only net pay reports over stored payslips:
- monthly summary per department
- comparison of two periods
- per-employee anomalies against the previous month

Every payslip of a period is counted whatever its review status.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payroll import Payslip
from app.models.user import Department, EmployeeProfile
from app.schemas.analytics import (
    AnomalyReport,
    DepartmentSummary,
    MonthlySummaryResponse,
    PayslipAnomaly,
    PeriodComparison,
    PeriodTotal,
)
from app.utils.error_handling import ErrorCode, ValidationException

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"
DEFAULT_ANOMALY_THRESHOLD = Decimal("20")

_CENT = Decimal("0.01")


def _money(value) -> Decimal:
    """SQL aggregates come back as Decimal, float or None depending on the backend."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def percent_change(old: Decimal, new: Decimal) -> Decimal:
    """(new - old) / old * 100 to 2dp; 0 when there is no baseline."""
    if old == 0:
        return Decimal("0.00")
    return ((new - old) / old * 100).quantize(_CENT, rounding=ROUND_HALF_UP)


def previous_period(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def _check_period(year: int, month: int) -> None:
    if not 1 <= year <= 9999:
        raise ValidationException(f"Invalid year: {year}", field="year", code=ErrorCode.INVALID_PERIOD)
    if not 1 <= month <= 12:
        raise ValidationException(
            f"Invalid month: {month}. Month must be between 1 and 12",
            field="month",
            code=ErrorCode.INVALID_PERIOD,
        )


class PayrollAnalyticsService:
    """Net pay reports for HR managers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def monthly_summary(self, year: int, month: int) -> MonthlySummaryResponse:
        """Total, average and count of net pay per department for one period."""
        _check_period(year, month)

        department = func.coalesce(Department.name, UNASSIGNED).label("department")
        result = await self.db.execute(
            select(
                department,
                func.sum(Payslip.net_pay).label("total"),
                func.avg(Payslip.net_pay).label("average"),
                func.count(Payslip.id).label("count"),
            )
            .select_from(Payslip)
            .join(EmployeeProfile, Payslip.employee_profile_id == EmployeeProfile.id)
            .outerjoin(Department, EmployeeProfile.department_id == Department.id)
            .where(and_(Payslip.year == year, Payslip.month == month))
            .group_by(department)
            .order_by(department)
        )

        departments = [
            DepartmentSummary(
                department=row.department,
                total_net=_money(row.total),
                average_net=_money(row.average),
                count=row.count,
            )
            for row in result.all()
        ]
        return MonthlySummaryResponse(year=year, month=month, departments=departments)

    async def period_total(self, year: int, month: int) -> Decimal:
        _check_period(year, month)
        result = await self.db.execute(
            select(func.sum(Payslip.net_pay))
            .where(and_(Payslip.year == year, Payslip.month == month))
        )
        return _money(result.scalar())

    async def compare_periods(
        self,
        year_a: int,
        month_a: int,
        year_b: int,
        month_b: int,
    ) -> PeriodComparison:
        """Difference and percent change of total net pay from period A to period B."""
        total_a = await self.period_total(year_a, month_a)
        total_b = await self.period_total(year_b, month_b)

        return PeriodComparison(
            period_a=PeriodTotal(year=year_a, month=month_a, total_net=total_a),
            period_b=PeriodTotal(year=year_b, month=month_b, total_net=total_b),
            difference=total_b - total_a,
            percent_change=percent_change(total_a, total_b),
        )

    async def _period_payslips(self, year: int, month: int) -> List[Payslip]:
        result = await self.db.execute(
            select(Payslip)
            .where(and_(Payslip.year == year, Payslip.month == month))
            .order_by(Payslip.id)
        )
        return list(result.scalars().all())

    async def anomalies(
        self,
        year: int,
        month: int,
        threshold_percent: Optional[Decimal] = None,
    ) -> AnomalyReport:
        """
        Payslips whose net pay moved by at least ``threshold_percent``
        against the same employee's payslip of the previous month.

        The previous payslip is the released one when there is one,
        otherwise the most recent. Employees without a previous payslip
        are never flagged.
        """
        _check_period(year, month)
        threshold = DEFAULT_ANOMALY_THRESHOLD if threshold_percent is None else threshold_percent
        if threshold < 0:
            raise ValidationException("Threshold cannot be negative", field="threshold_percent")

        baseline: Dict[int, Payslip] = {}
        for payslip in await self._period_payslips(*previous_period(year, month)):
            current = baseline.get(payslip.employee_profile_id)
            if current is None or payslip.is_released or not current.is_released:
                baseline[payslip.employee_profile_id] = payslip

        flagged: List[PayslipAnomaly] = []
        for payslip in await self._period_payslips(year, month):
            previous = baseline.get(payslip.employee_profile_id)
            if previous is None:
                continue
            change = percent_change(previous.net_pay, payslip.net_pay)
            if abs(change) >= threshold:
                flagged.append(PayslipAnomaly(
                    payslip_id=payslip.id,
                    employee_profile_id=payslip.employee_profile_id,
                    previous_payslip_id=previous.id,
                    previous_net_pay=previous.net_pay,
                    net_pay=payslip.net_pay,
                    change_percent=change,
                    is_anomaly=True,
                ))

        logger.info(f"Anomaly scan {month}/{year} at {threshold}%: {len(flagged)} flagged")
        return AnomalyReport(year=year, month=month, threshold_percent=threshold, anomalies=flagged)
