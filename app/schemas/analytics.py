"""
Payroll CTC Engine - Payroll Analytics Schemas
"""

from decimal import Decimal
from typing import List

from pydantic import BaseModel


class DepartmentSummary(BaseModel):
    """Net pay totals of one department for one period."""
    department: str
    total_net: Decimal
    average_net: Decimal
    count: int


class MonthlySummaryResponse(BaseModel):
    year: int
    month: int
    departments: List[DepartmentSummary]


class PeriodTotal(BaseModel):
    year: int
    month: int
    total_net: Decimal


class PeriodComparison(BaseModel):
    """Total net pay of two periods; change is measured from A to B."""
    period_a: PeriodTotal
    period_b: PeriodTotal
    difference: Decimal
    percent_change: Decimal


class PayslipAnomaly(BaseModel):
    """Net pay change of one payslip against the previous month."""
    payslip_id: int
    employee_profile_id: int
    previous_payslip_id: int
    previous_net_pay: Decimal
    net_pay: Decimal
    change_percent: Decimal
    is_anomaly: bool


class AnomalyReport(BaseModel):
    year: int
    month: int
    threshold_percent: Decimal
    anomalies: List[PayslipAnomaly]
