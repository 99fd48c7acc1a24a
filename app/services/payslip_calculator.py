"""
Payroll CTC Engine - Payslip Calculator

Computes a monthly payslip from an approved CTC snapshot.

Computation:
1. Gross = Basic + HRA + sum(allowances)
   CTC figures are used as monthly amounts; no annual-to-monthly
   division is applied, so annualised CTCs must be pre-scaled.
2. Tax = (Gross - sum(deductions)) x tax_percent / 100
3. LOP deduction = Gross / 30 x LOP days
4. Net = Gross - sum(deductions) - Tax - LOP deduction
5. Override totals replace the computed allowance/deduction totals:
   Net += (override_allowances - sum(allowances))
   Net -= (override_deductions - sum(deductions))

Arithmetic is exact Decimal; monetary outputs are rounded half-up to
2 decimal places at the end.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional, Union

from app.config import settings
from app.models.payroll import ApprovalStatus
from app.utils.error_handling import ErrorCode, ValidationException


TWO_PLACES = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass
class LineItem:
    """Labelled amount copied from the CTC."""
    label: str
    amount: Decimal


@dataclass
class PayslipComputation:
    """Result of a payslip computation, ready to persist."""
    year: int
    month: int
    lop_days: int
    basic: Decimal
    hra: Decimal
    gross_pay: Decimal
    total_allowances: Decimal
    total_deductions: Decimal
    tax_deducted: Decimal
    lop_deduction: Decimal
    net_pay: Decimal
    allowance_items: List[LineItem] = field(default_factory=list)
    deduction_items: List[LineItem] = field(default_factory=list)
    status: ApprovalStatus = ApprovalStatus.PENDING
    is_released: bool = False


class PayslipCalculator:
    """Pure payslip computation; holds no session and writes nothing."""

    def __init__(self, month_days: Optional[int] = None):
        self.month_days = Decimal(month_days or settings.lop_month_days)

    def compute(
        self,
        ctc: Any,
        year: int,
        month: int,
        lop_days: int = 0,
        override_allowance_total: Optional[Number] = None,
        override_deduction_total: Optional[Number] = None,
    ) -> PayslipComputation:
        """
        Compute a payslip for one period.

        Args:
            ctc: Approved CTC snapshot (basic, hra, tax_percent,
                allowances, deductions)
            year: Pay year
            month: Pay month (1-12)
            lop_days: Loss-of-pay days (0-31)
            override_allowance_total: Replaces sum(allowances) when given
            override_deduction_total: Replaces sum(deductions) when given
        """
        self._validate_period(year, month, lop_days)

        basic = to_decimal(ctc.basic)
        hra = to_decimal(ctc.hra)
        tax_percent = to_decimal(ctc.tax_percent)

        allowance_items = [LineItem(a.label, to_decimal(a.amount)) for a in ctc.allowances]
        deduction_items = [LineItem(d.label, to_decimal(d.amount)) for d in ctc.deductions]

        allowances_sum = sum((a.amount for a in allowance_items), Decimal("0"))
        deductions_sum = sum((d.amount for d in deduction_items), Decimal("0"))

        gross = basic + hra + allowances_sum
        tax = (gross - deductions_sum) * tax_percent / Decimal("100")

        daily_rate = gross / self.month_days
        lop_deduction = daily_rate * lop_days

        net = gross - deductions_sum - tax - lop_deduction

        total_allowances = allowances_sum
        if override_allowance_total is not None:
            total_allowances = self._non_negative(override_allowance_total, "override_allowance_total")
            net += total_allowances - allowances_sum

        total_deductions = deductions_sum
        if override_deduction_total is not None:
            total_deductions = self._non_negative(override_deduction_total, "override_deduction_total")
            net -= total_deductions - deductions_sum

        return PayslipComputation(
            year=year,
            month=month,
            lop_days=lop_days,
            basic=round_money(basic),
            hra=round_money(hra),
            gross_pay=round_money(gross),
            total_allowances=round_money(total_allowances),
            total_deductions=round_money(total_deductions),
            tax_deducted=round_money(tax),
            lop_deduction=round_money(lop_deduction),
            net_pay=round_money(net),
            allowance_items=[LineItem(a.label, round_money(a.amount)) for a in allowance_items],
            deduction_items=[LineItem(d.label, round_money(d.amount)) for d in deduction_items],
        )

    @staticmethod
    def _validate_period(year: int, month: int, lop_days: int) -> None:
        if not 1 <= year <= 9999:
            raise ValidationException(
                f"Invalid year: {year}", field="year", code=ErrorCode.INVALID_PERIOD,
            )
        if not 1 <= month <= 12:
            raise ValidationException(
                f"Invalid month: {month}. Month must be between 1 and 12.",
                field="month",
                code=ErrorCode.INVALID_PERIOD,
            )
        if not 0 <= lop_days <= 31:
            raise ValidationException(
                f"Invalid LOP days: {lop_days}. Must be between 0 and 31.",
                field="lop_days",
            )

    @staticmethod
    def _non_negative(value: Number, field_name: str) -> Decimal:
        amount = to_decimal(value)
        if amount < 0:
            raise ValidationException(
                f"{field_name} cannot be negative", field=field_name,
                code=ErrorCode.INVALID_AMOUNT,
            )
        return amount
