"""
Payroll CTC Engine - Payslip Calculator Tests

Unit tests for payslip computation.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.models.payroll import ApprovalStatus
from app.services.payslip_calculator import PayslipCalculator
from app.utils.error_handling import ValidationException


def snapshot(basic="12000", hra="6000", tax_percent="10", allowances=(), deductions=()):
    return SimpleNamespace(
        basic=Decimal(basic),
        hra=Decimal(hra),
        tax_percent=Decimal(tax_percent),
        allowances=[SimpleNamespace(label=l, amount=Decimal(a)) for l, a in allowances],
        deductions=[SimpleNamespace(label=l, amount=Decimal(a)) for l, a in deductions],
    )


class TestPayslipCalculator:
    """Test cases for PayslipCalculator.compute."""

    def setup_method(self):
        self.calculator = PayslipCalculator(month_days=30)

    def test_basic_net_pay(self):
        """Gross 18000 at 10% tax nets 16200."""
        result = self.calculator.compute(snapshot(), year=2024, month=8, lop_days=0)

        assert result.gross_pay == Decimal("18000.00")
        assert result.tax_deducted == Decimal("1800.00")
        assert result.lop_deduction == Decimal("0.00")
        assert result.net_pay == Decimal("16200.00")
        assert result.status == ApprovalStatus.PENDING
        assert result.is_released is False

    def test_no_monthly_division(self):
        """CTC figures are used as they are, without dividing by 12."""
        result = self.calculator.compute(snapshot(basic="120000", hra="0", tax_percent="0"), 2024, 1)

        assert result.gross_pay == Decimal("120000.00")
        assert result.net_pay == Decimal("120000.00")

    def test_allowances_and_deductions(self):
        ctc = snapshot(
            allowances=[("Travel", "1500")],
            deductions=[("Provident Fund", "1000")],
        )

        result = self.calculator.compute(ctc, 2024, 8)

        # gross 19500, taxable 18500
        assert result.gross_pay == Decimal("19500.00")
        assert result.total_allowances == Decimal("1500.00")
        assert result.total_deductions == Decimal("1000.00")
        assert result.tax_deducted == Decimal("1850.00")
        assert result.net_pay == Decimal("16650.00")

    def test_loss_of_pay(self):
        result = self.calculator.compute(snapshot(tax_percent="0"), 2024, 8, lop_days=3)

        assert result.lop_deduction == Decimal("1800.00")
        assert result.net_pay == Decimal("16200.00")
        assert result.lop_days == 3

    def test_loss_of_pay_rounds_half_up(self):
        result = self.calculator.compute(snapshot(basic="1000", hra="0", tax_percent="0"), 2024, 8, lop_days=1)

        assert result.lop_deduction == Decimal("33.33")
        assert result.net_pay == Decimal("966.67")

    def test_tax_rounds_half_up(self):
        result = self.calculator.compute(snapshot(basic="1001", hra="0", tax_percent="12.5"), 2024, 8)

        # 1001 x 12.5% = 125.125
        assert result.tax_deducted == Decimal("125.13")
        assert result.net_pay == Decimal("875.88")

    def test_override_totals_replace_computed_totals(self):
        ctc = snapshot(
            allowances=[("Travel", "1500")],
            deductions=[("Provident Fund", "1000")],
        )

        result = self.calculator.compute(
            ctc, 2024, 8,
            override_allowance_total=Decimal("2000"),
            override_deduction_total=Decimal("0"),
        )

        # base net 16650, +500 allowances, +1000 deductions
        assert result.net_pay == Decimal("18150.00")
        assert result.total_allowances == Decimal("2000.00")
        assert result.total_deductions == Decimal("0.00")
        # Tax stays on the itemised figures
        assert result.tax_deducted == Decimal("1850.00")

    def test_overrides_leave_line_items_untouched(self):
        ctc = snapshot(allowances=[("Travel", "1500"), ("Meal", "500")])

        result = self.calculator.compute(ctc, 2024, 8, override_allowance_total=Decimal("100"))

        assert [(i.label, i.amount) for i in result.allowance_items] == [
            ("Travel", Decimal("1500.00")),
            ("Meal", Decimal("500.00")),
        ]

    def test_compute_is_deterministic(self):
        ctc = snapshot(allowances=[("Travel", "1500")], deductions=[("PF", "800")])

        first = self.calculator.compute(ctc, 2025, 9, lop_days=2, override_deduction_total="900")
        second = self.calculator.compute(ctc, 2025, 9, lop_days=2, override_deduction_total="900")

        assert first == second

    def test_custom_month_days(self):
        calculator = PayslipCalculator(month_days=31)

        result = calculator.compute(snapshot(basic="3100", hra="0", tax_percent="0"), 2024, 8, lop_days=1)

        assert result.lop_deduction == Decimal("100.00")

    @pytest.mark.parametrize("year,month,lop_days,field", [
        (2024, 0, 0, "month"),
        (2024, 13, 0, "month"),
        (0, 5, 0, "year"),
        (2024, 5, -1, "lop_days"),
        (2024, 5, 32, "lop_days"),
    ])
    def test_rejects_out_of_range_period(self, year, month, lop_days, field):
        with pytest.raises(ValidationException) as exc_info:
            self.calculator.compute(snapshot(), year, month, lop_days=lop_days)

        assert exc_info.value.field == field

    def test_rejects_negative_override(self):
        with pytest.raises(ValidationException):
            self.calculator.compute(snapshot(), 2024, 8, override_allowance_total=Decimal("-1"))
