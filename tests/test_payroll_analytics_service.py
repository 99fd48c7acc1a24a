"""
Payroll CTC Engine - Payroll Analytics Tests

Tests for the monthly summary, period comparison and anomaly reports.
"""

from decimal import Decimal

import pytest

from app.models.payroll import ApprovalStatus, Payslip
from app.models.user import Department, EmployeeProfile
from app.services.payroll_analytics_service import (
    PayrollAnalyticsService,
    percent_change,
    previous_period,
)
from app.utils.error_handling import ErrorCode, ValidationException


async def add_payslip(db_session, person, year, month, net_pay, released=False) -> int:
    """Store a payslip with the given net pay and return its id."""
    net = Decimal(net_pay)
    payslip = Payslip(
        employee_profile_id=person.profile_id,
        year=year,
        month=month,
        basic=net,
        hra=Decimal("0"),
        gross_pay=net,
        net_pay=net,
        status=ApprovalStatus.APPROVED if released else ApprovalStatus.PENDING,
        is_released=released,
    )
    db_session.add(payslip)
    await db_session.flush()
    payslip_id = payslip.id
    await db_session.commit()
    return payslip_id


async def assign_department(db_session, person, name) -> None:
    department = Department(name=name)
    db_session.add(department)
    await db_session.flush()
    department_id = department.id

    profile = await db_session.get(EmployeeProfile, person.profile_id)
    profile.department_id = department_id
    await db_session.commit()


class TestHelpers:
    """Test cases for the period and percentage helpers."""

    def test_percent_change(self):
        assert percent_change(Decimal("10000"), Decimal("13000")) == Decimal("30.00")
        assert percent_change(Decimal("3"), Decimal("2")) == Decimal("-33.33")
        assert percent_change(Decimal("0"), Decimal("500")) == Decimal("0.00")

    def test_previous_period_wraps_january(self):
        assert previous_period(2025, 1) == (2024, 12)
        assert previous_period(2025, 9) == (2025, 8)


class TestMonthlySummary:
    """Test cases for PayrollAnalyticsService.monthly_summary."""

    @pytest.mark.asyncio
    async def test_groups_by_department(
        self, db_session, employee, second_employee, third_employee,
    ):
        await assign_department(db_session, employee, "Engineering")
        await assign_department(db_session, second_employee, "Finance")
        await add_payslip(db_session, employee, 2025, 9, "10000")
        await add_payslip(db_session, employee, 2025, 9, "12000")
        await add_payslip(db_session, second_employee, 2025, 9, "8000.50")
        await add_payslip(db_session, third_employee, 2025, 9, "5000")
        await add_payslip(db_session, employee, 2025, 10, "99999")

        summary = await PayrollAnalyticsService(db_session).monthly_summary(2025, 9)

        assert (summary.year, summary.month) == (2025, 9)
        assert [
            (d.department, d.total_net, d.average_net, d.count) for d in summary.departments
        ] == [
            ("Engineering", Decimal("22000.00"), Decimal("11000.00"), 2),
            ("Finance", Decimal("8000.50"), Decimal("8000.50"), 1),
            ("Unassigned", Decimal("5000.00"), Decimal("5000.00"), 1),
        ]

    @pytest.mark.asyncio
    async def test_empty_period(self, db_session, employee):
        await add_payslip(db_session, employee, 2025, 9, "10000")

        summary = await PayrollAnalyticsService(db_session).monthly_summary(2025, 3)

        assert summary.departments == []

    @pytest.mark.asyncio
    async def test_invalid_month(self, db_session):
        with pytest.raises(ValidationException) as exc_info:
            await PayrollAnalyticsService(db_session).monthly_summary(2025, 13)

        assert exc_info.value.code == ErrorCode.INVALID_PERIOD


class TestComparePeriods:
    """Test cases for PayrollAnalyticsService.compare_periods."""

    @pytest.mark.asyncio
    async def test_difference_and_percent(self, db_session, employee, second_employee):
        await add_payslip(db_session, employee, 2025, 9, "20000")
        await add_payslip(db_session, second_employee, 2025, 9, "10000")
        await add_payslip(db_session, employee, 2025, 10, "21000")
        await add_payslip(db_session, second_employee, 2025, 10, "12000")

        comparison = await PayrollAnalyticsService(db_session).compare_periods(2025, 9, 2025, 10)

        assert comparison.period_a.total_net == Decimal("30000.00")
        assert comparison.period_b.total_net == Decimal("33000.00")
        assert comparison.difference == Decimal("3000.00")
        assert comparison.percent_change == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_decrease(self, db_session, employee):
        await add_payslip(db_session, employee, 2025, 9, "20000")
        await add_payslip(db_session, employee, 2025, 10, "15000")

        comparison = await PayrollAnalyticsService(db_session).compare_periods(2025, 9, 2025, 10)

        assert comparison.difference == Decimal("-5000.00")
        assert comparison.percent_change == Decimal("-25.00")

    @pytest.mark.asyncio
    async def test_zero_baseline(self, db_session, employee):
        await add_payslip(db_session, employee, 2025, 10, "15000")

        comparison = await PayrollAnalyticsService(db_session).compare_periods(2025, 9, 2025, 10)

        assert comparison.period_a.total_net == Decimal("0.00")
        assert comparison.difference == Decimal("15000.00")
        assert comparison.percent_change == Decimal("0.00")


class TestAnomalies:
    """Test cases for PayrollAnalyticsService.anomalies."""

    @pytest.mark.asyncio
    async def test_flags_changes_over_threshold(
        self, db_session, employee, second_employee, third_employee,
    ):
        await add_payslip(db_session, employee, 2025, 8, "10000")
        await add_payslip(db_session, second_employee, 2025, 8, "10000")
        raised = await add_payslip(db_session, employee, 2025, 9, "13000")
        await add_payslip(db_session, second_employee, 2025, 9, "11000")
        await add_payslip(db_session, third_employee, 2025, 9, "50000")

        report = await PayrollAnalyticsService(db_session).anomalies(2025, 9)

        assert report.threshold_percent == Decimal("20")
        assert [a.payslip_id for a in report.anomalies] == [raised]
        anomaly = report.anomalies[0]
        assert anomaly.previous_net_pay == Decimal("10000.00")
        assert anomaly.net_pay == Decimal("13000.00")
        assert anomaly.change_percent == Decimal("30.00")
        assert anomaly.is_anomaly is True

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(self, db_session, employee, second_employee):
        await add_payslip(db_session, employee, 2025, 8, "10000")
        await add_payslip(db_session, second_employee, 2025, 8, "10000")
        await add_payslip(db_session, employee, 2025, 9, "13000")
        await add_payslip(db_session, second_employee, 2025, 9, "9000")

        report = await PayrollAnalyticsService(db_session).anomalies(2025, 9, Decimal("10"))

        assert sorted(a.change_percent for a in report.anomalies) == [Decimal("-10.00"), Decimal("30.00")]

    @pytest.mark.asyncio
    async def test_january_compares_with_december(self, db_session, employee):
        december = await add_payslip(db_session, employee, 2024, 12, "10000")
        await add_payslip(db_session, employee, 2025, 1, "5000")

        report = await PayrollAnalyticsService(db_session).anomalies(2025, 1)

        assert [(a.previous_payslip_id, a.change_percent) for a in report.anomalies] == [
            (december, Decimal("-50.00"))
        ]

    @pytest.mark.asyncio
    async def test_prefers_released_baseline(self, db_session, employee):
        released = await add_payslip(db_session, employee, 2025, 8, "10000", released=True)
        await add_payslip(db_session, employee, 2025, 8, "20000")
        await add_payslip(db_session, employee, 2025, 9, "12000")

        report = await PayrollAnalyticsService(db_session).anomalies(2025, 9)

        assert [(a.previous_payslip_id, a.change_percent) for a in report.anomalies] == [
            (released, Decimal("20.00"))
        ]

    @pytest.mark.asyncio
    async def test_latest_baseline_without_release(self, db_session, employee):
        await add_payslip(db_session, employee, 2025, 8, "10000")
        latest = await add_payslip(db_session, employee, 2025, 8, "20000")
        await add_payslip(db_session, employee, 2025, 9, "12000")

        report = await PayrollAnalyticsService(db_session).anomalies(2025, 9)

        assert [(a.previous_payslip_id, a.change_percent) for a in report.anomalies] == [
            (latest, Decimal("-40.00"))
        ]

    @pytest.mark.asyncio
    async def test_negative_threshold(self, db_session):
        with pytest.raises(ValidationException) as exc_info:
            await PayrollAnalyticsService(db_session).anomalies(2025, 9, Decimal("-1"))

        assert exc_info.value.field == "threshold_percent"
