"""
Payroll CTC Engine - CTC Batch Service Tests

Tests for creating the same CTC for several employees.
"""

from datetime import date

import pytest

from app.models.payroll import ApprovalStatus
from app.services.ctc_batch_service import CONFLICT, CREATED, ERROR, CTCBatchService, dedupe
from app.services.ctc_service import CTCService
from app.utils.error_handling import ValidationException


def by_employee(response):
    return {r.employee_user_id: r for r in response.results}


class TestCTCBatchService:
    """Test cases for CTCBatchService.create_batch."""

    @pytest.mark.asyncio
    async def test_batch_with_existing_ctc_in_year(
        self, db_session, hr_user, hr_manager, employee, second_employee, third_employee, ctc_request,
    ):
        """Employee with an approved CTC in the target year is a conflict; the rest are created."""
        ctc_service = CTCService(db_session)
        existing = await ctc_service.create_ctc(
            second_employee.user_id, ctc_request(date(2025, 1, 1)), hr_user.user_id,
        )
        await ctc_service.approve_ctc(existing.id, hr_manager.user_id)

        service = CTCBatchService(db_session)
        response = await service.create_batch(
            [employee.user_id, second_employee.user_id, third_employee.user_id],
            ctc_request(date(2025, 4, 1)),
            hr_user.user_id,
        )

        results = by_employee(response)
        assert [r.employee_user_id for r in response.results] == [
            employee.user_id, second_employee.user_id, third_employee.user_id,
        ]
        assert results[employee.user_id].status == CREATED
        assert results[third_employee.user_id].status == CREATED
        assert results[second_employee.user_id].status == CONFLICT
        assert results[second_employee.user_id].message == "Employee already has CTC in 2025"
        assert (response.created, response.conflicts, response.errors) == (2, 1, 0)

        for person in (employee, third_employee):
            ctcs = await ctc_service.list_ctcs(employee_user_id=person.user_id)
            assert len(ctcs) == 1
            assert ctcs[0].status == ApprovalStatus.PENDING
            assert ctcs[0].id == results[person.user_id].ctc_id

    @pytest.mark.asyncio
    async def test_pending_ctc_in_year_is_a_conflict(
        self, db_session, hr_user, employee, ctc_request,
    ):
        await CTCService(db_session).create_ctc(employee.user_id, ctc_request(date(2025, 1, 1)), hr_user.user_id)

        response = await CTCBatchService(db_session).create_batch(
            [employee.user_id], ctc_request(date(2025, 7, 1)), hr_user.user_id,
        )

        assert response.results[0].status == CONFLICT

    @pytest.mark.asyncio
    async def test_overlap_with_approved_ctc_is_a_conflict(
        self, db_session, hr_user, hr_manager, employee, ctc_request,
    ):
        ctc_service = CTCService(db_session)
        existing = await ctc_service.create_ctc(employee.user_id, ctc_request(date(2024, 6, 1)), hr_user.user_id)
        await ctc_service.approve_ctc(existing.id, hr_manager.user_id)

        response = await CTCBatchService(db_session).create_batch(
            [employee.user_id], ctc_request(date(2025, 2, 1)), hr_user.user_id,
        )

        assert response.results[0].status == CONFLICT
        assert response.results[0].message == "Employee already has active overlapping CTC"

    @pytest.mark.asyncio
    async def test_duplicate_ids_processed_once(
        self, db_session, hr_user, employee, second_employee, ctc_request,
    ):
        response = await CTCBatchService(db_session).create_batch(
            [employee.user_id, second_employee.user_id, employee.user_id],
            ctc_request(),
            hr_user.user_id,
        )

        assert [r.employee_user_id for r in response.results] == [employee.user_id, second_employee.user_id]
        assert response.created == 2

    @pytest.mark.asyncio
    async def test_missing_profile_is_an_error(self, db_session, hr_user, employee, ctc_request):
        response = await CTCBatchService(db_session).create_batch(
            [9999, employee.user_id], ctc_request(), hr_user.user_id,
        )

        results = by_employee(response)
        assert results[9999].status == ERROR
        assert results[9999].employee == "#9999"
        assert results[9999].message == "Employee profile not found"
        assert results[employee.user_id].status == CREATED

    @pytest.mark.asyncio
    async def test_invalid_request_is_reported_per_employee(
        self, db_session, hr_user, employee, second_employee, ctc_request,
    ):
        response = await CTCBatchService(db_session).create_batch(
            [employee.user_id, second_employee.user_id], ctc_request(hra="7000"), hr_user.user_id,
        )

        assert [r.status for r in response.results] == [ERROR, ERROR]
        assert response.results[0].email == employee.email
        assert response.results[0].message == "HRA cannot exceed 50% of Basic"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tax_percent,expected", [
        ("0", ERROR),
        ("51", ERROR),
        ("50", CREATED),
        ("0.5", CREATED),
    ])
    async def test_batch_tax_rule_for_high_basic(
        self, db_session, hr_user, employee, ctc_request, tax_percent, expected,
    ):
        response = await CTCBatchService(db_session).create_batch(
            [employee.user_id],
            ctc_request(basic="20000", hra="5000", tax_percent=tax_percent),
            hr_user.user_id,
        )

        assert response.results[0].status == expected

    @pytest.mark.asyncio
    async def test_zero_tax_allowed_below_threshold(self, db_session, hr_user, employee, ctc_request):
        response = await CTCBatchService(db_session).create_batch(
            [employee.user_id], ctc_request(basic="19999", hra="0", tax_percent="0"), hr_user.user_id,
        )

        assert response.results[0].status == CREATED

    @pytest.mark.asyncio
    async def test_empty_batch(self, db_session, hr_user, ctc_request):
        with pytest.raises(ValidationException):
            await CTCBatchService(db_session).create_batch([], ctc_request(), hr_user.user_id)


def test_dedupe_keeps_first_occurrence_order():
    assert dedupe([3, 1, 3, 2, 1]) == [3, 1, 2]
