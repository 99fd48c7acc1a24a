"""
Payroll CTC Engine - Status Rule Tests

Unit tests for the in-memory overlap, year and cascade rules.
"""

from datetime import date
from types import SimpleNamespace

import pytest

from app.models.payroll import ApprovalStatus
from app.services.status_rules import (
    approved_set_is_consistent,
    one_year_after,
    overlapping,
    ranges_overlap,
    release_rejections,
    released_in_period,
    retroactive_rejections,
    year_conflicts,
)


def ctc(id, start, status=ApprovalStatus.APPROVED):
    return SimpleNamespace(
        id=id,
        effective_from=start,
        effective_to=one_year_after(start),
        status=status,
    )


def payslip(id, status=ApprovalStatus.APPROVED, released=False, profile=1, year=2025, month=9):
    return SimpleNamespace(
        id=id,
        employee_profile_id=profile,
        year=year,
        month=month,
        status=status,
        is_released=released,
    )


class TestValidityWindow:
    """Test cases for the one-year window and interval overlap."""

    def test_one_year_after(self):
        assert one_year_after(date(2024, 3, 15)) == date(2025, 3, 15)

    def test_leap_day_maps_to_feb_28(self):
        assert one_year_after(date(2024, 2, 29)) == date(2025, 2, 28)

    def test_adjacent_windows_do_not_overlap(self):
        """Half-open intervals: a window ending on a date does not include it."""
        assert not ranges_overlap(
            date(2024, 1, 1), date(2025, 1, 1),
            date(2025, 1, 1), date(2026, 1, 1),
        )

    def test_one_day_of_overlap(self):
        assert ranges_overlap(
            date(2024, 1, 2), date(2025, 1, 2),
            date(2025, 1, 1), date(2026, 1, 1),
        )

    def test_contained_window_overlaps(self):
        assert ranges_overlap(
            date(2024, 1, 1), date(2025, 1, 1),
            date(2024, 3, 1), date(2024, 4, 1),
        )


class TestCTCRules:
    """Test cases for year uniqueness, overlap and the retroactive cascade."""

    def test_year_conflicts_excludes_self(self):
        records = [ctc(1, date(2024, 1, 1)), ctc(2, date(2024, 9, 1))]

        assert [r.id for r in year_conflicts(records, 2024, exclude_id=1)] == [2]
        assert year_conflicts(records, 2023) == []

    def test_overlapping(self):
        records = [ctc(1, date(2024, 1, 1)), ctc(2, date(2026, 1, 1))]

        found = overlapping(records, date(2024, 6, 1), date(2025, 6, 1))

        assert [r.id for r in found] == [1]

    def test_retroactive_rejections_rejects_later_approved(self):
        later = ctc(1, date(2024, 1, 1))
        earlier = ctc(2, date(2023, 6, 1))

        assert retroactive_rejections([later, earlier], earlier) == [1]

    def test_retroactive_rejections_keeps_earlier_and_non_approved(self):
        approved_ctc = ctc(5, date(2024, 1, 1))
        records = [
            ctc(1, date(2022, 1, 1)),
            ctc(2, date(2025, 1, 1), status=ApprovalStatus.PENDING),
            ctc(3, date(2026, 1, 1), status=ApprovalStatus.REJECTED),
            ctc(4, date(2027, 1, 1)),
            approved_ctc,
        ]

        assert retroactive_rejections(records, approved_ctc) == [4]

    def test_approved_set_consistency(self):
        assert approved_set_is_consistent([
            ctc(1, date(2023, 1, 1)),
            ctc(2, date(2024, 1, 1)),
            ctc(3, date(2024, 6, 1), status=ApprovalStatus.REJECTED),
        ])
        assert not approved_set_is_consistent([
            ctc(1, date(2023, 6, 1)),
            ctc(2, date(2024, 1, 1)),
        ])


class TestPayslipRules:
    """Test cases for release exclusivity."""

    def test_release_rejects_only_approved_siblings(self):
        released = payslip(1, released=True)
        siblings = [
            released,
            payslip(2),
            payslip(3, status=ApprovalStatus.PENDING),
            payslip(4, status=ApprovalStatus.REJECTED),
            payslip(5, month=10),
            payslip(6, profile=2),
        ]

        assert release_rejections(siblings, released) == [2]

    def test_released_in_period(self):
        siblings = [payslip(1, released=True), payslip(2)]

        assert [p.id for p in released_in_period(siblings)] == [1]
        assert released_in_period(siblings, exclude_id=1) == []


@pytest.mark.parametrize("start,end,expected", [
    (date(2023, 1, 1), date(2024, 1, 1), False),
    (date(2023, 6, 1), date(2024, 6, 1), True),
    (date(2024, 12, 31), date(2025, 12, 31), True),
    (date(2025, 1, 1), date(2026, 1, 1), False),
])
def test_overlap_against_calendar_2024(start, end, expected):
    assert ranges_overlap(date(2024, 1, 1), date(2025, 1, 1), start, end) is expected
