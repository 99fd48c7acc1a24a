"""
Payroll CTC Engine - Status Rules

Pure functions over in-memory CTC and payslip records.

The lifecycle services apply these inside their transaction; the batch
service and the tests call them directly. Records are duck-typed: CTCs
need ``id``, ``effective_from``, ``effective_to`` and ``status``;
payslips need ``id``, ``employee_profile_id``, ``year``, ``month``,
``status`` and ``is_released``.
"""

from datetime import date
from typing import Any, Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from app.models.payroll import ApprovalStatus


def one_year_after(start: date, years: int = 1) -> date:
    """End of the validity window; Feb 29 maps to Feb 28."""
    return start + relativedelta(years=years)


def ranges_overlap(a_from: date, a_to: date, b_from: date, b_to: date) -> bool:
    """Half-open interval overlap: [a_from, a_to) intersects [b_from, b_to)."""
    return a_from < b_to and a_to > b_from


def is_approved(record: Any) -> bool:
    return record.status == ApprovalStatus.APPROVED


# ===========================================
# CTC RULES
# ===========================================

def year_conflicts(
    records: Iterable[Any],
    year: int,
    exclude_id: Optional[int] = None,
) -> List[Any]:
    """Records whose effective_from falls in ``year``, other than exclude_id."""
    return [
        r for r in records
        if r.effective_from.year == year and r.id != exclude_id
    ]


def overlapping(
    records: Iterable[Any],
    start: date,
    end: date,
    exclude_id: Optional[int] = None,
) -> List[Any]:
    """Records whose [effective_from, effective_to) overlaps [start, end)."""
    return [
        r for r in records
        if r.id != exclude_id
        and ranges_overlap(r.effective_from, r.effective_to, start, end)
    ]


def retroactive_rejections(approved: Iterable[Any], approved_ctc: Any) -> List[int]:
    """
    Ids to reject after ``approved_ctc`` becomes approved.

    Every other approved CTC of the same employee that starts later is
    invalidated. Overlap is not re-checked on the rejected side.
    """
    return [
        r.id for r in approved
        if r.id != approved_ctc.id
        and is_approved(r)
        and r.effective_from > approved_ctc.effective_from
    ]


def approved_set_is_consistent(records: Iterable[Any]) -> bool:
    """True when approved records are pairwise non-overlapping and one per year."""
    approved = sorted((r for r in records if is_approved(r)), key=lambda r: r.effective_from)
    years = [r.effective_from.year for r in approved]
    if len(years) != len(set(years)):
        return False
    for earlier, later in zip(approved, approved[1:]):
        if ranges_overlap(
            earlier.effective_from, earlier.effective_to,
            later.effective_from, later.effective_to,
        ):
            return False
    return True


# ===========================================
# PAYSLIP RULES
# ===========================================

def same_period(a: Any, b: Any) -> bool:
    return (
        a.employee_profile_id == b.employee_profile_id
        and a.year == b.year
        and a.month == b.month
    )


def released_in_period(payslips: Iterable[Any], exclude_id: Optional[int] = None) -> List[Any]:
    return [p for p in payslips if p.is_released and p.id != exclude_id]


def release_rejections(siblings: Iterable[Any], released: Any) -> List[int]:
    """Ids of the other approved, unreleased payslips of the released one's period."""
    return [
        p.id for p in siblings
        if p.id != released.id
        and same_period(p, released)
        and is_approved(p)
        and not p.is_released
    ]
