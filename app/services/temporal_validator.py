"""
Payroll CTC Engine - Temporal Range Validator

Read-only checks of a candidate CTC window against an employee's
approved windows. Callers evaluate these inside their own transaction
after taking the employee lock.
"""

from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payroll import ApprovalStatus, CTCStructure


class TemporalRangeValidator:
    """Year-uniqueness and overlap checks for CTC structures."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def has_year_conflict(
        self,
        profile_id: int,
        year: int,
        exclude_id: Optional[int] = None,
        statuses: Sequence[ApprovalStatus] = (ApprovalStatus.APPROVED,),
    ) -> bool:
        """A CTC in ``statuses`` already starts in ``year``."""
        conditions = [
            CTCStructure.employee_profile_id == profile_id,
            CTCStructure.status.in_(list(statuses)),
            CTCStructure.effective_from >= date(year, 1, 1),
            CTCStructure.effective_from <= date(year, 12, 31),
        ]
        if exclude_id is not None:
            conditions.append(CTCStructure.id != exclude_id)

        result = await self.db.execute(
            select(CTCStructure.id).where(and_(*conditions)).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def has_overlap(
        self,
        profile_id: int,
        start: date,
        end: date,
        exclude_id: Optional[int] = None,
        ignore_ids: Sequence[int] = (),
    ) -> bool:
        """
        An approved CTC satisfies existing.from < end and existing.to > start.

        ``ignore_ids`` lists approved CTCs the caller is about to reject in
        the same transaction.
        """
        conditions = [
            CTCStructure.employee_profile_id == profile_id,
            CTCStructure.status == ApprovalStatus.APPROVED,
            CTCStructure.effective_from < end,
            CTCStructure.effective_to > start,
        ]
        if exclude_id is not None:
            conditions.append(CTCStructure.id != exclude_id)
        if ignore_ids:
            conditions.append(CTCStructure.id.notin_(list(ignore_ids)))

        result = await self.db.execute(
            select(CTCStructure.id).where(and_(*conditions)).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def approved_for(self, profile_id: int) -> List[CTCStructure]:
        """All approved CTCs of one employee, oldest first."""
        result = await self.db.execute(
            select(CTCStructure)
            .where(
                and_(
                    CTCStructure.employee_profile_id == profile_id,
                    CTCStructure.status == ApprovalStatus.APPROVED,
                )
            )
            .order_by(CTCStructure.effective_from)
        )
        return list(result.scalars().all())
