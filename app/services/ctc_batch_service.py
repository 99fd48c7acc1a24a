"""
Payroll CTC Engine - CTC Batch Service

Creates the same CTC for a list of employees. Each employee is checked
independently; failures are reported per employee as data and never
abort the batch. Staged CTCs are committed together at the end.

Result statuses:
- Created: CTC staged and committed as Pending
- Conflict: a pending/approved CTC already starts in the same year, or
  the window overlaps an approved CTC
- Error: no employee profile, or the request breaks a CTC rule
"""

import logging
from contextlib import AsyncExitStack
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.models.payroll import ApprovalStatus, CTCStructure
from app.models.user import EmployeeProfile
from app.schemas.ctc import CTCBatchResponse, CTCBatchResult, CTCCreate
from app.services.ctc_service import build_ctc, validate_ctc_request
from app.services.locks import EmployeeLockRegistry, employee_locks
from app.services.status_rules import one_year_after, overlapping, year_conflicts
from app.services.workflow_notifier import WorkflowNotifier
from app.utils.error_handling import ValidationException

logger = logging.getLogger(__name__)

CREATED = "Created"
CONFLICT = "Conflict"
ERROR = "Error"


def validate_batch_tax(data: CTCCreate) -> None:
    """Batch-only rule: tax must be within (0, 50] once basic reaches the threshold."""
    if data.basic >= settings.batch_tax_basic_threshold and not (0 < data.tax_percent <= 50):
        raise ValidationException(
            f"Tax percent must be 1-50 when Basic >= {settings.batch_tax_basic_threshold}",
            field="tax_percent",
        )


def find_conflict(existing: Sequence[CTCStructure], data: CTCCreate) -> Optional[str]:
    """Conflict message for the candidate window, or None."""
    year = data.effective_from.year
    live = [c for c in existing if c.status in (ApprovalStatus.PENDING, ApprovalStatus.APPROVED)]
    if year_conflicts(live, year):
        return f"Employee already has CTC in {year}"

    end = one_year_after(data.effective_from, settings.ctc_validity_years)
    approved = [c for c in existing if c.status == ApprovalStatus.APPROVED]
    if overlapping(approved, data.effective_from, end):
        return "Employee already has active overlapping CTC"
    return None


def dedupe(employee_user_ids: Sequence[int]) -> List[int]:
    """Distinct ids, first occurrence order."""
    return list(dict.fromkeys(employee_user_ids))


class CTCBatchService:
    """Service for creating CTCs for many employees in one request."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: Optional[WorkflowNotifier] = None,
        locks: Optional[EmployeeLockRegistry] = None,
    ):
        self.db = db
        self.notifier = notifier or WorkflowNotifier(db)
        self.locks = locks or employee_locks

    async def _profile_ids(self, employee_user_ids: Sequence[int]) -> List[int]:
        result = await self.db.execute(
            select(EmployeeProfile.id)
            .where(EmployeeProfile.user_id.in_(list(employee_user_ids)))
            .order_by(EmployeeProfile.id)
        )
        return list(result.scalars().all())

    async def _load_profiles(self, employee_user_ids: Sequence[int]) -> Dict[int, EmployeeProfile]:
        """Profiles keyed by user id, row-locked, with fresh CTC history."""
        result = await self.db.execute(
            select(EmployeeProfile)
            .options(
                selectinload(EmployeeProfile.user),
                selectinload(EmployeeProfile.ctc_structures),
            )
            .where(EmployeeProfile.user_id.in_(list(employee_user_ids)))
            .order_by(EmployeeProfile.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {p.user_id: p for p in result.scalars().all()}

    async def create_batch(
        self,
        employee_user_ids: Sequence[int],
        data: CTCCreate,
        actor_id: int,
    ) -> CTCBatchResponse:
        """
        Stage one Pending CTC per distinct employee and commit them together.

        Raises:
            ValidationException: no employee ids were supplied
        """
        if not employee_user_ids:
            raise ValidationException("At least one employee required", field="employee_user_ids")

        ids = dedupe(employee_user_ids)
        results: List[CTCBatchResult] = []
        staged: List[Tuple[int, CTCStructure, str]] = []

        # Locks are taken in profile id order
        async with AsyncExitStack() as held:
            try:
                for profile_id in await self._profile_ids(ids):
                    await held.enter_async_context(self.locks.hold(profile_id))
                profiles = await self._load_profiles(ids)
                self._stage(ids, profiles, data, actor_id, results, staged)
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        for index, ctc, _ in staged:
            results[index].ctc_id = ctc.id

        created = [(ctc.id, name) for _, ctc, name in staged]
        logger.info(
            f"CTC batch by user {actor_id}: {len(created)} created out of {len(ids)} employees"
        )

        await self.notifier.ctc_batch_created(created, actor_id)

        return CTCBatchResponse(
            results=results,
            created=sum(1 for r in results if r.status == CREATED),
            conflicts=sum(1 for r in results if r.status == CONFLICT),
            errors=sum(1 for r in results if r.status == ERROR),
        )

    def _stage(
        self,
        ids: Sequence[int],
        profiles: Dict[int, EmployeeProfile],
        data: CTCCreate,
        actor_id: int,
        results: List[CTCBatchResult],
        staged: List[Tuple[int, CTCStructure, str]],
    ) -> None:
        """Append one result per employee and add the created CTCs to the session."""
        for employee_user_id in ids:
            profile = profiles.get(employee_user_id)
            if profile is None:
                results.append(CTCBatchResult(
                    employee_user_id=employee_user_id,
                    employee=f"#{employee_user_id}",
                    status=ERROR,
                    message="Employee profile not found",
                ))
                continue

            user = profile.user
            try:
                validate_ctc_request(data)
                validate_batch_tax(data)
            except ValidationException as e:
                results.append(CTCBatchResult(
                    employee_user_id=employee_user_id,
                    employee=user.full_name,
                    email=user.email,
                    status=ERROR,
                    message=e.message,
                ))
                continue

            conflict = find_conflict(profile.ctc_structures, data)
            if conflict:
                results.append(CTCBatchResult(
                    employee_user_id=employee_user_id,
                    employee=user.full_name,
                    email=user.email,
                    status=CONFLICT,
                    message=conflict,
                ))
                continue

            ctc = build_ctc(profile.id, data, actor_id)
            self.db.add(ctc)
            staged.append((len(results), ctc, user.full_name))
            results.append(CTCBatchResult(
                employee_user_id=employee_user_id,
                employee=user.full_name,
                email=user.email,
                status=CREATED,
                message="CTC created & pending approval",
            ))
