"""
Payroll CTC Engine - CTC Service

Lifecycle of CTC (cost-to-company) structures.

Transitions:
- create: new CTC in Pending, validity window effective_from + 1 year
- approve: Pending/Rejected -> Approved, guarded by the year-uniqueness
  and overlap checks, followed by the retroactive cascade that rejects
  every later-dated approved CTC of the same employee
- reject / set_pending: direct status assignment, no cascade

Each transition runs in one transaction while holding the employee lock;
audit, notification and email side effects run after commit.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.models.payroll import ApprovalStatus, CTCAllowance, CTCDeduction, CTCStructure
from app.models.user import EmployeeProfile
from app.schemas.ctc import CTCCreate, LineItemIn
from app.services.locks import EmployeeLockRegistry, employee_locks
from app.services.status_rules import one_year_after, retroactive_rejections
from app.services.temporal_validator import TemporalRangeValidator
from app.services.workflow_notifier import WorkflowNotifier
from app.utils.error_handling import (
    ConflictException,
    CTCNotFoundException,
    DuplicateLabelException,
    EmployeeNotFoundException,
    ErrorCode,
    InvalidAmountException,
    ValidationException,
)

logger = logging.getLogger(__name__)


# ===========================================
# VALIDATION
# ===========================================

def _check_line_items(items: Sequence[LineItemIn], kind: str) -> None:
    seen = set()
    for item in items:
        if item.amount < 0:
            raise InvalidAmountException(
                item.amount, f"{kind}s", f"{kind.capitalize()} '{item.label}' cannot be negative",
            )
        key = item.label.strip().lower()
        if key in seen:
            raise DuplicateLabelException(kind, item.label)
        seen.add(key)


def validate_ctc_request(data: CTCCreate) -> None:
    """Raise ValidationException for the first violated CTC rule."""
    if data.basic <= 0:
        raise InvalidAmountException(data.basic, "basic", "Basic pay must be greater than 0")
    if data.hra < 0:
        raise InvalidAmountException(data.hra, "hra", "HRA cannot be negative")
    if data.hra > data.basic * settings.hra_max_ratio:
        raise ValidationException(
            f"HRA cannot exceed {settings.hra_max_ratio * 100:.0f}% of Basic",
            field="hra",
            code=ErrorCode.INVALID_AMOUNT,
        )
    if not Decimal("0") <= data.tax_percent <= Decimal("100"):
        raise ValidationException("Tax percent must be between 0 and 100", field="tax_percent")
    _check_line_items(data.allowances, "allowance")
    _check_line_items(data.deductions, "deduction")
    if data.effective_from is None:
        raise ValidationException("EffectiveFrom is required", field="effective_from")


def round_tax_percent(value: Decimal) -> Decimal:
    """Two decimals, half away from zero."""
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def build_ctc(
    profile_id: int,
    data: CTCCreate,
    actor_id: Optional[int],
) -> CTCStructure:
    """Build an unsaved Pending CTC from a validated request."""
    allowances_total = sum((a.amount for a in data.allowances), Decimal("0"))
    ctc = CTCStructure(
        employee_profile_id=profile_id,
        basic=data.basic,
        hra=data.hra,
        tax_percent=round_tax_percent(data.tax_percent),
        gross_ctc=data.basic + data.hra + allowances_total,
        effective_from=data.effective_from,
        effective_to=one_year_after(data.effective_from, settings.ctc_validity_years),
        created_by_user_id=actor_id,
        allowances=[
            CTCAllowance(label=a.label, amount=a.amount, sort_order=i)
            for i, a in enumerate(data.allowances)
        ],
        deductions=[
            CTCDeduction(label=d.label, amount=d.amount, sort_order=i)
            for i, d in enumerate(data.deductions)
        ],
    )
    ctc.set_status(ApprovalStatus.PENDING)
    return ctc


class CTCService:
    """Service for creating and reviewing CTC structures."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: Optional[WorkflowNotifier] = None,
        locks: Optional[EmployeeLockRegistry] = None,
    ):
        self.db = db
        self.validator = TemporalRangeValidator(db)
        self.notifier = notifier or WorkflowNotifier(db)
        self.locks = locks or employee_locks

    # ===========================================
    # LOOKUPS
    # ===========================================

    async def get_profile(self, employee_user_id: int) -> EmployeeProfile:
        """Employee profile with its user; EmployeeNotFoundException if absent."""
        result = await self.db.execute(
            select(EmployeeProfile)
            .options(selectinload(EmployeeProfile.user))
            .where(EmployeeProfile.user_id == employee_user_id)
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            raise EmployeeNotFoundException(employee_user_id)
        return profile

    async def lock_profile_row(self, profile_id: int) -> None:
        await self.db.execute(
            select(EmployeeProfile.id)
            .where(EmployeeProfile.id == profile_id)
            .with_for_update()
        )

    async def get_ctc(self, ctc_id: int) -> CTCStructure:
        """Get a CTC with fresh state; CTCNotFoundException if absent."""
        result = await self.db.execute(
            select(CTCStructure)
            .where(CTCStructure.id == ctc_id)
            .execution_options(populate_existing=True)
        )
        ctc = result.scalar_one_or_none()
        if ctc is None:
            raise CTCNotFoundException(ctc_id)
        return ctc

    async def list_ctcs(
        self,
        employee_user_id: Optional[int] = None,
        status: Optional[ApprovalStatus] = None,
    ) -> List[CTCStructure]:
        """List CTCs, newest effective date first."""
        query = select(CTCStructure)
        if employee_user_id is not None:
            profile = await self.get_profile(employee_user_id)
            query = query.where(CTCStructure.employee_profile_id == profile.id)
        if status is not None:
            query = query.where(CTCStructure.status == status)
        result = await self.db.execute(
            query.order_by(CTCStructure.effective_from.desc(), CTCStructure.id.desc())
        )
        return list(result.scalars().all())

    async def get_latest_approved(self, employee_user_id: int) -> CTCStructure:
        """Most recent approved CTC by effective date."""
        profile = await self.get_profile(employee_user_id)
        ctc = await self.latest_approved_for_profile(profile.id)
        if ctc is None:
            raise CTCNotFoundException(message="No approved CTC found")
        return ctc

    async def latest_approved_for_profile(self, profile_id: int) -> Optional[CTCStructure]:
        result = await self.db.execute(
            select(CTCStructure)
            .where(
                and_(
                    CTCStructure.employee_profile_id == profile_id,
                    CTCStructure.status == ApprovalStatus.APPROVED,
                )
            )
            .order_by(CTCStructure.effective_from.desc(), CTCStructure.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    # ===========================================
    # CREATE
    # ===========================================

    async def create_ctc(
        self,
        employee_user_id: int,
        data: CTCCreate,
        actor_id: int,
    ) -> CTCStructure:
        """Create a Pending CTC for an employee and ask HR managers to review it."""
        profile = await self.get_profile(employee_user_id)
        validate_ctc_request(data)

        ctc = build_ctc(profile.id, data, actor_id)
        self.db.add(ctc)
        await self.db.commit()

        ctc_id = ctc.id
        logger.info(
            f"CTC {ctc_id} created for employee {employee_user_id} "
            f"effective {data.effective_from} by user {actor_id}"
        )

        await self.notifier.ctc_created(
            ctc_id=ctc_id,
            employee_user_id=employee_user_id,
            employee_name=profile.user.full_name,
            effective_from=data.effective_from,
            actor_id=actor_id,
        )
        return await self.get_ctc(ctc_id)

    # ===========================================
    # TRANSITIONS
    # ===========================================

    async def _profile_id_of(self, ctc_id: int) -> int:
        result = await self.db.execute(
            select(CTCStructure.employee_profile_id).where(CTCStructure.id == ctc_id)
        )
        profile_id = result.scalar_one_or_none()
        if profile_id is None:
            raise CTCNotFoundException(ctc_id)
        return profile_id

    async def employee_user_id_for(self, profile_id: int) -> int:
        result = await self.db.execute(
            select(EmployeeProfile.user_id).where(EmployeeProfile.id == profile_id)
        )
        return result.scalar_one()

    async def approve_ctc(self, ctc_id: int, actor_id: int) -> CTCStructure:
        """
        Approve a CTC and reject every later-dated approved CTC of the employee.

        Raises:
            CTCNotFoundException: CTC does not exist
            ConflictException: already approved, or another approved CTC
                starts in the same year or overlaps the window
        """
        profile_id = await self._profile_id_of(ctc_id)

        async with self.locks.hold(profile_id):
            try:
                await self.lock_profile_row(profile_id)
                ctc = await self.get_ctc(ctc_id)

                if ctc.status == ApprovalStatus.APPROVED:
                    raise ConflictException(
                        "CTC is already approved",
                        resource_type="CTCStructure",
                        code=ErrorCode.ALREADY_PROCESSED,
                        details={"ctc_id": ctc_id},
                    )

                ctc.effective_to = one_year_after(ctc.effective_from, settings.ctc_validity_years)

                if await self.validator.has_year_conflict(
                    profile_id, ctc.effective_from.year, exclude_id=ctc.id,
                ):
                    raise ConflictException(
                        f"Employee already has an approved CTC in {ctc.effective_from.year}",
                        resource_type="CTCStructure",
                        code=ErrorCode.YEAR_CONFLICT,
                        details={"year": ctc.effective_from.year},
                    )

                # Later-dated approved CTCs are superseded below, not conflicts
                approved = await self.validator.approved_for(profile_id)
                rejected_ids = retroactive_rejections(approved, ctc)

                if await self.validator.has_overlap(
                    profile_id, ctc.effective_from, ctc.effective_to,
                    exclude_id=ctc.id, ignore_ids=rejected_ids,
                ):
                    raise ConflictException(
                        "CTC validity overlaps an approved CTC",
                        resource_type="CTCStructure",
                        code=ErrorCode.RANGE_OVERLAP,
                        details={
                            "effective_from": ctc.effective_from.isoformat(),
                            "effective_to": ctc.effective_to.isoformat(),
                        },
                    )

                ctc.set_status(ApprovalStatus.APPROVED)
                ctc.updated_by_id = actor_id

                for other in approved:
                    if other.id in rejected_ids:
                        other.set_status(ApprovalStatus.REJECTED)
                        other.updated_by_id = actor_id

                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        effective_from = ctc.effective_from
        creator_id = ctc.created_by_user_id
        logger.info(f"CTC {ctc_id} approved by user {actor_id}")
        if rejected_ids:
            logger.info(f"CTC {ctc_id} approval auto-rejected later CTCs {rejected_ids}")

        await self.notifier.ctc_approved(
            ctc_id=ctc_id,
            employee_user_id=await self.employee_user_id_for(profile_id),
            creator_id=creator_id,
            effective_from=effective_from,
            auto_rejected_ids=rejected_ids,
            actor_id=actor_id,
        )
        return await self.get_ctc(ctc_id)

    async def _assign_status(
        self,
        ctc_id: int,
        status: ApprovalStatus,
        actor_id: int,
    ) -> CTCStructure:
        profile_id = await self._profile_id_of(ctc_id)

        async with self.locks.hold(profile_id):
            try:
                await self.lock_profile_row(profile_id)
                ctc = await self.get_ctc(ctc_id)
                ctc.set_status(status)
                ctc.updated_by_id = actor_id
                creator_id = ctc.created_by_user_id
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        logger.info(f"CTC {ctc_id} set to {status.value} by user {actor_id}")

        await self.notifier.ctc_status_changed(
            ctc_id=ctc_id,
            status=status,
            employee_user_id=await self.employee_user_id_for(profile_id),
            creator_id=creator_id,
            actor_id=actor_id,
        )
        return await self.get_ctc(ctc_id)

    async def reject_ctc(self, ctc_id: int, actor_id: int) -> CTCStructure:
        """Reject a CTC. No cascade."""
        return await self._assign_status(ctc_id, ApprovalStatus.REJECTED, actor_id)

    async def set_pending(self, ctc_id: int, actor_id: int) -> CTCStructure:
        """Move a CTC back to Pending. No cascade."""
        return await self._assign_status(ctc_id, ApprovalStatus.PENDING, actor_id)

    async def set_ctc_status(
        self,
        ctc_id: int,
        status: ApprovalStatus,
        actor_id: int,
    ) -> CTCStructure:
        """Dispatch a status change to approve, reject or set_pending."""
        if status == ApprovalStatus.APPROVED:
            return await self.approve_ctc(ctc_id, actor_id)
        if status == ApprovalStatus.REJECTED:
            return await self.reject_ctc(ctc_id, actor_id)
        if status == ApprovalStatus.PENDING:
            return await self.set_pending(ctc_id, actor_id)
        raise ValidationException(f"Unsupported status: {status}", field="status", code=ErrorCode.INVALID_STATUS)

    async def approve_latest_pending(self, employee_user_id: int, actor_id: int) -> CTCStructure:
        """Approve the employee's most recent (by effective date) non-approved CTC."""
        profile = await self.get_profile(employee_user_id)
        result = await self.db.execute(
            select(CTCStructure.id)
            .where(
                and_(
                    CTCStructure.employee_profile_id == profile.id,
                    CTCStructure.status != ApprovalStatus.APPROVED,
                )
            )
            .order_by(CTCStructure.effective_from.desc(), CTCStructure.id.desc())
            .limit(1)
        )
        ctc_id = result.scalar_one_or_none()
        if ctc_id is None:
            raise CTCNotFoundException(message="No pending CTC found for this employee")
        return await self.approve_ctc(ctc_id, actor_id)
