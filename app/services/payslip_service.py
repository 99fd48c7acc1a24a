"""
Payroll CTC Engine - Payslip Service

Lifecycle of monthly payslips.

Transitions:
- create: computed from the latest approved CTC, stored Pending with
  snapshot line items
- approve / reject: direct status assignment, refused for a released
  payslip; approval is also refused once another payslip of the same
  (employee, year, month) period has been released
- release: Approved -> Released (terminal); every other approved payslip
  of the period is rejected in the same transaction

At most one payslip per period is ever released.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utc_now
from app.models.payroll import (
    ApprovalStatus, Payslip, PayslipAllowance, PayslipDeduction,
)
from app.schemas.payslip import PayslipCreate
from app.services.ctc_service import CTCService
from app.services.locks import EmployeeLockRegistry, employee_locks
from app.services.payslip_calculator import PayslipCalculator
from app.services.status_rules import release_rejections, released_in_period
from app.services.workflow_notifier import WorkflowNotifier
from app.utils.error_handling import (
    ConflictException,
    ErrorCode,
    PayslipNotFoundException,
    PreconditionException,
    ValidationException,
)

logger = logging.getLogger(__name__)


class PayslipService:
    """Service for generating, reviewing and releasing payslips."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: Optional[WorkflowNotifier] = None,
        locks: Optional[EmployeeLockRegistry] = None,
        calculator: Optional[PayslipCalculator] = None,
    ):
        self.db = db
        self.notifier = notifier or WorkflowNotifier(db)
        self.locks = locks or employee_locks
        self.calculator = calculator or PayslipCalculator()
        self.ctc_service = CTCService(db, notifier=self.notifier, locks=self.locks)

    # ===========================================
    # LOOKUPS
    # ===========================================

    async def get_payslip(self, payslip_id: int) -> Payslip:
        """Get a payslip with fresh state; PayslipNotFoundException if absent."""
        result = await self.db.execute(
            select(Payslip)
            .where(Payslip.id == payslip_id)
            .execution_options(populate_existing=True)
        )
        payslip = result.scalar_one_or_none()
        if payslip is None:
            raise PayslipNotFoundException(payslip_id)
        return payslip

    async def list_payslips(
        self,
        employee_user_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> List[Payslip]:
        """List payslips, newest period first."""
        query = select(Payslip)
        if employee_user_id is not None:
            profile = await self.ctc_service.get_profile(employee_user_id)
            query = query.where(Payslip.employee_profile_id == profile.id)
        if year is not None:
            query = query.where(Payslip.year == year)
        if month is not None:
            query = query.where(Payslip.month == month)
        result = await self.db.execute(
            query.order_by(Payslip.year.desc(), Payslip.month.desc(), Payslip.id.desc())
        )
        return list(result.scalars().all())

    async def _period_payslips(self, payslip: Payslip) -> List[Payslip]:
        """All payslips of the same employee and period, including ``payslip``."""
        result = await self.db.execute(
            select(Payslip)
            .where(
                and_(
                    Payslip.employee_profile_id == payslip.employee_profile_id,
                    Payslip.year == payslip.year,
                    Payslip.month == payslip.month,
                )
            )
            .order_by(Payslip.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _profile_id_of(self, payslip_id: int) -> int:
        result = await self.db.execute(
            select(Payslip.employee_profile_id).where(Payslip.id == payslip_id)
        )
        profile_id = result.scalar_one_or_none()
        if profile_id is None:
            raise PayslipNotFoundException(payslip_id)
        return profile_id

    # ===========================================
    # CREATE
    # ===========================================

    async def create_payslip(self, data: PayslipCreate, actor_id: int) -> Payslip:
        """
        Compute and store a Pending payslip.

        Raises:
            EmployeeNotFoundException: employee has no profile
            PreconditionException: employee has no approved CTC
            ValidationException: period or LOP days out of range
        """
        profile = await self.ctc_service.get_profile(data.employee_user_id)
        employee_name = profile.user.full_name

        ctc = await self.ctc_service.latest_approved_for_profile(profile.id)
        if ctc is None:
            raise PreconditionException(
                "No approved CTC found",
                details={"employee_user_id": data.employee_user_id},
            )

        computation = self.calculator.compute(
            ctc,
            year=data.year,
            month=data.month,
            lop_days=data.lop_days,
            override_allowance_total=data.override_allowance_total,
            override_deduction_total=data.override_deduction_total,
        )

        payslip = Payslip(
            employee_profile_id=profile.id,
            ctc_structure_id=ctc.id,
            year=computation.year,
            month=computation.month,
            status=computation.status,
            is_released=computation.is_released,
            basic=computation.basic,
            hra=computation.hra,
            gross_pay=computation.gross_pay,
            total_allowances=computation.total_allowances,
            total_deductions=computation.total_deductions,
            tax_deducted=computation.tax_deducted,
            lop_days=computation.lop_days,
            lop_deduction=computation.lop_deduction,
            net_pay=computation.net_pay,
            created_by_user_id=actor_id,
            allowance_items=[
                PayslipAllowance(label=item.label, amount=item.amount, sort_order=i)
                for i, item in enumerate(computation.allowance_items)
            ],
            deduction_items=[
                PayslipDeduction(label=item.label, amount=item.amount, sort_order=i)
                for i, item in enumerate(computation.deduction_items)
            ],
        )
        self.db.add(payslip)
        await self.db.commit()

        payslip_id = payslip.id
        period = payslip.period_label
        logger.info(
            f"Payslip {payslip_id} for {period} created for employee "
            f"{data.employee_user_id} from CTC {ctc.id}, net {computation.net_pay}"
        )

        await self.notifier.payslip_created(
            payslip_id=payslip_id,
            employee_name=employee_name,
            period=period,
            actor_id=actor_id,
        )
        return await self.get_payslip(payslip_id)

    # ===========================================
    # TRANSITIONS
    # ===========================================

    def _ensure_not_released(self, payslip: Payslip) -> None:
        if payslip.is_released:
            raise ConflictException(
                "Payslip is already released",
                resource_type="Payslip",
                code=ErrorCode.ALREADY_RELEASED,
                details={"payslip_id": payslip.id},
            )

    def _ensure_no_other_release(self, period_payslips: List[Payslip], payslip: Payslip) -> None:
        released = released_in_period(period_payslips, exclude_id=payslip.id)
        if not released:
            return
        raise ConflictException(
            f"A payslip for {payslip.period_label} has already been released",
            resource_type="Payslip",
            code=ErrorCode.ALREADY_RELEASED,
            details={"released_payslip_id": released[0].id},
        )

    async def set_payslip_status(
        self,
        payslip_id: int,
        status: ApprovalStatus,
        actor_id: int,
    ) -> Payslip:
        """
        Assign a review status without release side effects.

        Released payslips are terminal. Approval is also refused while
        another payslip of the period is released; rejecting or resetting
        an unreleased sibling is allowed.
        """
        profile_id = await self._profile_id_of(payslip_id)

        async with self.locks.hold(profile_id):
            try:
                await self.ctc_service.lock_profile_row(profile_id)
                payslip = await self.get_payslip(payslip_id)
                self._ensure_not_released(payslip)
                if status == ApprovalStatus.APPROVED:
                    self._ensure_no_other_release(await self._period_payslips(payslip), payslip)

                payslip.status = status
                payslip.updated_by_id = actor_id
                period = payslip.period_label
                creator_id = payslip.created_by_user_id
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        logger.info(f"Payslip {payslip_id} set to {status.value} by user {actor_id}")

        await self.notifier.payslip_status_changed(
            payslip_id=payslip_id,
            status=status,
            period=period,
            creator_id=creator_id,
            actor_id=actor_id,
        )
        return await self.get_payslip(payslip_id)

    async def approve_payslip(self, payslip_id: int, actor_id: int) -> Payslip:
        """Approve a payslip unless its period already has a released payslip."""
        return await self.set_payslip_status(payslip_id, ApprovalStatus.APPROVED, actor_id)

    async def reject_payslip(self, payslip_id: int, actor_id: int) -> Payslip:
        return await self.set_payslip_status(payslip_id, ApprovalStatus.REJECTED, actor_id)

    async def release_payslip(self, payslip_id: int, actor_id: int) -> Payslip:
        """
        Release an approved payslip and reject its approved siblings.

        Raises:
            PayslipNotFoundException: payslip does not exist
            ConflictException: this or another payslip of the period is
                already released
            ValidationException: payslip is not approved
        """
        profile_id = await self._profile_id_of(payslip_id)

        async with self.locks.hold(profile_id):
            try:
                await self.ctc_service.lock_profile_row(profile_id)
                payslip = await self.get_payslip(payslip_id)
                period_payslips = await self._period_payslips(payslip)
                self._ensure_not_released(payslip)
                self._ensure_no_other_release(period_payslips, payslip)

                if payslip.status != ApprovalStatus.APPROVED:
                    raise ValidationException(
                        "Only approved payslips can be released",
                        field="status",
                        code=ErrorCode.INVALID_STATUS,
                        details={"status": payslip.status.value},
                    )

                payslip.is_released = True
                payslip.released_at = utc_now()
                payslip.updated_by_id = actor_id

                rejected_ids = release_rejections(period_payslips, payslip)
                for sibling in period_payslips:
                    if sibling.id in rejected_ids:
                        sibling.status = ApprovalStatus.REJECTED
                        sibling.updated_by_id = actor_id

                period = payslip.period_label
                employee_profile_id = payslip.employee_profile_id
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        logger.info(f"Payslip {payslip_id} for {period} released by user {actor_id}")
        if rejected_ids:
            logger.info(f"Release of payslip {payslip_id} auto-rejected siblings {rejected_ids}")

        await self.notifier.payslip_released(
            payslip_id=payslip_id,
            employee_user_id=await self.ctc_service.employee_user_id_for(employee_profile_id),
            period=period,
            auto_rejected_ids=rejected_ids,
            actor_id=actor_id,
        )
        return await self.get_payslip(payslip_id)
