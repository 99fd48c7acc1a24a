"""
Payroll CTC Engine - Workflow Notifier

Fans a committed workflow transition out to the audit trail, in-app
notifications and email. Each step runs and commits on its own; a failing
step is logged, its partial writes are rolled back, and the remaining
steps still run. The transition itself has already been committed by the
caller and is never undone here.
"""

import logging
from datetime import date
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.audit import AuditAction
from app.models.notification import NotificationType
from app.models.payroll import ApprovalStatus
from app.models.user import User
from app.services.audit_service import AuditService
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

CTC_ENTITY = "CTCStructure"
PAYSLIP_ENTITY = "Payslip"

AuditEntry = Tuple[str, Optional[int], AuditAction, str]


class WorkflowNotifier:
    """Post-commit side effects of CTC and payslip transitions."""

    def __init__(
        self,
        db: AsyncSession,
        audit_service: Optional[AuditService] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        self.db = db
        self.audit = audit_service or AuditService(db)
        self.notifications = notification_service or NotificationService(db)

    # ===========================================
    # DISPATCH
    # ===========================================

    async def _dispatch(self, label: str, step: Callable[[], Awaitable[object]]) -> bool:
        try:
            await step()
            await self.db.commit()
            return True
        except Exception as e:
            logger.error(f"Side effect '{label}' failed: {e}", exc_info=True)
            await self.db.rollback()
            return False

    async def _write_audit(self, actor_id: Optional[int], entries: Sequence[AuditEntry]) -> bool:
        async def step():
            actor = await self.db.get(User, actor_id) if actor_id is not None else None
            actor_email = actor.email if actor else None
            for entity_type, entity_id, action, details in entries:
                await self.audit.log_action(
                    entity_type=entity_type,
                    entity_id=entity_id,
                    action=action,
                    performed_by_id=actor_id,
                    performed_by=actor_email,
                    details=details,
                )

        return await self._dispatch("audit", step)

    async def _notify_users(
        self,
        user_ids: Iterable[Optional[int]],
        subject: str,
        message: str,
        notification_type: NotificationType,
        extra_data: Optional[dict] = None,
        send_email: bool = True,
    ) -> int:
        """Notify each distinct user; returns how many notifications were stored."""
        delivered = 0
        seen = set()
        for user_id in user_ids:
            if user_id is None or user_id in seen:
                continue
            seen.add(user_id)

            async def step(user_id=user_id):
                user = await self.db.get(User, user_id)
                if user is None:
                    logger.warning(f"Notification recipient {user_id} no longer exists")
                    return
                await self.notifications.create_notification(
                    user_id=user.id,
                    subject=subject,
                    message=message,
                    notification_type=notification_type,
                    extra_data=extra_data,
                    send_email=send_email and settings.notify_by_email,
                    email_address=user.email,
                    recipient_name=user.full_name,
                )

            if await self._dispatch(f"notify user {user_id}", step):
                delivered += 1
        return delivered

    async def _notify_hr_managers(
        self,
        subject: str,
        message: str,
        notification_type: NotificationType,
        extra_data: Optional[dict] = None,
    ) -> int:
        manager_ids: List[int] = []

        async def load():
            managers = await self.notifications.get_hr_managers()
            manager_ids.extend(m.id for m in managers)

        if not await self._dispatch("load hr managers", load):
            return 0
        if not manager_ids:
            logger.warning(f"No HR managers to notify: {subject}")
            return 0
        return await self._notify_users(manager_ids, subject, message, notification_type, extra_data)

    # ===========================================
    # CTC EVENTS
    # ===========================================

    async def ctc_created(
        self,
        ctc_id: int,
        employee_user_id: int,
        employee_name: str,
        effective_from: date,
        actor_id: int,
    ) -> None:
        await self._write_audit(actor_id, [
            (CTC_ENTITY, ctc_id, AuditAction.CREATED,
             f"CTC created for {employee_name} effective {effective_from.isoformat()}"),
        ])
        await self._notify_hr_managers(
            "CTC Requires Approval",
            f"A new CTC has been created for {employee_name} and is awaiting your approval.",
            NotificationType.CTC_SUBMITTED,
            {"ctc_id": ctc_id, "employee_user_id": employee_user_id},
        )

    async def ctc_batch_created(
        self,
        created: Sequence[Tuple[int, str]],
        actor_id: int,
    ) -> None:
        """``created`` holds (ctc_id, employee_name) per staged CTC."""
        if not created:
            return
        await self._write_audit(actor_id, [
            (CTC_ENTITY, ctc_id, AuditAction.CREATED, f"CTC created in batch for {name}")
            for ctc_id, name in created
        ])
        await self._notify_hr_managers(
            "CTC Batch Requires Approval",
            f"{len(created)} new CTC records have been created and are awaiting your approval.",
            NotificationType.CTC_SUBMITTED,
            {"ctc_ids": [ctc_id for ctc_id, _ in created]},
        )

    async def ctc_approved(
        self,
        ctc_id: int,
        employee_user_id: int,
        creator_id: Optional[int],
        effective_from: date,
        auto_rejected_ids: Sequence[int],
        actor_id: int,
    ) -> None:
        entries: List[AuditEntry] = [
            (CTC_ENTITY, ctc_id, AuditAction.APPROVED,
             f"CTC effective {effective_from.isoformat()} approved"),
        ]
        entries.extend(
            (CTC_ENTITY, rejected_id, AuditAction.AUTO_REJECT,
             f"Auto-rejected: CTC {ctc_id} with an earlier effective date was approved")
            for rejected_id in auto_rejected_ids
        )
        await self._write_audit(actor_id, entries)
        await self._notify_users(
            [employee_user_id, creator_id],
            "CTC Approved",
            f"The CTC effective {effective_from.isoformat()} has been approved.",
            NotificationType.CTC_APPROVED,
            {"ctc_id": ctc_id, "auto_rejected_ids": list(auto_rejected_ids)},
        )
        if auto_rejected_ids:
            await self._notify_users(
                [employee_user_id],
                "CTC Superseded",
                f"{len(auto_rejected_ids)} later CTC record(s) were rejected because an "
                f"earlier-dated CTC was approved.",
                NotificationType.CTC_AUTO_REJECTED,
                {"ctc_ids": list(auto_rejected_ids)},
                send_email=False,
            )

    async def ctc_status_changed(
        self,
        ctc_id: int,
        status: ApprovalStatus,
        employee_user_id: int,
        creator_id: Optional[int],
        actor_id: int,
    ) -> None:
        action = AuditAction.REJECTED if status == ApprovalStatus.REJECTED else AuditAction.STATUS_CHANGED
        await self._write_audit(actor_id, [
            (CTC_ENTITY, ctc_id, action, f"CTC status set to {status.value}"),
        ])
        if status == ApprovalStatus.REJECTED:
            await self._notify_users(
                [employee_user_id, creator_id],
                "CTC Rejected",
                "A CTC record has been rejected by the HR manager.",
                NotificationType.CTC_REJECTED,
                {"ctc_id": ctc_id},
            )

    # ===========================================
    # PAYSLIP EVENTS
    # ===========================================

    async def payslip_created(
        self,
        payslip_id: int,
        employee_name: str,
        period: str,
        actor_id: int,
    ) -> None:
        await self._write_audit(actor_id, [
            (PAYSLIP_ENTITY, payslip_id, AuditAction.CREATED,
             f"Payslip for {period} created for {employee_name}"),
        ])
        await self._notify_hr_managers(
            "Payslip Requires Approval",
            f"A payslip for {period} has been generated for {employee_name} and is awaiting your approval.",
            NotificationType.PAYSLIP_CREATED,
            {"payslip_id": payslip_id},
        )

    async def payslip_status_changed(
        self,
        payslip_id: int,
        status: ApprovalStatus,
        period: str,
        creator_id: Optional[int],
        actor_id: int,
    ) -> None:
        action = {
            ApprovalStatus.APPROVED: AuditAction.APPROVED,
            ApprovalStatus.REJECTED: AuditAction.REJECTED,
        }.get(status, AuditAction.STATUS_CHANGED)
        await self._write_audit(actor_id, [
            (PAYSLIP_ENTITY, payslip_id, action, f"Payslip for {period} set to {status.value}"),
        ])
        await self._notify_users(
            [creator_id],
            f"Payslip {status.value.title()}",
            f"The payslip for {period} is now {status.value}.",
            NotificationType.PAYSLIP_STATUS,
            {"payslip_id": payslip_id},
            send_email=False,
        )

    async def payslip_released(
        self,
        payslip_id: int,
        employee_user_id: int,
        period: str,
        auto_rejected_ids: Sequence[int],
        actor_id: int,
    ) -> None:
        entries: List[AuditEntry] = [
            (PAYSLIP_ENTITY, rejected_id, AuditAction.AUTO_REJECT,
             f"Auto-rejected: payslip {payslip_id} was released for {period}")
            for rejected_id in auto_rejected_ids
        ]
        entries.append((PAYSLIP_ENTITY, payslip_id, AuditAction.RELEASED, f"Payslip for {period} released"))
        await self._write_audit(actor_id, entries)
        await self._notify_users(
            [employee_user_id],
            "Payslip Released",
            f"Your payslip for {period} has been released.",
            NotificationType.PAYSLIP_RELEASED,
            {"payslip_id": payslip_id},
        )
