"""
Payroll CTC Engine - Audit Trail Service

Append-only audit logging of workflow transitions.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog, AuditAction
from app.utils.error_handling import ErrorCode, ValidationException


class AuditService:
    """Service for writing and reading the audit trail."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_action(
        self,
        entity_type: str,
        entity_id: Optional[int],
        action: AuditAction,
        performed_by_id: Optional[int] = None,
        performed_by: Optional[str] = None,
        details: Optional[str] = None,
    ) -> AuditLog:
        """
        Log an audit action.

        Args:
            entity_type: Type of record (e.g., 'CTCStructure', 'Payslip')
            entity_id: ID of the affected record
            action: Type of action performed
            performed_by_id: ID of the acting user
            performed_by: Email of the acting user
            details: Free-text description

        Returns:
            Created AuditLog record (flushed, not committed)
        """
        audit_log = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            performed_by_id=performed_by_id,
            performed_by=performed_by,
            details=details,
        )
        self.db.add(audit_log)
        await self.db.flush()
        return audit_log

    async def get_entity_history(
        self,
        entity_type: str,
        entity_id: int,
    ) -> List[AuditLog]:
        """Get the audit trail of one record, oldest first."""
        result = await self.db.execute(
            select(AuditLog)
            .where(
                and_(
                    AuditLog.entity_type == entity_type,
                    AuditLog.entity_id == entity_id,
                )
            )
            .order_by(AuditLog.performed_at, AuditLog.id)
        )
        return list(result.scalars().all())

    async def get_audit_logs(
        self,
        start_date: date,
        end_date: date,
        entity_type: Optional[str] = None,
        action: Optional[AuditAction] = None,
    ) -> List[AuditLog]:
        """
        Get audit logs performed within a date range, newest first.

        Both dates are whole UTC days and inclusive.

        Raises:
            ValidationException: start_date is after end_date
        """
        if start_date > end_date:
            raise ValidationException(
                "Start date must not be after end date",
                field="from",
                code=ErrorCode.INVALID_PERIOD,
            )

        start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
        end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
        conditions = [AuditLog.performed_at >= start, AuditLog.performed_at < end]
        if entity_type:
            conditions.append(AuditLog.entity_type == entity_type)
        if action:
            conditions.append(AuditLog.action == action)

        result = await self.db.execute(
            select(AuditLog)
            .where(and_(*conditions))
            .order_by(AuditLog.performed_at.desc(), AuditLog.id.desc())
        )
        return list(result.scalars().all())
