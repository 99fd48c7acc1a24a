"""
Payroll CTC Engine - Audit Log Model

Append-only audit log of workflow transitions.
This table should have no UPDATE or DELETE permissions.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.base import utc_now


class AuditAction(str, enum.Enum):
    """Audit action types."""
    CREATED = "created"
    APPROVED = "approved"
    REJECTED = "rejected"
    STATUS_CHANGED = "status_changed"
    AUTO_REJECT = "auto_reject"
    RELEASED = "released"


class AuditLog(Base):
    """Immutable audit entry for one action on one record."""

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    entity_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    action: Mapped[AuditAction] = mapped_column(Enum(AuditAction), nullable=False, index=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    performed_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,  # System actions may not have a user
        index=True,
    )
    performed_by: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True,
        comment="Actor email at the time of the action",
    )
    performed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, {self.entity_type}#{self.entity_id}, action={self.action})>"
