"""
Payroll CTC Engine - Notification Model

In-app notifications raised by the payroll workflow.

Notification Types:
- CTC submitted for review
- CTC approved / rejected / auto-rejected
- Payslip created, approved, released
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel, utc_now


class NotificationType(str, Enum):
    """Types of notifications."""
    # CTC
    CTC_SUBMITTED = "ctc_submitted"
    CTC_APPROVED = "ctc_approved"
    CTC_REJECTED = "ctc_rejected"
    CTC_AUTO_REJECTED = "ctc_auto_rejected"

    # Payslip
    PAYSLIP_CREATED = "payslip_created"
    PAYSLIP_STATUS = "payslip_status"
    PAYSLIP_RELEASED = "payslip_released"

    # General
    INFO = "info"


class Notification(BaseModel):
    """
    Notification for one recipient user.

    Rows are written after the workflow transition they describe has been
    committed; a failed notification never undoes the transition.
    """

    __tablename__ = "notifications"

    # Recipient
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    notification_type: Mapped[NotificationType] = mapped_column(
        SQLEnum(NotificationType),
        default=NotificationType.INFO,
        nullable=False,
        index=True,
    )

    # Status tracking
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Email delivery status
    email_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    extra_data: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Ids of the records the notification refers to",
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.notification_type}, user={self.user_id})>"

    def mark_as_read(self) -> None:
        """Mark notification as read."""
        if not self.is_read:
            self.is_read = True
            self.read_at = utc_now()

    def mark_email_sent(self) -> None:
        """Mark email as sent."""
        if not self.email_sent:
            self.email_sent = True
            self.email_sent_at = utc_now()
