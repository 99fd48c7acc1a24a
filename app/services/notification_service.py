"""
Payroll CTC Engine - Notification Service

Handles in-app notifications and their email copies.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, and_, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utc_now
from app.models.notification import Notification, NotificationType
from app.models.user import User, UserRole
from app.services.email_service import EmailService
from app.utils.error_handling import NotificationNotFoundException

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for managing notifications."""

    def __init__(self, db: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db
        self.email_service = email_service or EmailService()

    async def create_notification(
        self,
        user_id: int,
        subject: str,
        message: str,
        notification_type: NotificationType = NotificationType.INFO,
        extra_data: Optional[Dict[str, Any]] = None,
        send_email: bool = False,
        email_address: Optional[str] = None,
        recipient_name: Optional[str] = None,
    ) -> Notification:
        """
        Create a new notification for a user.

        Args:
            user_id: The user to notify
            subject: Notification subject
            message: Notification message
            notification_type: Type of notification
            extra_data: Ids of related records
            send_email: Whether to also send an email
            email_address: Email address for email notification
            recipient_name: Greeting name used in the email
        """
        notification = Notification(
            user_id=user_id,
            subject=subject,
            message=message,
            notification_type=notification_type,
            extra_data=extra_data,
            is_read=False,
            email_sent=False,
        )

        self.db.add(notification)
        await self.db.flush()

        logger.info(f"Notification created for user {user_id}: {subject}")

        if send_email and email_address:
            email_sent = await self.email_service.send_workflow_email(
                to_email=email_address,
                recipient_name=recipient_name or email_address,
                subject=subject,
                message=message,
            )
            if email_sent:
                notification.mark_email_sent()
                await self.db.flush()
            else:
                logger.warning(f"Email copy of notification {notification.id} was not delivered")

        await self.db.commit()
        return notification

    async def get_hr_managers(self) -> List[User]:
        """Active users that review CTCs and payslips."""
        result = await self.db.execute(
            select(User).where(
                and_(
                    User.role == UserRole.HR_MANAGER,
                    User.is_active.is_(True),
                )
            ).order_by(User.id)
        )
        return list(result.scalars().all())

    def _user_query(self, user_id: int, unread_only: bool):
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        return query

    async def get_user_notifications(
        self,
        user_id: int,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Notification]:
        """Get notifications for a user, newest first."""
        query = self._user_query(user_id, unread_only).order_by(Notification.id.desc())
        if limit is not None:
            query = query.offset(offset).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_user_notifications(self, user_id: int, unread_only: bool = False) -> int:
        query = self._user_query(user_id, unread_only).with_only_columns(func.count(Notification.id))
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def get_unread_count(self, user_id: int) -> int:
        """Get count of unread notifications for a user."""
        return await self.count_user_notifications(user_id, unread_only=True)

    async def mark_as_read(self, notification_id: int, user_id: int) -> Notification:
        """
        Mark one of the user's notifications as read.

        Raises:
            NotificationNotFoundException: no such notification for this user
        """
        result = await self.db.execute(
            select(Notification).where(
                and_(
                    Notification.id == notification_id,
                    Notification.user_id == user_id,
                )
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotificationNotFoundException(notification_id)

        notification.mark_as_read()
        await self.db.commit()

        logger.info(f"Notification {notification_id} marked as read")
        return notification

    async def mark_all_as_read(self, user_id: int) -> int:
        """Mark all unread notifications of a user as read; returns how many changed."""
        result = await self.db.execute(
            update(Notification)
            .where(
                and_(
                    Notification.user_id == user_id,
                    Notification.is_read.is_(False),
                )
            )
            .values(is_read=True, read_at=utc_now())
        )
        await self.db.commit()

        count = result.rowcount
        logger.info(f"Marked {count} notifications as read for user {user_id}")
        return count
