"""
Payroll CTC Engine - Notification Schemas
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.models.notification import NotificationType


class NotificationResponse(BaseModel):
    """Schema for notification response."""
    id: int
    subject: str
    message: str
    notification_type: NotificationType
    is_read: bool
    read_at: Optional[datetime] = None
    email_sent: bool
    extra_data: Optional[dict] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    """One page of the current user's notifications."""
    items: List[NotificationResponse]
    page: int
    page_size: int
    total: int
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
    success: bool = True
