"""
Payroll CTC Engine - Notifications Router

The acting user's in-app notifications.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_actor_id
from app.schemas.notification import (
    MessageResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from app.services.notification_service import NotificationService


router = APIRouter()


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List notifications",
    description="Newest first, optionally unread only.",
)
async def list_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    unread_only: bool = Query(False),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    """List notifications for the current user."""
    service = NotificationService(db)

    notifications = await service.get_user_notifications(
        actor_id,
        unread_only=unread_only,
        limit=page_size,
        offset=(page - 1) * page_size,
    )

    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in notifications],
        page=page,
        page_size=page_size,
        total=await service.count_user_notifications(actor_id, unread_only=unread_only),
        unread_count=await service.get_unread_count(actor_id),
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Get unread notification count",
)
async def get_unread_count(
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = NotificationService(db)
    return UnreadCountResponse(unread_count=await service.get_unread_count(actor_id))


@router.post(
    "/read-all",
    response_model=MessageResponse,
    summary="Mark all notifications as read",
)
async def mark_all_as_read(
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = NotificationService(db)
    count = await service.mark_all_as_read(actor_id)
    return MessageResponse(message=f"Marked {count} notifications as read")


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark notification as read",
)
async def mark_as_read(
    notification_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    """Mark one of the current user's notifications as read."""
    service = NotificationService(db)
    notification = await service.mark_as_read(notification_id, actor_id)
    return NotificationResponse.model_validate(notification)
