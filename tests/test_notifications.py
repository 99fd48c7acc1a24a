"""
Payroll CTC Engine - Notification Tests

Tests for reading and acknowledging in-app notifications.
"""

import pytest

from app.dependencies import ACTOR_HEADER
from app.models.notification import NotificationType
from app.services.notification_service import NotificationService
from app.utils.error_handling import NotificationNotFoundException


def actor(person):
    return {ACTOR_HEADER: str(person.user_id)}


async def notify(db_session, person, count, subject="Payslip Released") -> list:
    service = NotificationService(db_session)
    ids = []
    for i in range(count):
        notification = await service.create_notification(
            person.user_id,
            f"{subject} {i + 1}",
            "Your payslip is available",
            NotificationType.PAYSLIP_RELEASED,
        )
        ids.append(notification.id)
    return ids


class TestNotificationService:
    """Test cases for NotificationService reads and acknowledgements."""

    @pytest.mark.asyncio
    async def test_newest_first_with_pagination(self, db_session, employee):
        ids = await notify(db_session, employee, 5)
        service = NotificationService(db_session)

        page = await service.get_user_notifications(employee.user_id, limit=2, offset=2)

        assert [n.id for n in page] == [ids[2], ids[1]]
        assert await service.count_user_notifications(employee.user_id) == 5

    @pytest.mark.asyncio
    async def test_mark_as_read(self, db_session, employee):
        first, second = await notify(db_session, employee, 2)
        service = NotificationService(db_session)

        notification = await service.mark_as_read(first, employee.user_id)

        assert notification.is_read is True
        assert notification.read_at is not None
        assert await service.get_unread_count(employee.user_id) == 1
        unread = await service.get_user_notifications(employee.user_id, unread_only=True)
        assert [n.id for n in unread] == [second]

    @pytest.mark.asyncio
    async def test_cannot_read_another_users_notification(self, db_session, employee, second_employee):
        (notification_id,) = await notify(db_session, employee, 1)
        service = NotificationService(db_session)

        with pytest.raises(NotificationNotFoundException):
            await service.mark_as_read(notification_id, second_employee.user_id)

        assert await service.get_unread_count(employee.user_id) == 1

    @pytest.mark.asyncio
    async def test_mark_all_as_read(self, db_session, employee, second_employee):
        ids = await notify(db_session, employee, 3)
        await notify(db_session, second_employee, 2)
        service = NotificationService(db_session)
        await service.mark_as_read(ids[0], employee.user_id)

        count = await service.mark_all_as_read(employee.user_id)

        assert count == 2
        assert await service.get_unread_count(employee.user_id) == 0
        assert await service.get_unread_count(second_employee.user_id) == 2
        notifications = await service.get_user_notifications(employee.user_id)
        assert all(n.is_read and n.read_at is not None for n in notifications)


class TestNotificationEndpoints:
    """Test cases for the notifications API."""

    @pytest.mark.asyncio
    async def test_list_notifications(self, client, db_session, employee, second_employee):
        ids = await notify(db_session, employee, 3)
        await notify(db_session, second_employee, 1)

        response = await client.get(
            "/api/v1/notifications",
            params={"page": 1, "page_size": 2},
            headers=actor(employee),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["unread_count"] == 3
        assert data["page_size"] == 2
        assert [n["id"] for n in data["items"]] == [ids[2], ids[1]]
        assert data["items"][0]["notification_type"] == "payslip_released"

    @pytest.mark.asyncio
    async def test_read_one_and_count(self, client, db_session, employee):
        first, _ = await notify(db_session, employee, 2)

        response = await client.post(f"/api/v1/notifications/{first}/read", headers=actor(employee))

        assert response.status_code == 200
        assert response.json()["is_read"] is True

        response = await client.get("/api/v1/notifications/unread-count", headers=actor(employee))
        assert response.json() == {"unread_count": 1}

    @pytest.mark.asyncio
    async def test_read_other_users_notification(self, client, db_session, employee, second_employee):
        (notification_id,) = await notify(db_session, employee, 1)

        response = await client.post(
            f"/api/v1/notifications/{notification_id}/read",
            headers=actor(second_employee),
        )

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOTIFICATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_read_all(self, client, db_session, employee):
        await notify(db_session, employee, 3)

        response = await client.post("/api/v1/notifications/read-all", headers=actor(employee))

        assert response.status_code == 200
        assert response.json()["message"] == "Marked 3 notifications as read"

        response = await client.get(
            "/api/v1/notifications",
            params={"unread_only": True},
            headers=actor(employee),
        )
        assert response.json()["total"] == 0
        assert response.json()["items"] == []

    @pytest.mark.asyncio
    async def test_requires_actor(self, client):
        response = await client.get("/api/v1/notifications")

        assert response.status_code == 401
