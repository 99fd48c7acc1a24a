"""
Payroll CTC Engine - Audit Trail Tests

Tests for listing the audit trail by date range and by record.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.dependencies import ACTOR_HEADER
from app.models.audit import AuditAction, AuditLog
from app.services.audit_service import AuditService
from app.services.ctc_service import CTCService
from app.utils.error_handling import ErrorCode, ValidationException


def actor(person):
    return {ACTOR_HEADER: str(person.user_id)}


async def approved_ctc(db_session, hr_user, hr_manager, employee, ctc_request) -> int:
    service = CTCService(db_session)
    ctc = await service.create_ctc(employee.user_id, ctc_request(), hr_user.user_id)
    ctc_id = ctc.id
    await service.approve_ctc(ctc_id, hr_manager.user_id)
    return ctc_id


async def old_entry(db_session, days_ago) -> int:
    log = AuditLog(
        entity_type="Payslip",
        entity_id=1,
        action=AuditAction.RELEASED,
        performed_at=datetime.now(timezone.utc) - timedelta(days=days_ago),
    )
    db_session.add(log)
    await db_session.flush()
    log_id = log.id
    await db_session.commit()
    return log_id


class TestAuditService:
    """Test cases for AuditService.get_audit_logs."""

    @pytest.mark.asyncio
    async def test_range_is_inclusive_and_newest_first(
        self, db_session, hr_user, hr_manager, employee, ctc_request,
    ):
        ctc_id = await approved_ctc(db_session, hr_user, hr_manager, employee, ctc_request)
        await old_entry(db_session, days_ago=30)
        today = datetime.now(timezone.utc).date()

        logs = await AuditService(db_session).get_audit_logs(today, today)

        assert [(log.entity_type, log.entity_id, log.action) for log in logs] == [
            ("CTCStructure", ctc_id, AuditAction.APPROVED),
            ("CTCStructure", ctc_id, AuditAction.CREATED),
        ]

    @pytest.mark.asyncio
    async def test_older_entries_in_wider_range(self, db_session):
        log_id = await old_entry(db_session, days_ago=3)
        today = datetime.now(timezone.utc).date()
        service = AuditService(db_session)

        assert [log.id for log in await service.get_audit_logs(today - timedelta(days=5), today)] == [log_id]
        assert await service.get_audit_logs(today - timedelta(days=1), today) == []

    @pytest.mark.asyncio
    async def test_filters(self, db_session, hr_user, hr_manager, employee, ctc_request):
        await approved_ctc(db_session, hr_user, hr_manager, employee, ctc_request)
        await old_entry(db_session, days_ago=0)
        today = datetime.now(timezone.utc).date()
        service = AuditService(db_session)

        payslip_logs = await service.get_audit_logs(today, today, entity_type="Payslip")
        approvals = await service.get_audit_logs(today, today, action=AuditAction.APPROVED)

        assert [log.action for log in payslip_logs] == [AuditAction.RELEASED]
        assert [log.entity_type for log in approvals] == ["CTCStructure"]

    @pytest.mark.asyncio
    async def test_start_after_end(self, db_session):
        today = datetime.now(timezone.utc).date()

        with pytest.raises(ValidationException) as exc_info:
            await AuditService(db_session).get_audit_logs(today, today - timedelta(days=1))

        assert exc_info.value.code == ErrorCode.INVALID_PERIOD


class TestAuditEndpoints:
    """Test cases for the audit trail API."""

    @pytest.mark.asyncio
    async def test_list_audit_logs(
        self, client, db_session, hr_user, hr_manager, employee, ctc_request,
    ):
        ctc_id = await approved_ctc(db_session, hr_user, hr_manager, employee, ctc_request)
        today = datetime.now(timezone.utc).date()

        response = await client.get(
            "/api/v1/audit",
            params={
                "from": (today - timedelta(days=1)).isoformat(),
                "to": (today + timedelta(days=1)).isoformat(),
                "action": "approved",
            },
            headers=actor(hr_manager),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["entity_id"] == ctc_id
        assert data["items"][0]["performed_by_id"] == hr_manager.user_id

    @pytest.mark.asyncio
    async def test_reversed_range(self, client, hr_manager):
        response = await client.get(
            "/api/v1/audit",
            params={"from": "2025-02-01", "to": "2025-01-01"},
            headers=actor(hr_manager),
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_PERIOD"

    @pytest.mark.asyncio
    async def test_range_is_required(self, client, hr_manager):
        response = await client.get("/api/v1/audit", headers=actor(hr_manager))

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_entity_history(
        self, client, db_session, hr_user, hr_manager, employee, ctc_request,
    ):
        ctc_id = await approved_ctc(db_session, hr_user, hr_manager, employee, ctc_request)

        response = await client.get(f"/api/v1/audit/CTCStructure/{ctc_id}", headers=actor(hr_manager))

        assert response.status_code == 200
        assert [item["action"] for item in response.json()["items"]] == ["created", "approved"]
