"""
Payroll CTC Engine - Audit Trail Router

API endpoints for reading the audit trail.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_actor_id
from app.models.audit import AuditAction
from app.schemas.audit import AuditLogListResponse, AuditLogResponse
from app.services.audit_service import AuditService


router = APIRouter()


@router.get(
    "",
    response_model=AuditLogListResponse,
    summary="List audit logs",
    description="Audit logs performed between two dates (inclusive), newest first.",
)
async def get_audit_logs(
    start_date: date = Query(..., alias="from"),
    end_date: date = Query(..., alias="to"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type"),
    action: Optional[AuditAction] = Query(None, description="Filter by action type"),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = AuditService(db)
    logs = await service.get_audit_logs(start_date, end_date, entity_type=entity_type, action=action)
    return AuditLogListResponse(
        total=len(logs),
        items=[AuditLogResponse.model_validate(log) for log in logs],
    )


@router.get(
    "/{entity_type}/{entity_id}",
    response_model=AuditLogListResponse,
    summary="Get record history",
    description="Complete audit trail of one record, oldest first.",
)
async def get_entity_history(
    entity_type: str,
    entity_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = AuditService(db)
    history = await service.get_entity_history(entity_type, entity_id)
    return AuditLogListResponse(
        total=len(history),
        items=[AuditLogResponse.model_validate(log) for log in history],
    )
