"""
Payroll CTC Engine - CTC Router

API endpoints for creating and reviewing CTC structures.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_actor_id
from app.models.payroll import ApprovalStatus
from app.schemas.ctc import (
    CTCBatchRequest,
    CTCBatchResponse,
    CTCCreate,
    CTCListResponse,
    CTCResponse,
)
from app.services.ctc_batch_service import CTCBatchService
from app.services.ctc_service import CTCService


router = APIRouter()


# ===========================================
# BATCH
# ===========================================

@router.post(
    "/batch",
    response_model=CTCBatchResponse,
    summary="Create CTCs for several employees",
    description="Creates the same Pending CTC per employee; failures are reported per employee.",
)
async def create_ctc_batch(
    data: CTCBatchRequest,
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = CTCBatchService(db)
    return await service.create_batch(data.employee_user_ids, data.ctc, actor_id)


# ===========================================
# EMPLOYEE-SCOPED
# ===========================================

@router.post(
    "/employees/{employee_user_id}/approve-latest",
    response_model=CTCResponse,
    summary="Approve the latest pending CTC",
)
async def approve_latest_pending(
    employee_user_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    """Approve the employee's most recent CTC that is not yet approved."""
    service = CTCService(db)
    ctc = await service.approve_latest_pending(employee_user_id, actor_id)
    return CTCResponse.model_validate(ctc)


@router.get(
    "/employees/{employee_user_id}/latest",
    response_model=CTCResponse,
    summary="Get the latest approved CTC",
)
async def get_latest_approved(
    employee_user_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = CTCService(db)
    return CTCResponse.model_validate(await service.get_latest_approved(employee_user_id))


# ===========================================
# CTC ENDPOINTS
# ===========================================

@router.get(
    "",
    response_model=CTCListResponse,
    summary="List CTC structures",
)
async def list_ctcs(
    employee_user_id: Optional[int] = Query(None, description="Filter by employee user id"),
    status_filter: Optional[ApprovalStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = CTCService(db)
    ctcs = await service.list_ctcs(employee_user_id=employee_user_id, status=status_filter)
    return CTCListResponse(
        items=[CTCResponse.model_validate(c) for c in ctcs],
        total=len(ctcs),
    )


@router.post(
    "/{employee_user_id}",
    response_model=CTCResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a CTC",
    description="Create a Pending CTC for an employee. The validity window is one year from effective_from.",
)
async def create_ctc(
    data: CTCCreate,
    employee_user_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = CTCService(db)
    ctc = await service.create_ctc(employee_user_id, data, actor_id)
    return CTCResponse.model_validate(ctc)


@router.get(
    "/{ctc_id}",
    response_model=CTCResponse,
    summary="Get a CTC",
)
async def get_ctc(
    ctc_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = CTCService(db)
    return CTCResponse.model_validate(await service.get_ctc(ctc_id))


@router.post(
    "/{ctc_id}/approve",
    response_model=CTCResponse,
    summary="Approve a CTC",
    description="Approve a CTC; later-dated approved CTCs of the same employee are rejected.",
)
async def approve_ctc(
    ctc_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = CTCService(db)
    ctc = await service.approve_ctc(ctc_id, actor_id)
    return CTCResponse.model_validate(ctc)


@router.post(
    "/{ctc_id}/status",
    response_model=CTCResponse,
    summary="Set CTC status",
)
async def set_ctc_status(
    ctc_id: int = Path(...),
    new_status: ApprovalStatus = Query(..., alias="status"),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    """Approve, reject or return a CTC to pending."""
    service = CTCService(db)
    ctc = await service.set_ctc_status(ctc_id, new_status, actor_id)
    return CTCResponse.model_validate(ctc)
