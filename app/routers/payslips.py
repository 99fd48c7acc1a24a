"""
Payroll CTC Engine - Payslip Router

API endpoints for generating, reviewing and releasing payslips.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_actor_id
from app.models.payroll import ApprovalStatus
from app.schemas.payslip import PayslipCreate, PayslipListResponse, PayslipResponse
from app.services.payslip_service import PayslipService


router = APIRouter()


@router.post(
    "",
    response_model=PayslipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate a payslip",
    description="Compute a Pending payslip from the employee's latest approved CTC.",
)
async def create_payslip(
    data: PayslipCreate,
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = PayslipService(db)
    payslip = await service.create_payslip(data, actor_id)
    return PayslipResponse.model_validate(payslip)


@router.get(
    "",
    response_model=PayslipListResponse,
    summary="List payslips",
)
async def list_payslips(
    employee_user_id: Optional[int] = Query(None),
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = PayslipService(db)
    payslips = await service.list_payslips(employee_user_id=employee_user_id, year=year, month=month)
    return PayslipListResponse(
        items=[PayslipResponse.model_validate(p) for p in payslips],
        total=len(payslips),
    )


@router.get(
    "/{payslip_id}",
    response_model=PayslipResponse,
    summary="Get a payslip",
)
async def get_payslip(
    payslip_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = PayslipService(db)
    return PayslipResponse.model_validate(await service.get_payslip(payslip_id))


@router.post(
    "/{payslip_id}/approve",
    response_model=PayslipResponse,
    summary="Approve a payslip",
)
async def approve_payslip(
    payslip_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = PayslipService(db)
    return PayslipResponse.model_validate(await service.approve_payslip(payslip_id, actor_id))


@router.post(
    "/{payslip_id}/reject",
    response_model=PayslipResponse,
    summary="Reject a payslip",
)
async def reject_payslip(
    payslip_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = PayslipService(db)
    return PayslipResponse.model_validate(await service.reject_payslip(payslip_id, actor_id))


@router.post(
    "/{payslip_id}/release",
    response_model=PayslipResponse,
    summary="Release a payslip",
    description="Release an approved payslip; other approved payslips of the same period are rejected.",
)
async def release_payslip(
    payslip_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    service = PayslipService(db)
    return PayslipResponse.model_validate(await service.release_payslip(payslip_id, actor_id))


@router.post(
    "/{payslip_id}/status",
    response_model=PayslipResponse,
    summary="Set payslip status",
)
async def set_payslip_status(
    payslip_id: int = Path(...),
    new_status: ApprovalStatus = Query(..., alias="status"),
    db: AsyncSession = Depends(get_async_session),
    actor_id: int = Depends(get_actor_id),
):
    """Assign a review status without releasing."""
    service = PayslipService(db)
    payslip = await service.set_payslip_status(payslip_id, new_status, actor_id)
    return PayslipResponse.model_validate(payslip)
