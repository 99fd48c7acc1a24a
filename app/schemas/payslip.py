"""
Payroll CTC Engine - Payslip Schemas

Pydantic schemas for payslip requests and responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.payroll import ApprovalStatus
from app.schemas.ctc import LineItemResponse


class PayslipCreate(BaseModel):
    """Generate a payslip from the employee's latest approved CTC."""
    employee_user_id: int
    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)
    lop_days: int = Field(0, ge=0, le=31)
    override_allowance_total: Optional[Decimal] = None
    override_deduction_total: Optional[Decimal] = None


class PayslipResponse(BaseModel):
    """Payslip response."""
    id: int
    employee_profile_id: int
    ctc_structure_id: Optional[int] = None
    year: int
    month: int
    status: ApprovalStatus
    is_released: bool
    released_at: Optional[datetime] = None

    basic: Decimal
    hra: Decimal
    gross_pay: Decimal
    total_allowances: Decimal
    total_deductions: Decimal
    tax_deducted: Decimal
    lop_days: int
    lop_deduction: Decimal
    net_pay: Decimal

    allowance_items: List[LineItemResponse] = []
    deduction_items: List[LineItemResponse] = []

    created_by_user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PayslipListResponse(BaseModel):
    """List of payslips."""
    items: List[PayslipResponse]
    total: int
