"""
Payroll CTC Engine - CTC Schemas

Pydantic schemas for CTC requests and responses.
Business rules (amount ranges, label uniqueness) are enforced by the
service layer so that batch requests can report them per employee.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.models.payroll import ApprovalStatus


# ===========================================
# LINE ITEMS
# ===========================================

class LineItemIn(BaseModel):
    """Labelled allowance or deduction line."""
    label: str = Field(..., min_length=1, max_length=100)
    amount: Decimal


class LineItemResponse(BaseModel):
    """Stored line item."""
    label: str
    amount: Decimal
    sort_order: int

    class Config:
        from_attributes = True


# ===========================================
# CTC SCHEMAS
# ===========================================

class CTCCreate(BaseModel):
    """Create CTC request."""
    basic: Decimal
    hra: Decimal = Decimal("0")
    allowances: List[LineItemIn] = []
    deductions: List[LineItemIn] = []
    tax_percent: Decimal = Decimal("0")
    effective_from: Optional[date] = None


class CTCResponse(BaseModel):
    """CTC structure response."""
    id: int
    employee_profile_id: int
    basic: Decimal
    hra: Decimal
    tax_percent: Decimal
    gross_ctc: Decimal
    effective_from: date
    effective_to: date
    status: ApprovalStatus
    is_approved: bool
    created_by_user_id: Optional[int] = None
    updated_by_id: Optional[int] = None
    allowances: List[LineItemResponse] = []
    deductions: List[LineItemResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CTCListResponse(BaseModel):
    """List of CTC structures."""
    items: List[CTCResponse]
    total: int


# ===========================================
# BATCH SCHEMAS
# ===========================================

BatchStatus = Literal["Created", "Conflict", "Error"]


class CTCBatchRequest(BaseModel):
    """Create the same CTC for several employees."""
    employee_user_ids: List[int]
    ctc: CTCCreate


class CTCBatchResult(BaseModel):
    """Outcome for one employee of a batch."""
    employee_user_id: int
    employee: Optional[str] = None
    email: Optional[str] = None
    status: BatchStatus
    message: str
    ctc_id: Optional[int] = None


class CTCBatchResponse(BaseModel):
    """Per-employee batch outcomes plus counts."""
    results: List[CTCBatchResult]
    created: int
    conflicts: int
    errors: int
