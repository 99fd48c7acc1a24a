"""
Payroll CTC Engine - Schemas Package

Pydantic schemas for request/response validation.
"""

from app.schemas.ctc import (
    LineItemIn,
    LineItemResponse,
    CTCCreate,
    CTCResponse,
    CTCListResponse,
    CTCBatchRequest,
    CTCBatchResult,
    CTCBatchResponse,
)
from app.schemas.payslip import (
    PayslipCreate,
    PayslipResponse,
    PayslipListResponse,
)
from app.schemas.analytics import (
    DepartmentSummary,
    MonthlySummaryResponse,
    PeriodTotal,
    PeriodComparison,
    PayslipAnomaly,
    AnomalyReport,
)
from app.schemas.notification import (
    NotificationResponse,
    NotificationListResponse,
    UnreadCountResponse,
    MessageResponse,
)
from app.schemas.audit import (
    AuditLogResponse,
    AuditLogListResponse,
)

__all__ = [
    # CTC
    "LineItemIn",
    "LineItemResponse",
    "CTCCreate",
    "CTCResponse",
    "CTCListResponse",
    "CTCBatchRequest",
    "CTCBatchResult",
    "CTCBatchResponse",
    # Payslip
    "PayslipCreate",
    "PayslipResponse",
    "PayslipListResponse",
    # Analytics
    "DepartmentSummary",
    "MonthlySummaryResponse",
    "PeriodTotal",
    "PeriodComparison",
    "PayslipAnomaly",
    "AnomalyReport",
    # Notifications
    "NotificationResponse",
    "NotificationListResponse",
    "UnreadCountResponse",
    "MessageResponse",
    # Audit
    "AuditLogResponse",
    "AuditLogListResponse",
]
