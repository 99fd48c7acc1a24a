"""
Payroll CTC Engine - Audit Log Schemas
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.models.audit import AuditAction


class AuditLogResponse(BaseModel):
    id: int
    entity_type: str
    entity_id: Optional[int] = None
    action: AuditAction
    details: Optional[str] = None
    performed_by_id: Optional[int] = None
    performed_by: Optional[str] = None
    performed_at: datetime

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    total: int
    items: List[AuditLogResponse]
