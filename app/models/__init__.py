"""
Payroll CTC Engine - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import BaseModel, TimestampMixin, AuditMixin
from app.models.user import User, UserRole, Department, EmployeeProfile
from app.models.payroll import (
    ApprovalStatus,
    CTCStructure,
    CTCAllowance,
    CTCDeduction,
    Payslip,
    PayslipAllowance,
    PayslipDeduction,
)
from app.models.audit import AuditLog, AuditAction
from app.models.notification import Notification, NotificationType

__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "AuditMixin",
    # User
    "User",
    "UserRole",
    "Department",
    "EmployeeProfile",
    # Payroll
    "ApprovalStatus",
    "CTCStructure",
    "CTCAllowance",
    "CTCDeduction",
    "Payslip",
    "PayslipAllowance",
    "PayslipDeduction",
    # Audit
    "AuditLog",
    "AuditAction",
    # Notifications
    "Notification",
    "NotificationType",
]
