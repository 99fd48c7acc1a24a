"""
Payroll CTC Engine - Services Package

Business logic services.
"""

from app.services.audit_service import AuditService
from app.services.email_service import EmailService
from app.services.notification_service import NotificationService
from app.services.workflow_notifier import WorkflowNotifier
from app.services.locks import EmployeeLockRegistry, employee_locks
from app.services.temporal_validator import TemporalRangeValidator
from app.services.payslip_calculator import PayslipCalculator, PayslipComputation
from app.services.ctc_service import CTCService
from app.services.payslip_service import PayslipService
from app.services.ctc_batch_service import CTCBatchService
from app.services.payroll_analytics_service import PayrollAnalyticsService

__all__ = [
    # Side effects
    "AuditService",
    "EmailService",
    "NotificationService",
    "WorkflowNotifier",
    # Concurrency
    "EmployeeLockRegistry",
    "employee_locks",
    # Payroll
    "TemporalRangeValidator",
    "PayslipCalculator",
    "PayslipComputation",
    "CTCService",
    "PayslipService",
    "CTCBatchService",
    # Reporting
    "PayrollAnalyticsService",
]
