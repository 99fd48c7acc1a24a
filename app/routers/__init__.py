"""
Payroll CTC Engine - Routers Package

FastAPI route handlers.

Routers:
- ctc: CTC structures (create, batch create, approve, status changes)
- payslips: Payslips (generate, approve, reject, release)
- analytics: Net pay reports (monthly summary, compare, anomalies)
- notifications: In-app notifications of the acting user
- audit: Audit trail listing and record history
"""

from app.routers import analytics, audit, ctc, notifications, payslips

__all__ = ["analytics", "audit", "ctc", "notifications", "payslips"]
