"""
Payroll CTC Engine - Payroll Models

Compensation (CTC) structures and the monthly payslips derived from them.

Approval workflow:
1. HR creates a CTC structure (Pending)
2. HR Manager approves or rejects it; an approved CTC is valid for one
   year from its effective date and may not overlap another approved CTC
3. HR generates a payslip (Pending) from the latest approved CTC
4. HR Manager approves and finally releases the payslip; at most one
   payslip per employee and month may be released
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Index, Integer, Numeric, String,
    Enum as SQLEnum, CheckConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, AuditMixin

if TYPE_CHECKING:
    from app.models.user import EmployeeProfile


# ===========================================
# ENUMS
# ===========================================

class ApprovalStatus(str, Enum):
    """Review status shared by CTC structures and payslips."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ===========================================
# CTC STRUCTURE
# ===========================================

class CTCStructure(BaseModel, AuditMixin):
    """
    Cost-to-company structure for one employee.

    Amounts are fixed at creation; afterwards only the status moves.
    effective_to is always effective_from + 1 year and is assigned by
    the system.
    """

    __tablename__ = "ctc_structures"

    employee_profile_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus),
        default=ApprovalStatus.PENDING,
        nullable=False,
        index=True,
    )
    is_approved: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
        comment="Mirrors status == approved",
    )

    basic: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    hra: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
        default=Decimal("0.00"),
        comment="House rent allowance",
    )
    tax_percent: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        nullable=False,
        default=Decimal("0.00"),
    )
    gross_ctc: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
        comment="basic + hra + sum(allowances)",
    )

    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[date] = mapped_column(Date, nullable=False)

    # Relationships
    employee_profile: Mapped["EmployeeProfile"] = relationship(
        "EmployeeProfile", back_populates="ctc_structures",
    )
    allowances: Mapped[List["CTCAllowance"]] = relationship(
        "CTCAllowance",
        back_populates="ctc_structure",
        cascade="all, delete-orphan",
        order_by="CTCAllowance.sort_order",
        lazy="selectin",
    )
    deductions: Mapped[List["CTCDeduction"]] = relationship(
        "CTCDeduction",
        back_populates="ctc_structure",
        cascade="all, delete-orphan",
        order_by="CTCDeduction.sort_order",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("hra >= 0", name="hra_non_negative"),
        CheckConstraint("basic > 0", name="basic_positive"),
        Index("ix_ctc_structures_profile_status", "employee_profile_id", "status"),
    )

    @property
    def total_allowances(self) -> Decimal:
        return sum((a.amount for a in self.allowances), Decimal("0"))

    @property
    def total_deductions(self) -> Decimal:
        return sum((d.amount for d in self.deductions), Decimal("0"))

    def set_status(self, status: ApprovalStatus) -> None:
        """Assign status and keep is_approved in sync."""
        self.status = status
        self.is_approved = status == ApprovalStatus.APPROVED

    def __repr__(self) -> str:
        return (
            f"<CTCStructure(id={self.id}, profile={self.employee_profile_id}, "
            f"from={self.effective_from}, status={self.status})>"
        )


class CTCAllowance(BaseModel):
    """Labelled allowance line of a CTC structure."""

    __tablename__ = "ctc_allowances"

    ctc_structure_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ctc_structures.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    ctc_structure: Mapped["CTCStructure"] = relationship(
        "CTCStructure", back_populates="allowances",
    )


class CTCDeduction(BaseModel):
    """Labelled deduction line of a CTC structure."""

    __tablename__ = "ctc_deductions"

    ctc_structure_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ctc_structures.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    ctc_structure: Mapped["CTCStructure"] = relationship(
        "CTCStructure", back_populates="deductions",
    )


# ===========================================
# PAYSLIP
# ===========================================

class Payslip(BaseModel, AuditMixin):
    """
    Monthly pay record computed from a snapshot of an approved CTC.

    Line items are copied at creation and never follow later changes of
    the source CTC. Released is terminal.
    """

    __tablename__ = "payslips"

    employee_profile_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ctc_structure_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("ctc_structures.id", ondelete="SET NULL"),
        nullable=True,
        comment="CTC the snapshot was taken from",
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus),
        default=ApprovalStatus.PENDING,
        nullable=False,
        index=True,
    )
    is_released: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    released_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    # Earnings
    basic: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    hra: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)

    # Header aggregates (override-aware, may differ from the itemised sums)
    total_allowances: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"),
    )
    total_deductions: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"),
    )

    # Deductions
    tax_deducted: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"),
    )
    lop_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    lop_deduction: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"),
    )

    # Net
    net_pay: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)

    # Relationships
    employee_profile: Mapped["EmployeeProfile"] = relationship(
        "EmployeeProfile", back_populates="payslips",
    )
    allowance_items: Mapped[List["PayslipAllowance"]] = relationship(
        "PayslipAllowance",
        back_populates="payslip",
        cascade="all, delete-orphan",
        order_by="PayslipAllowance.sort_order",
        lazy="selectin",
    )
    deduction_items: Mapped[List["PayslipDeduction"]] = relationship(
        "PayslipDeduction",
        back_populates="payslip",
        cascade="all, delete-orphan",
        order_by="PayslipDeduction.sort_order",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("month >= 1 AND month <= 12", name="month_range"),
        CheckConstraint("lop_days >= 0 AND lop_days <= 31", name="lop_days_range"),
        Index("ix_payslips_period", "employee_profile_id", "year", "month"),
    )

    @property
    def period_label(self) -> str:
        return f"{self.month}/{self.year}"

    def __repr__(self) -> str:
        return (
            f"<Payslip(id={self.id}, profile={self.employee_profile_id}, "
            f"period={self.period_label}, status={self.status}, released={self.is_released})>"
        )


class PayslipAllowance(BaseModel):
    """Allowance line copied from the source CTC."""

    __tablename__ = "payslip_allowances"

    payslip_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payslips.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    payslip: Mapped["Payslip"] = relationship("Payslip", back_populates="allowance_items")


class PayslipDeduction(BaseModel):
    """Deduction line copied from the source CTC."""

    __tablename__ = "payslip_deductions"

    payslip_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payslips.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    payslip: Mapped["Payslip"] = relationship("Payslip", back_populates="deduction_items")
