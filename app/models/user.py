"""
Payroll CTC Engine - User and Employee Profile Models

Roles in the approval workflow:
- Employee: owns CTC and payslip history, receives release notices
- HR: creates CTC structures and payslips
- HR Manager: reviews (approves/rejects) and releases
- Admin: full access

Every employee user has exactly one EmployeeProfile, created at onboarding
and deleted together with the user.
"""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.payroll import CTCStructure, Payslip


class UserRole(str, Enum):
    """User roles for the payroll workflow."""
    EMPLOYEE = "employee"
    HR = "hr"
    HR_MANAGER = "hr_manager"
    ADMIN = "admin"


class User(BaseModel):
    """Application user: actor of lifecycle calls and notification recipient."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        default=UserRole.EMPLOYEE,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    profile: Mapped[Optional["EmployeeProfile"]] = relationship(
        "EmployeeProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def is_reviewer(self) -> bool:
        return self.role in (UserRole.HR_MANAGER, UserRole.ADMIN)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class Department(BaseModel):
    """Organisational department an employee profile may belong to."""

    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)


class EmployeeProfile(BaseModel):
    """Employee profile: owns CTC structures and payslips."""

    __tablename__ = "employee_profiles"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    department_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    employee_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="profile")
    department: Mapped[Optional["Department"]] = relationship("Department")
    ctc_structures: Mapped[List["CTCStructure"]] = relationship(
        "CTCStructure",
        back_populates="employee_profile",
        cascade="all, delete-orphan",
    )
    payslips: Mapped[List["Payslip"]] = relationship(
        "Payslip",
        back_populates="employee_profile",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<EmployeeProfile(id={self.id}, user_id={self.user_id})>"
