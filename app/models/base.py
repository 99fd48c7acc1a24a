"""
Payroll CTC Engine - Base Model

Base model class and mixins for all SQLAlchemy models.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )


class AuditMixin:
    """Mixin that adds audit fields for tracking who created/updated records."""

    created_by_user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    updated_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )


class BaseModel(Base, TimestampMixin):
    """
    Abstract base model with integer surrogate primary key and timestamps.
    All models should inherit from this class.
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"
