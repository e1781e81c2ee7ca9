"""Leave ORM models: LeaveType, LeaveBalance, LeaveRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from enxero.common.constants import LeaveStatus
from enxero.common.models import TenantMixin, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin
from enxero.database import Base


class LeaveType(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "leave_types"
    __table_args__ = (
        sa.UniqueConstraint("company_id", "name", name="uq_leave_types_company_name"),
    )

    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    default_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    is_paid: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)


class LeaveBalance(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "type_id", name="uq_leave_balance"),
        sa.CheckConstraint("remaining_days >= 0", name="ck_leave_balance_remaining"),
    )

    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    type_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("leave_types.id", ondelete="CASCADE"), nullable=False,
    )
    total_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    used_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    remaining_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    # Relationships
    leave_type: Mapped[LeaveType] = relationship()


class LeaveRequest(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "leave_requests"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    type_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("leave_types.id"), nullable=False,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status"),
        nullable=False,
        default=LeaveStatus.PENDING,
        index=True,
    )
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    comments: Mapped[Optional[str]] = mapped_column(sa.Text)
    approved_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
