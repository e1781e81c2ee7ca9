"""Payroll ORM models: PayrollConfig, PayrollPeriod, PayrollRecord."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from enxero.common.constants import PayFrequency, PayrollStatus
from enxero.common.models import (
    JSONType,
    TenantMixin,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
)
from enxero.database import Base


class PayrollConfig(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "payroll_configs"
    __table_args__ = (
        sa.UniqueConstraint("company_id", name="uq_payroll_configs_company"),
    )

    pay_frequency: Mapped[PayFrequency] = mapped_column(
        sa.Enum(PayFrequency, name="pay_frequency"),
        nullable=False,
        default=PayFrequency.MONTHLY,
    )
    pay_day: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=1)
    currency: Mapped[str] = mapped_column(sa.String(3), nullable=False, default="USD")
    tax_settings: Mapped[Optional[dict]] = mapped_column(JSONType)
    deductions: Mapped[Optional[dict]] = mapped_column(JSONType)
    allowances: Mapped[Optional[dict]] = mapped_column(JSONType)


class PayrollPeriod(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "payroll_periods"
    __table_args__ = (
        sa.CheckConstraint("end_date >= start_date", name="ck_payroll_periods_dates"),
    )

    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    status: Mapped[PayrollStatus] = mapped_column(
        sa.Enum(PayrollStatus, name="payroll_status"),
        nullable=False,
        default=PayrollStatus.DRAFT,
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    approved_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"),
    )


class PayrollRecord(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "payroll_records"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "period_id", name="uq_payroll_records_employee_period"),
    )

    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    period_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("payroll_periods.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    pay_period_start: Mapped[date] = mapped_column(sa.Date, nullable=False)
    pay_period_end: Mapped[date] = mapped_column(sa.Date, nullable=False)
    gross_salary: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False, default=Decimal("0"))
    net_salary: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False, default=Decimal("0"))
    working_days: Mapped[Optional[int]] = mapped_column(sa.Integer)
    deductions: Mapped[Optional[dict]] = mapped_column(JSONType)
    allowances: Mapped[Optional[dict]] = mapped_column(JSONType)
    status: Mapped[PayrollStatus] = mapped_column(
        sa.Enum(PayrollStatus, name="payroll_status"),
        nullable=False,
        default=PayrollStatus.DRAFT,
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
