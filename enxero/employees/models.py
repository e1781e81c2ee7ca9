"""Employee ORM model."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from enxero.common.constants import EmployeeStatus
from enxero.common.models import JSONType, TenantMixin, TimestampMixin, UUIDPrimaryKeyMixin
from enxero.database import Base


class Employee(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "employees"
    __table_args__ = (
        sa.UniqueConstraint("company_id", "employee_code", name="uq_employees_company_code"),
        sa.UniqueConstraint("company_id", "email", name="uq_employees_company_email"),
    )

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    employee_code: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    phone_number: Mapped[Optional[str]] = mapped_column(sa.String(20))
    department: Mapped[Optional[str]] = mapped_column(sa.String(100), index=True)
    position: Mapped[Optional[str]] = mapped_column(sa.String(100))
    status: Mapped[EmployeeStatus] = mapped_column(
        sa.Enum(EmployeeStatus, name="employee_status"),
        nullable=False,
        default=EmployeeStatus.ACTIVE,
    )
    hire_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    termination_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    salary: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(12, 2))
    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id", ondelete="SET NULL"), index=True,
    )
    emergency_contact: Mapped[Optional[dict]] = mapped_column(JSONType)
    address: Mapped[Optional[dict]] = mapped_column(JSONType)
    bank_details: Mapped[Optional[dict]] = mapped_column(JSONType)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
