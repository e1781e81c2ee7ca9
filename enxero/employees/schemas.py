"""Employee Pydantic schemas for request / response validation."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import EmailStr, Field, model_validator

from enxero.common.constants import EmployeeStatus
from enxero.common.schemas import CamelModel


# ── Requests ────────────────────────────────────────────────────────

class EmployeeCreate(CamelModel):
    employee_code: str = Field(min_length=1, max_length=50)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone_number: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    hire_date: date
    termination_date: Optional[date] = None
    salary: Optional[Decimal] = Field(default=None, ge=0)
    manager_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    emergency_contact: Optional[dict[str, Any]] = None
    address: Optional[dict[str, Any]] = None
    bank_details: Optional[dict[str, Any]] = None

    @model_validator(mode="after")
    def check_dates(self) -> "EmployeeCreate":
        if self.termination_date and self.termination_date < self.hire_date:
            raise ValueError("terminationDate must be on or after hireDate")
        return self


class EmployeeUpdate(CamelModel):
    employee_code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    status: Optional[EmployeeStatus] = None
    hire_date: Optional[date] = None
    termination_date: Optional[date] = None
    salary: Optional[Decimal] = Field(default=None, ge=0)
    manager_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    emergency_contact: Optional[dict[str, Any]] = None
    address: Optional[dict[str, Any]] = None
    bank_details: Optional[dict[str, Any]] = None


# ── Responses ───────────────────────────────────────────────────────

class EmployeeBrief(CamelModel):
    """Minimal employee info for embedding (manager, reports)."""

    id: uuid.UUID
    employee_code: str
    first_name: str
    last_name: str
    email: str
    department: Optional[str] = None
    position: Optional[str] = None


class EmployeeOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    employee_code: str
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    status: EmployeeStatus
    hire_date: date
    termination_date: Optional[date] = None
    salary: Optional[Decimal] = None
    manager_id: Optional[uuid.UUID] = None
    emergency_contact: Optional[dict[str, Any]] = None
    address: Optional[dict[str, Any]] = None
    bank_details: Optional[dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
