"""Leave Pydantic schemas for request / response validation."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import Field, model_validator

from enxero.common.constants import LeaveStatus
from enxero.common.schemas import CamelModel


# ── Leave types ─────────────────────────────────────────────────────

class LeaveTypeCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    default_days: int = Field(default=0, ge=0)
    is_paid: bool = True
    is_active: bool = True


class LeaveTypeUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    default_days: Optional[int] = Field(default=None, ge=0)
    is_paid: Optional[bool] = None
    is_active: Optional[bool] = None


class LeaveTypeOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    description: Optional[str] = None
    default_days: int
    is_paid: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ── Leave balances ──────────────────────────────────────────────────

class LeaveBalanceCreate(CamelModel):
    employee_id: uuid.UUID
    type_id: uuid.UUID
    total_days: Optional[int] = Field(
        default=None, ge=0, description="Defaults to the leave type's default days",
    )


class LeaveBalanceOut(CamelModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    type_id: uuid.UUID
    total_days: int
    used_days: int
    remaining_days: int
    leave_type: Optional[LeaveTypeOut] = None


# ── Leave requests ──────────────────────────────────────────────────

class LeaveRequestCreate(CamelModel):
    employee_id: uuid.UUID
    type_id: uuid.UUID
    start_date: date
    end_date: date
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self) -> "LeaveRequestCreate":
        if self.end_date < self.start_date:
            raise ValueError("endDate must be on or after startDate")
        return self


class LeaveRequestUpdate(CamelModel):
    notes: Optional[str] = None


class LeaveDecision(CamelModel):
    """Body of approve / reject; the notes land in ``comments``."""

    notes: Optional[str] = None


class LeaveRequestOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    type_id: uuid.UUID
    start_date: date
    end_date: date
    days: int
    notes: Optional[str] = None
    status: LeaveStatus
    approved_by: Optional[uuid.UUID] = None
    comments: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
