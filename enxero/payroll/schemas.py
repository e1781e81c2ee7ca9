"""Payroll Pydantic schemas for request / response validation."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field, model_validator

from enxero.common.constants import PayFrequency, PayrollStatus
from enxero.common.schemas import CamelModel


# ── Config ──────────────────────────────────────────────────────────

class PayrollConfigCreate(CamelModel):
    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    pay_day: int = Field(default=1, ge=1, le=31)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    tax_settings: Optional[dict[str, Any]] = None
    deductions: Optional[list[dict[str, Any]]] = None
    allowances: Optional[list[dict[str, Any]]] = None


class PayrollConfigUpdate(CamelModel):
    pay_frequency: Optional[PayFrequency] = None
    pay_day: Optional[int] = Field(default=None, ge=1, le=31)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    tax_settings: Optional[dict[str, Any]] = None
    deductions: Optional[list[dict[str, Any]]] = None
    allowances: Optional[list[dict[str, Any]]] = None


class PayrollConfigOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    pay_frequency: PayFrequency
    pay_day: int
    currency: str
    tax_settings: Optional[dict[str, Any]] = None
    deductions: Optional[list[dict[str, Any]]] = None
    allowances: Optional[list[dict[str, Any]]] = None
    created_at: datetime
    updated_at: datetime


# ── Periods ─────────────────────────────────────────────────────────

class PayrollPeriodCreate(CamelModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_dates(self) -> "PayrollPeriodCreate":
        if self.end_date < self.start_date:
            raise ValueError("endDate must be on or after startDate")
        return self


class PayrollPeriodOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    start_date: date
    end_date: date
    status: PayrollStatus
    processed_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


# ── Records ─────────────────────────────────────────────────────────

class PayrollRecordCreate(CamelModel):
    employee_id: uuid.UUID
    period_id: uuid.UUID
    gross_salary: Decimal = Field(ge=0)
    total_deductions: Decimal = Field(default=Decimal("0"), ge=0)
    working_days: Optional[int] = Field(default=None, ge=0)
    deductions: Optional[Any] = None
    allowances: Optional[Any] = None


class PayrollRecordUpdate(CamelModel):
    gross_salary: Optional[Decimal] = Field(default=None, ge=0)
    total_deductions: Optional[Decimal] = Field(default=None, ge=0)
    working_days: Optional[int] = Field(default=None, ge=0)
    deductions: Optional[Any] = None
    allowances: Optional[Any] = None


class PayrollRecordOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    period_id: uuid.UUID
    pay_period_start: date
    pay_period_end: date
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    working_days: Optional[int] = None
    deductions: Optional[Any] = None
    allowances: Optional[Any] = None
    status: PayrollStatus
    processed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PayrollPeriodDetail(PayrollPeriodOut):
    records: list[PayrollRecordOut] = []
