"""Form Pydantic schemas for request / response validation."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from enxero.common.constants import FormStatus
from enxero.common.schemas import CamelModel


# ── Fields ──────────────────────────────────────────────────────────

class FormFieldIn(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    label: str = Field(min_length=1, max_length=200)
    type: str = Field(min_length=1, max_length=50)
    required: bool = False
    options: Optional[list[Any]] = None
    validation: Optional[dict[str, Any]] = None


class FormFieldOut(CamelModel):
    id: uuid.UUID
    name: str
    label: str
    type: str
    required: bool
    options: Optional[list[Any]] = None
    validation: Optional[dict[str, Any]] = None
    order: int


# ── Forms ───────────────────────────────────────────────────────────

class FormCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    status: FormStatus = FormStatus.draft
    settings: dict[str, Any] = {}
    fields: list[FormFieldIn] = []


class FormUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    status: Optional[FormStatus] = None
    settings: Optional[dict[str, Any]] = None
    fields: Optional[list[FormFieldIn]] = Field(
        default=None, description="When given, replaces the form's fields in order",
    )


class FormOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    status: FormStatus
    settings: dict[str, Any] = {}
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class FormWithFields(FormOut):
    fields: list[FormFieldOut] = []


# ── Submissions ─────────────────────────────────────────────────────

class FormSubmissionOut(CamelModel):
    id: uuid.UUID
    form_id: uuid.UUID
    submitted_by: Optional[uuid.UUID] = None
    data: dict[str, Any]
    submitted_at: datetime


class FormDetail(FormWithFields):
    submissions: list[FormSubmissionOut] = []
