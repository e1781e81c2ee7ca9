"""Company Pydantic schemas — CRUD, settings, invitations, registration."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import EmailStr, Field

from enxero.common.constants import CompanyStatus
from enxero.common.schemas import CamelModel
from enxero.users.schemas import UserCreatedOut, UserOut


# ═════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════


class CompanyCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    identifier: Optional[str] = Field(default=None, max_length=50)
    full_name: Optional[str] = None
    short_name: Optional[str] = Field(default=None, max_length=50)
    country_code: Optional[str] = Field(default=None, min_length=2, max_length=2)
    phone_number: Optional[str] = None
    work_phone: Optional[str] = None
    email: Optional[EmailStr] = None
    city: Optional[str] = None
    address: Optional[dict[str, Any]] = None


class CompanyUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    full_name: Optional[str] = None
    short_name: Optional[str] = Field(default=None, max_length=50)
    phone_number: Optional[str] = None
    work_phone: Optional[str] = None
    email: Optional[EmailStr] = None
    city: Optional[str] = None
    address: Optional[dict[str, Any]] = None
    status: Optional[CompanyStatus] = None
    is_active: Optional[bool] = None


class CompanySettingsUpdate(CamelModel):
    settings: dict[str, Any]


class CompanyInvite(CamelModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    username: Optional[str] = Field(default=None, min_length=3, max_length=100)
    role_id: Optional[uuid.UUID] = None


class CompanyOut(CamelModel):
    id: uuid.UUID
    name: str
    identifier: str
    full_name: Optional[str] = None
    short_name: Optional[str] = None
    country_code: Optional[str] = None
    phone_number: Optional[str] = None
    work_phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    address: Optional[dict[str, Any]] = None
    status: CompanyStatus
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CompanySettingsOut(CamelModel):
    company_id: uuid.UUID
    settings: dict[str, Any]


# ═════════════════════════════════════════════════════════════════════
# Registration (phone OTP)
# ═════════════════════════════════════════════════════════════════════


class RegistrationInitiate(CamelModel):
    phone_number: str
    company_name: str = Field(min_length=1, max_length=200)


class RegistrationComplete(CamelModel):
    otp_id: uuid.UUID
    phone_number: str
    code: str = Field(min_length=6, max_length=6)
    company_name: str = Field(min_length=1, max_length=200)
    full_name: Optional[str] = None
    short_name: Optional[str] = Field(default=None, max_length=50)
    country_code: str = Field(min_length=2, max_length=2)
    city: Optional[str] = None
    email: EmailStr
    username: str = Field(min_length=3, max_length=100)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=8)


class RegistrationOut(CamelModel):
    company: CompanyOut
    user: UserOut
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RegistrationStatusOut(CamelModel):
    company_id: uuid.UUID
    identifier: str
    status: CompanyStatus
    is_active: bool
    phone_verified: bool


class InvitationOut(CamelModel):
    company_id: uuid.UUID
    user: UserCreatedOut
