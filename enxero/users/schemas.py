"""User Pydantic schemas for request / response validation."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from enxero.common.schemas import CamelModel


# ── Embedded ────────────────────────────────────────────────────────

class RoleBrief(CamelModel):
    id: uuid.UUID
    name: str
    permissions: list[str] = []


# ── Requests ────────────────────────────────────────────────────────

class UserCreate(CamelModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=100)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone_number: Optional[str] = None
    role_id: Optional[uuid.UUID] = None
    password: Optional[str] = Field(default=None, min_length=8)


class UserUpdate(CamelModel):
    email: Optional[EmailStr] = None
    username: Optional[str] = Field(default=None, min_length=3, max_length=100)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone_number: Optional[str] = None
    avatar: Optional[str] = None
    role_id: Optional[uuid.UUID] = None


class ProfileUpdate(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone_number: Optional[str] = None
    avatar: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=8)


class UserStatusUpdate(CamelModel):
    is_active: bool


# ── Responses ───────────────────────────────────────────────────────

class UserOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    role_id: Optional[uuid.UUID] = None
    username: str
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    avatar: Optional[str] = None
    is_active: bool
    email_verified: bool
    phone_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserProfileOut(UserOut):
    role: Optional[RoleBrief] = None


class UserCreatedOut(UserOut):
    """Returned once on creation; carries the generated password if one was issued."""

    temporary_password: Optional[str] = None
