"""Role Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from enxero.common.schemas import CamelModel


class RoleCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: list[str] = []
    is_active: bool = True


class RoleUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: Optional[list[str]] = None
    is_active: Optional[bool] = None


class RoleAssign(CamelModel):
    user_id: uuid.UUID


class RoleOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    description: Optional[str] = None
    permissions: list[str] = []
    is_active: bool
    created_at: datetime
    updated_at: datetime
