"""System configuration and log schemas."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from enxero.common.constants import LogLevel
from enxero.common.schemas import CamelModel


class SystemConfigCreate(CamelModel):
    key: str = Field(min_length=1, max_length=100, pattern=r"^[A-Za-z0-9_.:-]+$")
    value: Any
    description: Optional[str] = None
    is_active: bool = True


class SystemConfigUpdate(CamelModel):
    value: Optional[Any] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class SystemConfigOut(CamelModel):
    id: uuid.UUID
    key: str
    value: Any
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class SystemLogOut(CamelModel):
    id: uuid.UUID
    level: LogLevel
    message: str
    context: Optional[dict[str, Any]] = None
    created_at: datetime
