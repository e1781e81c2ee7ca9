"""Integration Pydantic schemas for request / response validation."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from enxero.common.constants import IntegrationStatus
from enxero.common.schemas import CamelModel


class IntegrationCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    type: str = Field(min_length=1, max_length=50)
    config: dict[str, Any] = {}
    status: IntegrationStatus = IntegrationStatus.active


class IntegrationUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[str] = Field(default=None, min_length=1, max_length=50)
    config: Optional[dict[str, Any]] = None
    status: Optional[IntegrationStatus] = None


class IntegrationOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    type: str
    config: dict[str, Any] = {}
    status: IntegrationStatus
    created_at: datetime
    updated_at: datetime


class IntegrationLogOut(CamelModel):
    id: uuid.UUID
    integration_id: uuid.UUID
    status: str
    message: Optional[str] = None
    payload: Optional[dict[str, Any]] = None
    created_at: datetime
