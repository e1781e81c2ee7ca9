"""Notification Pydantic schemas for request / response validation."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from enxero.common.constants import NotificationType
from enxero.common.schemas import CamelModel


class NotificationSend(CamelModel):
    user_id: uuid.UUID
    type: NotificationType = NotificationType.info
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    category: Optional[str] = Field(default=None, max_length=50)
    data: Optional[dict[str, Any]] = None


class NotificationOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    user_id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    category: Optional[str] = None
    data: Optional[dict[str, Any]] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime
