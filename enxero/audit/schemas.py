"""Audit log response schema."""

import uuid
from datetime import datetime
from typing import Any, Optional

from enxero.common.schemas import CamelModel


class AuditLogOut(CamelModel):
    id: uuid.UUID
    company_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    action: str
    entity_type: str
    entity_id: str
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
