"""File metadata schemas."""

import uuid
from datetime import datetime
from typing import Optional

from enxero.common.schemas import CamelModel


class FileOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    filename: str
    mimetype: str
    size: int
    description: Optional[str] = None
    tags: list[str] = []
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    uploaded_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
