"""Role ORM model — a named permission set inside one company."""

from __future__ import annotations

from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from enxero.common.constants import WILDCARD_PERMISSION
from enxero.common.models import JSONType, TenantMixin, TimestampMixin, UUIDPrimaryKeyMixin
from enxero.database import Base


class Role(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "roles"
    __table_args__ = (
        sa.UniqueConstraint("company_id", "name", name="uq_roles_company_name"),
    )

    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    permissions: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    def grants(self, permission: str) -> bool:
        perms = self.permissions or []
        return WILDCARD_PERMISSION in perms or permission in perms
