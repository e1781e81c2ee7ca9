"""Audit log ORM model — append-only record of entity changes."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from enxero.common.models import JSONType, UTCDateTime, UUIDPrimaryKeyMixin, utcnow
from enxero.database import Base


class AuditLog(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "audit_logs"
    __table_args__ = (
        sa.Index("ix_audit_logs_entity", "entity_type", "entity_id"),
        sa.Index("ix_audit_logs_company_created", "company_id", "created_at"),
    )

    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("companies.id", ondelete="CASCADE"),
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    action: Mapped[str] = mapped_column(sa.String(50), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    old_values: Mapped[Optional[dict]] = mapped_column(JSONType)
    new_values: Mapped[Optional[dict]] = mapped_column(JSONType)
    ip_address: Mapped[Optional[str]] = mapped_column(sa.String(45))
    user_agent: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity_type}/{self.entity_id} by {self.user_id}>"
