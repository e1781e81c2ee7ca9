"""Integration ORM models: Integration, IntegrationLog."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from enxero.common.constants import IntegrationStatus
from enxero.common.models import (
    JSONType,
    TenantMixin,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    utcnow,
)
from enxero.database import Base


class Integration(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "integrations"
    __table_args__ = (
        sa.UniqueConstraint("company_id", "name", name="uq_integrations_company_name"),
    )

    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    config: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    status: Mapped[IntegrationStatus] = mapped_column(
        sa.Enum(IntegrationStatus, name="integration_status"),
        nullable=False,
        default=IntegrationStatus.active,
    )


class IntegrationLog(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "integration_logs"

    integration_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("integrations.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    status: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    message: Mapped[Optional[str]] = mapped_column(sa.Text)
    payload: Mapped[Optional[dict]] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
