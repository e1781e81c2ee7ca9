"""Global (non-tenant) ORM models: SystemConfig, SystemLog."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from enxero.common.constants import LogLevel
from enxero.common.models import JSONType, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin, utcnow
from enxero.database import Base


class SystemConfig(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "system_configs"

    key: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    value: Mapped[Any] = mapped_column(JSONType, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)


class SystemLog(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "system_logs"

    level: Mapped[LogLevel] = mapped_column(
        sa.Enum(LogLevel, name="log_level"), nullable=False, index=True,
    )
    message: Mapped[str] = mapped_column(sa.Text, nullable=False)
    context: Mapped[Optional[dict]] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
