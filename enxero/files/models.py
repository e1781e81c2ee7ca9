"""File metadata ORM model. File bytes live on disk under ``UPLOAD_PATH``."""

from __future__ import annotations

import uuid
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from enxero.common.models import JSONType, TenantMixin, TimestampMixin, UUIDPrimaryKeyMixin
from enxero.database import Base


class File(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "files"
    __table_args__ = (
        sa.Index("ix_files_entity", "entity_type", "entity_id"),
    )

    filename: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    storage_name: Mapped[str] = mapped_column(sa.String(300), unique=True, nullable=False)
    mimetype: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    size: Mapped[int] = mapped_column(sa.BigInteger, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    tags: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    entity_type: Mapped[Optional[str]] = mapped_column(sa.String(50))
    entity_id: Mapped[Optional[str]] = mapped_column(sa.String(64))
    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
