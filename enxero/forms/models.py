"""Form ORM models: Form, FormField, FormSubmission."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from enxero.common.constants import FormStatus
from enxero.common.models import (
    JSONType,
    TenantMixin,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    utcnow,
)
from enxero.database import Base


class Form(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "forms"

    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    category: Mapped[Optional[str]] = mapped_column(sa.String(100))
    status: Mapped[FormStatus] = mapped_column(
        sa.Enum(FormStatus, name="form_status"),
        nullable=False,
        default=FormStatus.draft,
    )
    settings: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"),
    )

    # Relationships
    fields: Mapped[list[FormField]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="FormField.order",
    )


class FormField(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "form_fields"

    form_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    label: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    required: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    options: Mapped[Optional[list]] = mapped_column(JSONType)
    validation: Mapped[Optional[dict]] = mapped_column(JSONType)
    order: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    form: Mapped[Form] = relationship(back_populates="fields")


class FormSubmission(UUIDPrimaryKeyMixin, TenantMixin, Base):
    __tablename__ = "form_submissions"

    form_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    submitted_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    data: Mapped[dict] = mapped_column(JSONType, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
