"""User ORM model — a login identity bound to one company and one role."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from enxero.common.models import TenantMixin, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin
from enxero.database import Base
from enxero.roles.models import Role


class User(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "users"

    role_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("roles.id", ondelete="SET NULL"), index=True,
    )
    username: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    phone_number: Mapped[Optional[str]] = mapped_column(sa.String(20), index=True)
    avatar: Mapped[Optional[str]] = mapped_column(sa.String(500))
    password_hash: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    email_verified: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    phone_verified: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    failed_login_attempts: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    locked_until: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    # Bumped on logout; tokens carrying an older value are rejected
    token_version: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    # Relationships
    role: Mapped[Optional[Role]] = relationship()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User {self.email}>"
