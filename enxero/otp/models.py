"""OTP ORM model. Only a salted hash of the code is stored."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from enxero.common.constants import OtpStatus, OtpType
from enxero.common.models import TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin
from enxero.database import Base


class Otp(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "otps"
    __table_args__ = (
        sa.Index("ix_otps_phone_type_status", "phone_number", "type", "status"),
    )

    phone_number: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    type: Mapped[OtpType] = mapped_column(sa.Enum(OtpType, name="otp_type"), nullable=False)
    purpose: Mapped[Optional[str]] = mapped_column(sa.String(100))
    code_hash: Mapped[str] = mapped_column(sa.String(128), nullable=False)
    salt: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    status: Mapped[OtpStatus] = mapped_column(
        sa.Enum(OtpStatus, name="otp_status"),
        nullable=False,
        default=OtpStatus.PENDING,
    )
    attempts: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=3)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    verified_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("companies.id", ondelete="SET NULL"),
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
