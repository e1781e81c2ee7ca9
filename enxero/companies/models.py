"""Company ORM model — the tenant root."""

from __future__ import annotations

from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from enxero.common.constants import CompanyStatus
from enxero.common.models import JSONType, TimestampMixin, UUIDPrimaryKeyMixin
from enxero.database import Base


class Company(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    identifier: Mapped[str] = mapped_column(sa.String(50), unique=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(sa.String(300))
    short_name: Mapped[Optional[str]] = mapped_column(sa.String(50))
    country_code: Mapped[Optional[str]] = mapped_column(sa.String(2))
    phone_number: Mapped[Optional[str]] = mapped_column(sa.String(20), unique=True)
    work_phone: Mapped[Optional[str]] = mapped_column(sa.String(20))
    email: Mapped[Optional[str]] = mapped_column(sa.String(255))
    city: Mapped[Optional[str]] = mapped_column(sa.String(100))
    address: Mapped[Optional[dict]] = mapped_column(JSONType)
    settings: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    status: Mapped[CompanyStatus] = mapped_column(
        sa.Enum(CompanyStatus, name="company_status"),
        nullable=False,
        default=CompanyStatus.ACTIVE,
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Company {self.identifier}>"
