"""OTP Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from enxero.common.schemas import CamelModel


class CompanyOtpRequest(CamelModel):
    phone_number: str
    company_name: Optional[str] = Field(default=None, max_length=200)


class UserOtpRequest(CamelModel):
    phone_number: str


class OtpVerifyRequest(CamelModel):
    otp_id: uuid.UUID
    phone_number: str
    code: str = Field(min_length=6, max_length=6)

    @field_validator("code")
    @classmethod
    def _digits_only(cls, value: str) -> str:
        if not value.isdigit():
            raise ValueError("OTP code must contain digits only")
        return value


class CompanyIdRequest(CamelModel):
    country_code: str = Field(min_length=2, max_length=2)
    short_name: str = Field(min_length=1, max_length=50)


class OtpIssuedOut(CamelModel):
    otp_id: uuid.UUID
    expires_at: datetime
    phone_number: str


class OtpVerifiedOut(CamelModel):
    otp_id: uuid.UUID
    phone_number: str
    type: str
    verified: bool = True
    verified_at: Optional[datetime] = None
    company_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None


class CompanyIdOut(CamelModel):
    identifier: str
