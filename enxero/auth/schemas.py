"""Auth Pydantic schemas for request / response validation."""

import uuid

from pydantic import Field

from enxero.common.schemas import CamelModel
from enxero.users.schemas import UserProfileOut


# ── Requests ────────────────────────────────────────────────────────

class LoginRequest(CamelModel):
    email: str = Field(min_length=3, description="Email address or username")
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str


class OtpLoginRequest(CamelModel):
    otp_id: uuid.UUID
    phone_number: str
    code: str = Field(min_length=6, max_length=6)


# ── Responses ───────────────────────────────────────────────────────

class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserProfileOut


class RefreshResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
