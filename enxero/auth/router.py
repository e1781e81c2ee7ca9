"""Auth router — password login, phone-OTP login, token refresh, logout, current user."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import get_current_user
from enxero.auth.schemas import (
    LoginRequest,
    OtpLoginRequest,
    RefreshRequest,
    RefreshResponse,
    TokenResponse,
)
from enxero.auth.service import (
    authenticate_otp,
    authenticate_password,
    issue_tokens,
    logout,
    refresh_access_token,
)
from enxero.common.rate_limit import AUTH_RATE_LIMIT, limiter
from enxero.common.schemas import ApiResponse, MessageResponse
from enxero.database import get_db
from enxero.users.models import User
from enxero.users.schemas import UserProfileOut

router = APIRouter(prefix="", tags=["auth"])


def _client(request: Request) -> tuple[str | None, str | None]:
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


# ── POST /login ─────────────────────────────────────────────────────

@router.post("/login", response_model=ApiResponse[TokenResponse])
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_password(db, body.email, body.password)
    ip, user_agent = _client(request)
    tokens = await issue_tokens(db, user, method="password", ip=ip, user_agent=user_agent)
    return ApiResponse(data=tokens, message="Login successful")


# ── POST /otp/login ─────────────────────────────────────────────────

@router.post("/otp/login", response_model=ApiResponse[TokenResponse])
@limiter.limit(AUTH_RATE_LIMIT)
async def otp_login(
    request: Request,
    body: OtpLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Exchange a verified USER_LOGIN OTP (from ``/otp/user/generate``) for tokens."""
    user = await authenticate_otp(db, body.otp_id, body.phone_number, body.code)
    ip, user_agent = _client(request)
    tokens = await issue_tokens(db, user, method="otp", ip=ip, user_agent=user_agent)
    return ApiResponse(data=tokens, message="Login successful")


# ── POST /refresh ───────────────────────────────────────────────────

@router.post("/refresh", response_model=ApiResponse[RefreshResponse])
async def refresh_token(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(data=await refresh_access_token(db, body.refresh_token))


# ── POST /logout ────────────────────────────────────────────────────

@router.post("/logout", response_model=MessageResponse)
async def logout_user(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Revoke all of the caller's tokens, on every device."""
    ip, user_agent = _client(request)
    await logout(db, user, ip=ip, user_agent=user_agent)
    return MessageResponse(message="Logged out successfully")


# ── GET /me ─────────────────────────────────────────────────────────

@router.get("/me", response_model=ApiResponse[UserProfileOut])
async def me(user: User = Depends(get_current_user)):
    return ApiResponse(data=UserProfileOut.model_validate(user))
