"""Auth service — password and phone-OTP login, lockout, token refresh, logout."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from enxero.audit.service import create_audit_entry
from enxero.auth.schemas import RefreshResponse, TokenResponse
from enxero.auth.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    ensure_token_current,
    verify_password,
)
from enxero.common.constants import OtpType
from enxero.common.exceptions import UnauthorizedException
from enxero.config import settings
from enxero.otp.service import OtpService
from enxero.users.models import User
from enxero.users.schemas import UserProfileOut
from enxero.users.service import UserService

logger = logging.getLogger(__name__)


async def _load_active_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(
        select(User)
        .where(User.id == user_id, User.is_active.is_(True))
        .options(selectinload(User.role)),
    )
    user = result.scalars().first()
    if user is None:
        raise UnauthorizedException("User account is inactive or not found")
    return user


async def issue_tokens(
    db: AsyncSession,
    user: User,
    *,
    method: str,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> TokenResponse:
    """Record the login and return a fresh token pair for *user*."""
    await UserService.record_login(db, user)
    user = await _load_active_user(db, user.id)
    access_token, expires_in = create_access_token(
        user.id, user.company_id, token_version=user.token_version,
    )

    await create_audit_entry(
        db,
        action="login",
        entity_type="user",
        entity_id=user.id,
        company_id=user.company_id,
        user_id=user.id,
        new_values={"method": method},
        ip_address=ip,
        user_agent=user_agent,
    )

    return TokenResponse(
        access_token=access_token,
        refresh_token=create_refresh_token(user.id, token_version=user.token_version),
        expires_in=expires_in,
        user=UserProfileOut.model_validate(user),
    )


async def _record_failed_login(db: AsyncSession, user: User, now: datetime) -> None:
    """Count a wrong password and lock the account once the limit is hit.

    Committed straight away so the 401 that follows cannot roll it back.
    """
    user.failed_login_attempts += 1
    if user.failed_login_attempts >= settings.LOGIN_MAX_ATTEMPTS:
        user.locked_until = now + timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES)
        user.failed_login_attempts = 0
        logger.warning(
            "Locked user %s until %s after repeated failed logins",
            user.id, user.locked_until.isoformat(),
            extra={"company_id": user.company_id, "user_id": user.id},
        )
    await db.commit()


async def authenticate_password(db: AsyncSession, login: str, password: str) -> User:
    """Return the active user matching email/username and password, or raise 401.

    ``LOGIN_MAX_ATTEMPTS`` wrong passwords in a row lock the account for
    ``LOGIN_LOCKOUT_MINUTES``; while locked even the right password is refused.
    """
    result = await db.execute(
        select(User).where(or_(User.email == login, User.username == login)),
    )
    user = result.scalars().first()
    if user is None:
        raise UnauthorizedException("Invalid credentials")

    now = datetime.now(timezone.utc)
    if user.locked_until is not None and user.locked_until > now:
        raise UnauthorizedException("Account is temporarily locked. Try again later.")

    if not verify_password(password, user.password_hash):
        await _record_failed_login(db, user, now)
        raise UnauthorizedException("Invalid credentials")
    if not user.is_active:
        raise UnauthorizedException("User account is inactive")

    user.failed_login_attempts = 0
    user.locked_until = None
    return user


async def authenticate_otp(
    db: AsyncSession,
    otp_id: uuid.UUID,
    phone_number: str,
    code: str,
) -> User:
    """Verify a USER_LOGIN OTP and return its user."""
    otp = await OtpService.verify_otp(
        db, otp_id, phone_number, code, otp_type=OtpType.USER_LOGIN,
    )
    if otp.user_id is None:
        raise UnauthorizedException("OTP is not bound to a user")
    return await _load_active_user(db, otp.user_id)


async def refresh_access_token(db: AsyncSession, refresh_token: str) -> RefreshResponse:
    payload = decode_token(refresh_token, token_type="refresh")
    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedException("Invalid token")

    user = await _load_active_user(db, user_id)
    ensure_token_current(payload, user.token_version)
    access_token, expires_in = create_access_token(
        user.id, user.company_id, token_version=user.token_version,
    )
    return RefreshResponse(access_token=access_token, expires_in=expires_in)


async def logout(
    db: AsyncSession,
    user: User,
    *,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> None:
    """Revoke every access and refresh token issued to *user* so far."""
    user.token_version += 1
    await db.flush()

    await create_audit_entry(
        db,
        action="logout",
        entity_type="user",
        entity_id=user.id,
        company_id=user.company_id,
        user_id=user.id,
        ip_address=ip,
        user_agent=user_agent,
    )
