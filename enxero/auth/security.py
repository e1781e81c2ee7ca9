"""Password hashing (passlib/bcrypt) and JWT encode/decode (python-jose)."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from enxero.common.exceptions import UnauthorizedException
from enxero.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# ── JWT helpers ─────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    company_id: uuid.UUID,
    *,
    token_version: int = 0,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    delta = expires_delta or timedelta(minutes=settings.JWT_EXPIRES_MINUTES)
    payload = {
        "sub": str(user_id),
        "company_id": str(company_id),
        "type": "access",
        "ver": token_version,
        "exp": datetime.now(timezone.utc) + delta,
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, int(delta.total_seconds())


def create_refresh_token(user_id: uuid.UUID, *, token_version: int = 0) -> str:
    payload = {
        "sub": str(user_id),
        "type": "refresh",
        "ver": token_version,
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(days=settings.JWT_REFRESH_EXPIRES_DAYS),
    }
    return jwt.encode(payload, settings.JWT_REFRESH_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, *, token_type: str = "access") -> dict[str, Any]:
    """Decode and verify a JWT of the given type, or raise 401."""
    secret = settings.JWT_SECRET if token_type == "access" else settings.JWT_REFRESH_SECRET
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedException("Token has expired")
    except JWTError:
        raise UnauthorizedException("Invalid token")

    if payload.get("type") != token_type:
        raise UnauthorizedException("Invalid token type")
    return payload


def ensure_token_current(payload: dict[str, Any], token_version: int) -> None:
    """Reject tokens issued before the user's last logout."""
    if payload.get("ver", 0) != token_version:
        raise UnauthorizedException("Token has been revoked")
