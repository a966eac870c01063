"""
Authentication and Authorization for the back office.

Supports:
- Password hashing for credential accounts (bcrypt)
- JWT session tokens with a Redis revocation list
- Session resolution into an explicit caller identity
- The admin authorization guard used by every admin command
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from backoffice.core.config import get_settings
from backoffice.core.database import get_session
from backoffice.core.middleware import SESSION_COOKIE
from backoffice.core.redis import get_redis, revoked_session_key
from backoffice.core.results import Failure, unauthorized
from backoffice.models.user import User

log = structlog.get_logger()
settings = get_settings()

ADMIN_ROLE = "admin"

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def create_session_token(
    user_id: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed session JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_session_token(token: str) -> dict:
    """Decode and verify a session JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


async def revoke_session(token: str) -> Optional[str]:
    """Revoke a session token for the rest of its lifetime.

    Returns the revoked jti, or None when the token is already unusable
    (malformed, tampered or expired) and there is nothing to revoke.
    """
    try:
        payload = decode_session_token(token)
    except jwt.PyJWTError:
        return None

    jti = payload.get("jti")
    ttl = int(payload["exp"] - datetime.now(timezone.utc).timestamp())
    if not jti or ttl <= 0:
        return None

    client = await get_redis()
    await client.set(revoked_session_key(jti), "1", ex=ttl)
    log.info("session.revoked", jti=jti, user_id=payload.get("sub"))
    return jti


async def is_session_revoked(jti: str) -> bool:
    client = await get_redis()
    return await client.exists(revoked_session_key(jti)) > 0


# ---------------------------------------------------------------------------
# Caller identity
# ---------------------------------------------------------------------------

class CallerIdentity:
    """The authenticated caller of an admin command."""

    def __init__(self, user_id: str, role: str):
        self.user_id = user_id
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def __repr__(self) -> str:
        return f"CallerIdentity(user_id={self.user_id!r}, role={self.role!r})"


async def resolve_caller(
    token: Optional[str], session: AsyncSession
) -> Optional[CallerIdentity]:
    """Resolve a session token into a caller identity, or None."""
    if not token:
        return None

    try:
        payload = decode_session_token(token)
    except jwt.PyJWTError:
        log.info("session.invalid")
        return None

    jti = payload.get("jti")
    if jti and await is_session_revoked(jti):
        log.info("session.rejected", reason="revoked", jti=jti)
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    # Role comes from the stored user, not the token
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        return None

    return CallerIdentity(user_id=user.id, role=user.role)


def session_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """The request's session token: Bearer header first, then the cookie."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip()
    return request.cookies.get(SESSION_COOKIE)


async def get_caller(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
) -> Optional[CallerIdentity]:
    """Session resolver dependency."""
    return await resolve_caller(session_token(request, authorization), session)


# ---------------------------------------------------------------------------
# Authorization guard
# ---------------------------------------------------------------------------

def authorize_admin(
    caller: Optional[CallerIdentity], action: str = "access the admin panel"
) -> Optional[Failure]:
    """Return an Unauthorized failure unless the caller is an admin."""
    if caller is None or not caller.is_admin:
        log.warning(
            "admin.denied",
            user_id=caller.user_id if caller else None,
            role=caller.role if caller else None,
            action=action,
        )
        return unauthorized(f"Only admins can {action}")
    return None


async def require_admin(
    caller: Optional[CallerIdentity] = Depends(get_caller),
) -> CallerIdentity:
    """Rejects non-admin callers before the request body is parsed."""
    failure = authorize_admin(caller)
    if failure:
        raise HTTPException(status_code=failure.status_code, detail=failure.message)
    return caller
