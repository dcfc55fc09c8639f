"""
Session/identity layer for Compliance Desk.

Supports:
- Email/Password credentials (bcrypt)
- JWT session tokens (cookie or Bearer header) with a Redis revocation list
- Resolution of the current user for a request
- Organization context for org-scoped routes
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_api.core.config import get_settings
from compliance_api.core.database import get_session
from compliance_api.core.errors import Unauthenticated
from compliance_api.core.org_context import read_active_org
from compliance_api.core.redis import get_redis
from compliance_api.models.membership import Membership
from compliance_api.models.organization import Organization
from compliance_api.models.user import User
from compliance_api.services.organizations import resolve_current_org

log = structlog.get_logger()
settings = get_settings()

SESSION_TOKEN_TYPE = "session"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    email: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed session JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": exp,
        "jti": jti,
        "typ": SESSION_TOKEN_TYPE,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# JWT Revocation (Redis)
# ---------------------------------------------------------------------------

async def revoke_jwt(jti: str, ttl_seconds: int | None = None) -> None:
    """Add a JWT ID to the revocation list in Redis."""
    redis = await get_redis()
    ttl = ttl_seconds or settings.jwt_expire_minutes * 60
    await redis.setex(f"jwt:revoked:{jti}", ttl, "1")


async def is_jwt_revoked(jti: str) -> bool:
    redis = await get_redis()
    return await redis.exists(f"jwt:revoked:{jti}") > 0


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

def _session_token(request: Request) -> Optional[str]:
    """Session JWT from the cookie, or from an `Authorization: Bearer` header."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


async def _user_from_token(token: str, session: AsyncSession) -> User:
    try:
        payload = decode_jwt(token)
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise Unauthenticated("Invalid or expired session")

    # The active-org cookie is signed with the same key; only session tokens carry this type.
    jti = payload.get("jti")
    if payload.get("typ") != SESSION_TOKEN_TYPE or not jti:
        raise Unauthenticated("Invalid or expired session")
    if await is_jwt_revoked(jti):
        raise Unauthenticated("Session has been revoked")

    user = await session.get(User, user_id)
    if user is None:
        log.warning("auth.unknown_user", user_id=str(user_id))
        raise Unauthenticated("User not found")
    return user


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the signed-in user for this request or raise Unauthenticated."""
    token = _session_token(request)
    if not token:
        raise Unauthenticated()
    user = await _user_from_token(token, session)
    request.state.user = user
    return user


# ---------------------------------------------------------------------------
# Organization context
# ---------------------------------------------------------------------------

class OrgContext:
    """Container for the signed-in user + the organization the request operates on."""

    def __init__(self, user: User, org: Organization, membership: Membership):
        self.user = user
        self.org = org
        self.membership = membership
        self.user_id = user.id
        self.org_id = org.id
        self.role = membership.role


async def get_org_context(
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> OrgContext:
    """Resolve the active organization, re-validating the persisted selection."""
    selected = read_active_org(request, user.id)
    org, membership = await resolve_current_org(user, selected, session)
    return OrgContext(user=user, org=org, membership=membership)
