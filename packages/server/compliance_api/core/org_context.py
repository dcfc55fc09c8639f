"""
Active-organization selection persisted in a signed cookie.

The cookie holds a short JWT bound to the user it was issued for, so a
copied cookie never selects an organization for somebody else. The value
is only a hint: membership is re-checked against the directory on every
read (see services.organizations.resolve_current_org).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Request, Response

from compliance_api.core.config import get_settings

log = structlog.get_logger()

_TOKEN_TYPE = "active_org"


def _max_age_seconds() -> int:
    # Lives exactly as long as the session it belongs to.
    return get_settings().jwt_expire_minutes * 60


def encode_active_org(user_id: uuid.UUID, org_id: uuid.UUID) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "org": str(org_id),
        "typ": _TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(seconds=_max_age_seconds()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_active_org(token: str, user_id: uuid.UUID) -> Optional[uuid.UUID]:
    """Return the selected org id, or None if the token is unusable for this user."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
        if payload.get("typ") != _TOKEN_TYPE or payload.get("sub") != str(user_id):
            log.warning("active_org.wrong_subject", user_id=str(user_id))
            return None
        return uuid.UUID(payload["org"])
    except (jwt.PyJWTError, KeyError, ValueError) as exc:
        log.info("active_org.invalid_cookie", user_id=str(user_id), error=str(exc))
        return None


def set_active_org_cookie(response: Response, user_id: uuid.UUID, org_id: uuid.UUID) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.active_org_cookie_name,
        value=encode_active_org(user_id, org_id),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
        max_age=_max_age_seconds(),
    )
    log.info("active_org.set", user_id=str(user_id), org_id=str(org_id))


def clear_active_org_cookie(response: Response) -> None:
    response.delete_cookie(get_settings().active_org_cookie_name, path="/")


def read_active_org(request: Request, user_id: uuid.UUID) -> Optional[uuid.UUID]:
    token = request.cookies.get(get_settings().active_org_cookie_name)
    if not token:
        return None
    return decode_active_org(token, user_id)
