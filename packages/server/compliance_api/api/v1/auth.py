"""
Authentication endpoints.

- Email/Password registration (runs onboarding) & login
- Session logout
- Current user
"""

from __future__ import annotations

import jwt
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from compliance_api.core.auth import (
    create_jwt,
    decode_jwt,
    generate_csrf_token,
    get_current_user,
    hash_password,
    revoke_jwt,
    verify_password,
)
from compliance_api.core.config import get_settings
from compliance_api.core.database import get_session
from compliance_api.core.org_context import clear_active_org_cookie, set_active_org_cookie
from compliance_api.models.user import User
from compliance_api.services.onboarding import onboard_after_signup
from compliance_shared.schemas.users import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()


def _set_session_cookies(response: Response, token: str, csrf: str) -> None:
    """Set the session JWT and CSRF cookies on a response."""
    max_age = settings.jwt_expire_minutes * 60
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
        max_age=max_age,
    )
    response.set_cookie(
        key=settings.csrf_cookie_name,
        value=csrf,
        httponly=False,  # JS must read this
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
        max_age=max_age,
    )


def _start_session(response: Response, user: User) -> None:
    token, _jti = create_jwt(user_id=user.id, email=user.email)
    _set_session_cookies(response, token, generate_csrf_token())


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Register a new user and give them their first organization."""
    result = await session.execute(select(User).where(User.email == body.email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=body.email,
        full_name=body.full_name,
        password_hash=hash_password(body.password),
    )
    session.add(user)
    # Onboarding runs in its own session and must see the user row.
    await session.commit()
    log.info("user.registered", user_id=str(user.id), email=body.email)

    onboarding = await onboard_after_signup(user.id)
    if onboarding.organization_id is not None:
        set_active_org_cookie(response, user.id, onboarding.organization_id)
    elif not onboarding.success:
        log.warning("user.onboarding_incomplete", user_id=str(user.id), error=onboarding.error)

    _start_session(response, user)
    return AuthResponse(
        user_id=user.id,
        email=user.email,
        message="Registration successful",
        organization_id=onboarding.organization_id,
        onboarded=onboarding.success,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a JWT session."""
    result = await session.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if not user or not user.password_hash:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(body.password, user.password_hash):
        log.warning("auth.login_failure", email=body.email, reason="bad_password")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    _start_session(response, user)
    log.info("auth.login_success", user_id=str(user.id))
    return AuthResponse(user_id=user.id, email=user.email, message="Login successful")


@router.post("/logout")
async def logout(request: Request, response: Response):
    """Invalidate the current session and forget the active org."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        try:
            jti = decode_jwt(token).get("jti")
        except jwt.PyJWTError:
            jti = None  # Token already invalid, just clear cookies
        if jti:
            await revoke_jwt(jti)

    response.delete_cookie(settings.session_cookie_name, path="/")
    response.delete_cookie(settings.csrf_cookie_name, path="/")
    clear_active_org_cookie(response)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return UserResponse(id=user.id, email=user.email, full_name=user.full_name)
