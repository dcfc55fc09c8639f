"""
Create a password user for local development and run onboarding for them.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional

import structlog
from sqlmodel import select

from compliance_api.core.auth import hash_password
from compliance_api.core.config import get_settings
from compliance_api.core.database import get_session_context, init_db
from compliance_api.core.logging_config import configure_logging
from compliance_api.models.user import User
from compliance_api.services.onboarding import onboard_after_signup

log = structlog.get_logger()


async def create_user(email: str, password: str, full_name: Optional[str] = None) -> int:
    await init_db()

    async with get_session_context() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            user = User(email=email, full_name=full_name, password_hash=hash_password(password))
            session.add(user)
            log.info("user.created", email=email)
        else:
            user.password_hash = hash_password(password)
            session.add(user)
            log.info("user.password_reset", email=email)
        user_id = user.id

    outcome = await onboard_after_signup(user_id)
    if not outcome.success:
        print(f"Onboarding failed for {email}: {outcome.error}", file=sys.stderr)
        return 1

    if outcome.organization_id:
        print(f"User {email} ready, organization {outcome.organization_id} created.")
    else:
        print(f"User {email} ready, existing memberships kept.")
    return 0


def run() -> None:
    parser = argparse.ArgumentParser(description="Create a local Compliance Desk user")
    parser.add_argument("email", help="User email")
    parser.add_argument("password", help="User password")
    parser.add_argument("--full-name", default=None, help="Display name; also names the first org")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level, "console")
    sys.exit(asyncio.run(create_user(args.email, args.password, args.full_name)))


if __name__ == "__main__":
    run()
