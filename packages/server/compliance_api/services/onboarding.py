"""
Onboarding: give every newly signed-up user exactly one organization.

Runs as a side effect of signup, in its own session scope, and never raises:
a failure here must not abort account creation.
"""

from __future__ import annotations

import uuid

import structlog

from compliance_api.core import database
from compliance_api.models.user import User
from compliance_api.services.memberships import get_memberships_for_user
from compliance_api.services.provisioning import (
    derive_default_org_name,
    provision_organization,
)

from compliance_shared.schemas.organizations import OnboardingResult

log = structlog.get_logger()


async def onboard_after_signup(user_id: uuid.UUID) -> OnboardingResult:
    try:
        async with database.get_session_context() as session:
            memberships = await get_memberships_for_user(user_id, session)
            if memberships:
                log.info(
                    "onboarding.skipped",
                    user_id=str(user_id),
                    memberships=len(memberships),
                )
                return OnboardingResult(success=True)

            user = await session.get(User, user_id)
            if user is None:
                raise LookupError(f"User {user_id} not found")

            org = await provision_organization(
                session,
                user_id=user_id,
                name=derive_default_org_name(user),
            )
            org_id = org.id
    except Exception as exc:
        log.exception("onboarding.failed", user_id=str(user_id), error=str(exc))
        return OnboardingResult(success=False, error="Failed to create organization")

    log.info("onboarding.completed", user_id=str(user_id), org_id=str(org_id))
    return OnboardingResult(success=True, organization_id=org_id)
