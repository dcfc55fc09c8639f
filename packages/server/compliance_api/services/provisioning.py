"""
Organization provisioning: create an organization and its first admin membership.

Both entry points (explicit creation by a signed-in user, and onboarding
right after signup) go through `provision_organization` so the two-insert
sequence exists exactly once.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_api.core.config import get_settings
from compliance_api.core.errors import ProvisioningFailed, Unauthenticated
from compliance_api.models.membership import Membership
from compliance_api.models.organization import Organization
from compliance_api.models.user import User

from compliance_shared.schemas.common import Role

log = structlog.get_logger()


def derive_default_org_name(user: User, fallback: Optional[str] = None) -> str:
    """Full name, else the local part of the email, else the configured default."""
    if user.full_name and user.full_name.strip():
        return user.full_name.strip()
    if user.email:
        local_part = user.email.split("@", 1)[0].strip()
        if local_part:
            return local_part
    return fallback or get_settings().default_org_name


async def _insert_organization(
    session: AsyncSession, name: str, created_by: uuid.UUID
) -> Organization:
    org = Organization(name=name, created_by=created_by)
    session.add(org)
    await session.flush()
    return org


async def _insert_membership(
    session: AsyncSession, org_id: uuid.UUID, user_id: uuid.UUID, role: Role
) -> Membership:
    membership = Membership(user_id=user_id, org_id=org_id, role=role.value)
    session.add(membership)
    await session.flush()
    return membership


async def _rollback_quietly(session: AsyncSession, event: str, **context) -> bool:
    """Roll back the unit of work. Failures are logged, never raised."""
    try:
        await session.rollback()
    except SQLAlchemyError as exc:
        log.error(event, error=str(exc), **context)
        return False
    return True


async def _discard_organization(session: AsyncSession, org_id: uuid.UUID) -> None:
    """Compensate for a half-finished provisioning."""
    if await _rollback_quietly(session, "org.compensation_failed", org_id=str(org_id)):
        log.info("org.discarded", org_id=str(org_id))


async def provision_organization(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    name: str,
    role: Role = Role.BROKER_ADMIN,
) -> Organization:
    """
    Insert an organization and make `user_id` its member with `role`.

    Both rows are written in the session's current transaction; the caller's
    session scope commits them together. If the membership insert fails the
    transaction is rolled back, discarding the organization row, and a
    single ProvisioningFailed is raised.
    """
    try:
        org = await _insert_organization(session, name, user_id)
    except SQLAlchemyError as exc:
        await _rollback_quietly(session, "org.rollback_failed", user_id=str(user_id))
        log.error("org.create_failed", user_id=str(user_id), error=str(exc))
        raise ProvisioningFailed("Failed to create organization") from exc

    org_id = org.id
    try:
        await _insert_membership(session, org_id, user_id, role)
    except SQLAlchemyError as exc:
        log.error(
            "org.membership_failed",
            org_id=str(org_id),
            user_id=str(user_id),
            error=str(exc),
        )
        await _discard_organization(session, org_id)
        raise ProvisioningFailed("Failed to create organization membership") from exc

    log.info("org.created", org_id=str(org_id), creator=str(user_id), role=role.value)
    return org


async def create_organization_for_user(
    user: Optional[User], name: str, session: AsyncSession
) -> Organization:
    """Create an org on behalf of the signed-in user, who becomes its broker admin."""
    if user is None:
        raise Unauthenticated()
    return await provision_organization(session, user_id=user.id, name=name)
