"""
Membership directory: read-only lookups of a user's (organization, role) pairs.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from compliance_api.core.errors import StoreUnavailable
from compliance_api.models.membership import Membership
from compliance_api.models.organization import Organization

log = structlog.get_logger()


async def get_memberships_for_user(
    user_id: uuid.UUID, session: AsyncSession
) -> list[Membership]:
    """All memberships of a user, oldest first."""
    try:
        result = await session.execute(
            select(Membership)
            .where(Membership.user_id == user_id)
            .order_by(Membership.created_at, Membership.org_id)
        )
    except SQLAlchemyError as exc:
        log.error("memberships.read_failed", user_id=str(user_id), error=str(exc))
        raise StoreUnavailable() from exc
    return list(result.scalars().all())


async def get_membership(
    user_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> Optional[Membership]:
    try:
        return await session.get(Membership, (user_id, org_id))
    except SQLAlchemyError as exc:
        log.error(
            "memberships.read_failed",
            user_id=str(user_id),
            org_id=str(org_id),
            error=str(exc),
        )
        raise StoreUnavailable() from exc


async def list_user_organizations(
    user_id: uuid.UUID, session: AsyncSession
) -> list[dict]:
    """List all orgs a user belongs to, with their role."""
    try:
        result = await session.execute(
            select(Organization, Membership.role)
            .join(Membership, Membership.org_id == Organization.id)
            .where(Membership.user_id == user_id)
            .order_by(Membership.created_at, Membership.org_id)
        )
    except SQLAlchemyError as exc:
        log.error("memberships.read_failed", user_id=str(user_id), error=str(exc))
        raise StoreUnavailable() from exc
    return [
        {
            "id": org.id,
            "name": org.name,
            "role": role,
            "created_at": org.created_at,
        }
        for org, role in result.all()
    ]
