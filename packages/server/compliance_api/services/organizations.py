"""
Organization service: switching and resolving the active organization.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_api.core.errors import NoOrganization, NotAMember, StoreUnavailable
from compliance_api.models.membership import Membership
from compliance_api.models.organization import Organization
from compliance_api.models.user import User
from compliance_api.services.memberships import get_memberships_for_user

log = structlog.get_logger()


def _find_membership(
    memberships: list[Membership], org_id: Optional[uuid.UUID]
) -> Optional[Membership]:
    if org_id is None:
        return None
    return next((m for m in memberships if m.org_id == org_id), None)


async def switch_organization(
    user: User, target_org_id: uuid.UUID, session: AsyncSession
) -> Membership:
    """Validate that `user` may make `target_org_id` active. Raises NotAMember otherwise."""
    memberships = await get_memberships_for_user(user.id, session)
    membership = _find_membership(memberships, target_org_id)
    if membership is None:
        log.warning(
            "org.switch_rejected", user_id=str(user.id), org_id=str(target_org_id)
        )
        raise NotAMember()
    log.info("org.switched", user_id=str(user.id), org_id=str(target_org_id))
    return membership


async def resolve_current_org(
    user: User,
    selected_org_id: Optional[uuid.UUID],
    session: AsyncSession,
) -> tuple[Organization, Membership]:
    """
    Return the organization the request operates on.

    The persisted selection is honoured only while the user is still a member
    of it; otherwise the user's earliest membership is used.
    """
    memberships = await get_memberships_for_user(user.id, session)
    if not memberships:
        raise NoOrganization()

    membership = _find_membership(memberships, selected_org_id)
    if membership is None:
        if selected_org_id is not None:
            log.info(
                "active_org.stale",
                user_id=str(user.id),
                org_id=str(selected_org_id),
            )
        membership = memberships[0]

    try:
        org = await session.get(Organization, membership.org_id)
    except SQLAlchemyError as exc:
        raise StoreUnavailable() from exc
    if org is None:
        # Membership row outlived its organization.
        raise NoOrganization()
    return org, membership
