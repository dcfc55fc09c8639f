"""
Organization API endpoints.

GET    /api/v1/orgs           — List orgs for the authenticated user
POST   /api/v1/orgs           — Create a new org (creator becomes broker admin)
POST   /api/v1/orgs/switch    — Make another org active for this session
GET    /api/v1/orgs/current   — The org the session currently operates on
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_api.core.auth import OrgContext, get_current_user, get_org_context
from compliance_api.core.database import get_session
from compliance_api.core.errors import NoOrganization
from compliance_api.core.org_context import read_active_org, set_active_org_cookie
from compliance_api.models.user import User
from compliance_api.services import memberships as membership_service
from compliance_api.services import organizations as org_service
from compliance_api.services.provisioning import create_organization_for_user
from compliance_shared.schemas.organizations import (
    CurrentOrgResponse,
    OrgCreateRequest,
    OrgCreateResponse,
    OrgListResponse,
    OrgSwitchRequest,
    OrgSwitchResponse,
)

log = structlog.get_logger()

router = APIRouter()


@router.get("/orgs", response_model=OrgListResponse, tags=["Organizations"])
async def list_orgs(
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """List orgs the authenticated user belongs to, with the active one marked."""
    items = await membership_service.list_user_organizations(user.id, session)
    active_org_id = None
    if items:
        try:
            org, _ = await org_service.resolve_current_org(
                user, read_active_org(request, user.id), session
            )
            active_org_id = org.id
        except NoOrganization:
            pass
    return OrgListResponse(data=items, active_org_id=active_org_id)


@router.post(
    "/orgs", response_model=OrgCreateResponse, status_code=201, tags=["Organizations"]
)
async def create_org(
    body: OrgCreateRequest,
    response: Response,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Create a new organization and make it the active one."""
    org = await create_organization_for_user(user, body.name, session)
    set_active_org_cookie(response, user.id, org.id)
    return OrgCreateResponse(organization_id=org.id)


@router.post("/orgs/switch", response_model=OrgSwitchResponse, tags=["Organizations"])
async def switch_org(
    body: OrgSwitchRequest,
    response: Response,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Switch the active org. Rejected unless the user is a member of the target."""
    membership = await org_service.switch_organization(user, body.org_id, session)
    set_active_org_cookie(response, user.id, membership.org_id)
    return OrgSwitchResponse(success=True)


@router.get("/orgs/current", response_model=CurrentOrgResponse, tags=["Organizations"])
async def current_org(ctx: OrgContext = Depends(get_org_context)):
    """The org this session operates on; 409 when the user still needs onboarding."""
    return CurrentOrgResponse(id=ctx.org_id, name=ctx.org.name, role=ctx.role)
