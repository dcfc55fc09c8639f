"""
Organization-related Pydantic schemas shared between the API and its clients.

Covers: org creation, listing, switching the active org, and the
onboarding result returned after signup.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .common import Role


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class OrgCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Organization name must not be blank")
        return value


class OrgSwitchRequest(BaseModel):
    org_id: uuid.UUID


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class OrgCreateResponse(BaseModel):
    organization_id: uuid.UUID


class OrgSwitchResponse(BaseModel):
    success: bool = True


class OrgMembershipItem(BaseModel):
    id: uuid.UUID
    name: str
    role: Role
    created_at: Optional[datetime] = None


class OrgListResponse(BaseModel):
    data: list[OrgMembershipItem]
    active_org_id: Optional[uuid.UUID] = None


class CurrentOrgResponse(BaseModel):
    id: uuid.UUID
    name: str
    role: Role


class OnboardingResult(BaseModel):
    """Outcome of the post-signup onboarding trigger. Never raised, always returned."""

    success: bool
    organization_id: Optional[uuid.UUID] = None
    error: Optional[str] = None
