"""
Integration tests for Organization endpoints.

Tests cover:
- Request schema validation
- Creating an org (authenticated and not)
- Listing orgs with the active one marked
- Switching the active org, including rejected switches
- Resolution of the current org after a membership is revoked
"""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import delete
from sqlmodel import select

from compliance_api.core import database
from compliance_api.core.auth import create_jwt
from compliance_api.models.membership import Membership
from compliance_api.models.organization import Organization

from conftest import add_org, add_user, csrf_headers, register


# ---------------------------------------------------------------------------
# Schema validation tests (no DB needed)
# ---------------------------------------------------------------------------

class TestOrgSchemas:
    def test_name_is_stripped(self):
        from compliance_shared.schemas.organizations import OrgCreateRequest
        assert OrgCreateRequest(name="  Lone Star Realty ").name == "Lone Star Realty"

    def test_blank_name_rejected(self):
        from compliance_shared.schemas.organizations import OrgCreateRequest
        with pytest.raises(Exception):
            OrgCreateRequest(name="   ")

    def test_name_too_long(self):
        from compliance_shared.schemas.organizations import OrgCreateRequest
        with pytest.raises(Exception):
            OrgCreateRequest(name="x" * 201)

    def test_switch_requires_uuid(self):
        from compliance_shared.schemas.organizations import OrgSwitchRequest
        with pytest.raises(Exception):
            OrgSwitchRequest(org_id="B")

    def test_onboarding_result_defaults(self):
        from compliance_shared.schemas.organizations import OnboardingResult
        result = OnboardingResult(success=True)
        assert result.organization_id is None
        assert result.error is None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _org_count() -> int:
    async with database.async_session_factory() as s:
        result = await s.execute(select(Organization))
        return len(result.scalars().all())


async def _seed_member(session, email: str, *org_names: str):
    user = await add_user(session, email)
    orgs = [await add_org(session, name, member=user) for name in org_names]
    token, _ = create_jwt(user.id, user.email)
    return user, orgs, {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# POST /api/v1/orgs
# ---------------------------------------------------------------------------

class TestCreateOrg:
    @pytest.mark.asyncio
    async def test_unauthenticated_is_rejected_without_writes(self, client):
        resp = await client.post("/api/v1/orgs", json={"name": "Ghost Realty"})

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHENTICATED"
        assert await _org_count() == 0

    @pytest.mark.asyncio
    async def test_create_makes_new_org_active(self, client):
        await register(client, "jane@example.com", full_name="Jane Doe")

        resp = await client.post(
            "/api/v1/orgs", json={"name": "Second Office"}, headers=csrf_headers(client)
        )

        assert resp.status_code == 201
        new_id = resp.json()["organization_id"]
        current = await client.get("/api/v1/orgs/current")
        assert current.status_code == 200
        assert current.json() == {"id": new_id, "name": "Second Office", "role": "broker_admin"}

    @pytest.mark.asyncio
    async def test_cookie_session_requires_csrf(self, client):
        await register(client, "jane@example.com")

        resp = await client.post("/api/v1/orgs", json={"name": "No Token"})

        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "CSRF_VALIDATION_FAILED"

    @pytest.mark.asyncio
    async def test_invalid_name(self, client, session):
        _, _, headers = await _seed_member(session, "jane@example.com", "A")
        resp = await client.post("/api/v1/orgs", json={"name": ""}, headers=headers)
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# GET /api/v1/orgs
# ---------------------------------------------------------------------------

class TestListOrgs:
    @pytest.mark.asyncio
    async def test_lists_memberships_with_active(self, client):
        await register(client, "jane@example.com", full_name="Jane Doe")
        created = await client.post(
            "/api/v1/orgs", json={"name": "Second Office"}, headers=csrf_headers(client)
        )

        resp = await client.get("/api/v1/orgs")

        assert resp.status_code == 200
        body = resp.json()
        assert sorted(item["name"] for item in body["data"]) == ["Jane Doe", "Second Office"]
        assert all(item["role"] == "broker_admin" for item in body["data"])
        assert body["active_org_id"] == created.json()["organization_id"]

    @pytest.mark.asyncio
    async def test_empty_for_user_without_orgs(self, client, session):
        _, _, headers = await _seed_member(session, "nobody@example.com")
        resp = await client.get("/api/v1/orgs", headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {"data": [], "active_org_id": None}

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        resp = await client.get("/api/v1/orgs")
        assert resp.status_code == 401


# ---------------------------------------------------------------------------
# POST /api/v1/orgs/switch and GET /api/v1/orgs/current
# ---------------------------------------------------------------------------

class TestSwitchOrg:
    @pytest.mark.asyncio
    async def test_switch_only_to_own_orgs(self, client, session):
        """u2 belongs to A only: switching to B fails, switching to A succeeds."""
        await register(client, "u2@example.com")
        async with database.async_session_factory() as s:
            membership = (await s.execute(select(Membership))).scalars().one()
            org_a = membership.org_id
        org_b = (await add_org(session, "B")).id
        cookie_before = client.cookies.get("cd_active_org")

        rejected = await client.post(
            "/api/v1/orgs/switch", json={"org_id": str(org_b)}, headers=csrf_headers(client)
        )

        assert rejected.status_code == 403
        assert rejected.json()["error"] == {
            "code": "NOT_A_MEMBER",
            "message": "Not a member of that organization",
            "status": 403,
        }
        assert "cd_active_org" not in rejected.headers.get("set-cookie", "")
        assert client.cookies.get("cd_active_org") == cookie_before

        accepted = await client.post(
            "/api/v1/orgs/switch", json={"org_id": str(org_a)}, headers=csrf_headers(client)
        )

        assert accepted.status_code == 200
        assert accepted.json() == {"success": True}
        current = await client.get("/api/v1/orgs/current")
        assert current.json()["id"] == str(org_a)

    @pytest.mark.asyncio
    async def test_switch_between_memberships(self, client):
        await register(client, "jane@example.com", full_name="Jane Doe")
        first = (await client.get("/api/v1/orgs/current")).json()["id"]
        await client.post(
            "/api/v1/orgs", json={"name": "Second Office"}, headers=csrf_headers(client)
        )

        resp = await client.post(
            "/api/v1/orgs/switch", json={"org_id": first}, headers=csrf_headers(client)
        )

        assert resp.status_code == 200
        assert (await client.get("/api/v1/orgs/current")).json()["name"] == "Jane Doe"

    @pytest.mark.asyncio
    async def test_revoked_membership_not_honoured(self, client):
        await register(client, "jane@example.com", full_name="Jane Doe")
        home = (await client.get("/api/v1/orgs/current")).json()["id"]
        created = await client.post(
            "/api/v1/orgs", json={"name": "Second Office"}, headers=csrf_headers(client)
        )
        second = uuid.UUID(created.json()["organization_id"])

        async with database.async_session_factory() as s:
            await s.execute(delete(Membership).where(Membership.org_id == second))
            await s.commit()

        current = await client.get("/api/v1/orgs/current")
        assert current.status_code == 200
        assert current.json()["id"] == home

    @pytest.mark.asyncio
    async def test_current_requires_onboarding(self, client, session):
        _, _, headers = await _seed_member(session, "nobody@example.com")

        resp = await client.get("/api/v1/orgs/current", headers=headers)

        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "ONBOARDING_REQUIRED"

    @pytest.mark.asyncio
    async def test_bearer_session_switch(self, client, session):
        _, (a, b), headers = await _seed_member(session, "agent@example.com", "A", "B")

        resp = await client.post("/api/v1/orgs/switch", json={"org_id": str(b.id)}, headers=headers)

        assert resp.status_code == 200
        assert "cd_active_org=" in resp.headers["set-cookie"]
