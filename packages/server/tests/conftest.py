"""
Shared fixtures: in-memory SQLite per test, stubbed Redis, ASGI client.
"""

import os

os.environ["CD_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["CD_COOKIE_SECURE"] = "false"
os.environ["CD_SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789"
os.environ["CD_LOG_FORMAT"] = "console"

from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import compliance_api.models  # noqa: F401
from compliance_api.core import database
from compliance_api.models.membership import Membership
from compliance_api.models.organization import Organization
from compliance_api.models.user import User

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture
async def db_engine(monkeypatch):
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(database, "engine", engine)
    monkeypatch.setattr(database, "async_session_factory", factory)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(db_engine):
    async with database.async_session_factory() as s:
        yield s


@pytest.fixture(autouse=True)
def fake_redis():
    redis = AsyncMock()
    redis.exists = AsyncMock(return_value=0)
    redis.setex = AsyncMock()
    with patch("compliance_api.core.auth.get_redis", AsyncMock(return_value=redis)):
        yield redis


@pytest.fixture
async def client(db_engine):
    from compliance_api.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def add_user(
    session: AsyncSession,
    email: str = "jane@example.com",
    full_name: Optional[str] = None,
) -> User:
    user = User(email=email, full_name=full_name)
    session.add(user)
    await session.commit()
    return user


async def add_org(
    session: AsyncSession, name: str, member: Optional[User] = None, role: str = "agent"
) -> Organization:
    org = Organization(name=name)
    session.add(org)
    await session.flush()
    if member is not None:
        session.add(Membership(user_id=member.id, org_id=org.id, role=role))
    await session.commit()
    return org


async def register(client: AsyncClient, email: str, full_name: Optional[str] = None):
    body = {"email": email, "password": TEST_PASSWORD}
    if full_name is not None:
        body["full_name"] = full_name
    return await client.post("/auth/register", json=body)


def csrf_headers(client: AsyncClient) -> dict:
    return {"X-CSRF-Token": client.cookies.get("cd_csrf")}
