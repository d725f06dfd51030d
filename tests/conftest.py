"""
Shared fixtures: an in-memory SQLite database per test and helpers to grant
project access.
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
import pytest_asyncio
from datetime import date
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base
from app.models import access, availability, iteration, member, team  # noqa: F401  (register tables)
from app.database import build_engine
from app.models.access import ProjectMembership

PROJECT_ID = "project-alpha"
USER_ID = "user-1"
OUTSIDER_ID = "user-2"


@pytest_asyncio.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        session.add(ProjectMembership(project_id=PROJECT_ID, user_id=USER_ID))
        await session.commit()
        yield session


@pytest.fixture
def sprint_dates():
    """Monday 2024-01-01 to Friday 2024-01-12: two full working weeks."""
    return date(2024, 1, 1), date(2024, 1, 12)


@pytest.fixture
def current_user():
    return {"user_id": USER_ID}


@pytest_asyncio.fixture
async def client(session_factory, db, current_user):
    from app.main import app
    from app.database import get_db
    from app.core.auth import get_current_user_id

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = lambda: current_user["user_id"]

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()
