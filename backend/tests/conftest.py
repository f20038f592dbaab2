"""
Shared fixtures: a throwaway SQLite database per test, an ASGI client bound
to it, and helpers for creating profiles and issues directly in the store.
"""

import os
import tempfile

# Settings are read once at import time, so the test environment goes first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="citypulse-storage-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from citypulse.api.deps import get_db
from citypulse.core.security import create_access_token, get_password_hash
from citypulse.db.session import build_engine, init_db
from citypulse.main import app
from citypulse.models.issue import Issue, IssueCategory, IssueStatus
from citypulse.models.user import Profile, UserRole


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
async def engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'citypulse.db'}")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# =============================================================================
# HTTP client
# =============================================================================

@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# =============================================================================
# Data helpers
# =============================================================================

@pytest.fixture
def auth_headers():
    def _headers(profile: Profile) -> dict:
        return {"Authorization": f"Bearer {create_access_token(str(profile.id))}"}

    return _headers


@pytest.fixture
def make_profile(session_factory):
    async def _make(email: str, role: UserRole = UserRole.citizen, password: str = "secret123", **fields) -> Profile:
        fields.setdefault("full_name", email.split("@")[0].title())
        async with session_factory() as session:
            profile = Profile(email=email, password_hash=get_password_hash(password), role=role, **fields)
            session.add(profile)
            await session.commit()
            await session.refresh(profile)
            return profile

    return _make


@pytest.fixture
def make_issue(session_factory):
    async def _make(reporter: Profile, **fields) -> Issue:
        values = {
            "title": "Pothole on Main Street",
            "description": "Large pothole near the bus stop",
            "category": IssueCategory.road_maintenance,
            "status": IssueStatus.unresolved,
            "latitude": 12.97,
            "longitude": 77.59,
            "ward": "Ward 1",
        }
        values.update(fields)
        async with session_factory() as session:
            issue = Issue(user_id=reporter.id, **values)
            session.add(issue)
            await session.commit()
            await session.refresh(issue)
            return issue

    return _make


@pytest.fixture
async def citizen(make_profile):
    return await make_profile("citizen@example.com")


@pytest.fixture
async def moderator(make_profile):
    return await make_profile("moderator@example.com", role=UserRole.moderator)


@pytest.fixture
async def admin(make_profile):
    return await make_profile("admin@example.com", role=UserRole.admin)

