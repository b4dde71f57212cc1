import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("RAW_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ANALYSIS_PROVIDER", "gemini")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")

import json
import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient
from httpx import ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import get_db
from app.core.dependencies import get_current_user_with_provisioning
from app.models.base import Base
from app.models.user import User
from app.services import llm_service

# CRITICAL: Use in-memory SQLite for tests to avoid connection conflicts
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

VALID_ANALYSIS = {
    "marketDemand": 8,
    "competitorAnalysis": "Two established players, neither targets solo founders.",
    "techStackSuggestion": ["A", "B"],
    "featureSuggestions": ["F1", "F2"],
    "mrrProjection": {"min": 1000, "max": 5000},
    "effortEstimation": {"months": 3, "teamSize": 2},
}


@pytest_asyncio.fixture(scope="function")
async def session_factory():
    """
    A fresh in-memory database per test.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool, # Required for SQLite
        connect_args={"check_same_thread": False}, # Required for SQLite
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,  # CRITICAL: Prevents DetachedInstanceError
    )

    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Creates a database session for the test.
    This is the SINGLE source of truth for the database session.
    """
    async with session_factory() as session:
        yield session


async def make_user(db: AsyncSession, email: str) -> User:
    user = User(supabase_auth_id=uuid.uuid4(), email=email)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def test_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "founder@example.com")


@pytest_asyncio.fixture(scope="function")
async def other_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "someone-else@example.com")


@pytest_asyncio.fixture(scope="function")
async def test_client(db_session: AsyncSession, test_user: User) -> AsyncGenerator[AsyncClient, None]:
    """
    Creates an HTTP client with the database and auth dependencies overridden.
    Requests are made as `test_user`.
    """
    async def override_get_db():
        yield db_session

    async def override_get_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_with_provisioning] = override_get_user

    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


class FakeProvider:
    """
    Stands in for llm_service.generate_text. Each call pops the next queued
    reply; a queued exception is raised instead of returned.
    """
    def __init__(self):
        self.replies = []
        self.prompts = []

    def reply_with(self, reply):
        self.replies.append(reply)

    def reply_with_analysis(self, analysis=None, prose=True):
        body = json.dumps(analysis or VALID_ANALYSIS)
        self.replies.append(f"Here is my assessment:\n{body}\nGood luck!" if prose else body)

    async def __call__(self, prompt, provider, **kwargs):
        self.prompts.append((provider, prompt))
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture
def fake_provider(monkeypatch) -> FakeProvider:
    provider = FakeProvider()
    monkeypatch.setattr(llm_service, "generate_text", provider)
    return provider
