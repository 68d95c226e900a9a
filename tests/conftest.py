"""
Shared fixtures for PaperForum API tests.

Each test function gets its own database: a fresh in-memory SQLite database
by default, or ``TEST_DATABASE_URL`` (e.g. a PostgreSQL test database) when
that is set, with tables created before and dropped after the test.

Requests get their own session from the per-test session factory, exactly
like ``get_db`` in production.  ``db_session`` is a separate session for
seeding and inspecting data: commit seeded rows before making requests.
"""
from __future__ import annotations

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Override DATABASE_URL *before* any app module is imported, so that
# settings.DATABASE_URL and the global engine never point at a real database.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["BACKGROUND_JOBS_ENABLED"] = "false"

from paperforum.database import Base, _engine_kwargs, enable_sqlite_foreign_keys, get_db  # noqa: E402
from paperforum.main import api_limiter, app, auth_limiter  # noqa: E402
from paperforum.services.cache import response_cache  # noqa: E402
from paperforum.services.security import login_tracker  # noqa: E402

DEFAULT_PASSWORD = "password123"


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, **_engine_kwargs(TEST_DATABASE_URL))
    enable_sqlite_foreign_keys(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding and inspecting data directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with ``get_db`` overridden to
    use the per-test database.
    """

    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_in_memory_state():
    """Rate-limit windows, login lockouts and cached responses are process-wide; start each test clean."""
    api_limiter.reset()
    auth_limiter.reset()
    login_tracker.reset()
    response_cache.clear()
    yield
    api_limiter.reset()
    auth_limiter.reset()
    login_tracker.reset()
    response_cache.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client: AsyncClient):
    """Register a user through the API; returns ``{"id", "token", "headers"}``."""

    async def _register(email: str = "author@example.com", name: str = "Test Author",
                        password: str = DEFAULT_PASSWORD) -> dict:
        resp = await client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return {"id": data["user"]["id"], "token": data["token"], "headers": bearer(data["token"])}

    return _register


@pytest.fixture
def create_paper(client: AsyncClient):
    """Create a paper through the API as the user owning *headers*."""

    async def _create(headers: dict, **overrides) -> dict:
        body = {
            "title": "Graph Neural Networks for Protein Structure Prediction",
            "abstract": "We apply graph neural networks to predict protein folding.",
            "content": "Full text.",
            "authors": ["Jane Smith", "John Doe"],
            "research_field": "Biotechnology",
            "keywords": ["protein", "graph neural networks"],
            "status": "published",
        }
        body.update(overrides)
        resp = await client.post("/api/papers", json=body, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
