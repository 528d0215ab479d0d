"""
Shared test fixtures for the site attendance test suite.

Async throughout (aiosqlite + AsyncSession); the engine tests use an
in-memory directory instead of the database.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["TIMEZONE"] = "Asia/Tokyo"
os.environ["TIME_CALC_ENABLED"] = "true"
os.environ["TIME_CALC_ROUND_MINUTES"] = "15"
os.environ["TIME_CALC_ROUND_MODE"] = "nearest"
os.environ["TIME_CALC_BREAK_MINUTES"] = "0"
os.environ["ENABLE_BREAK_POLICY"] = "true"
os.environ["UPSTREAM_RETRY_BASE_DELAY"] = "0"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from site_attendance.api.v1.deps import get_db, site_cache
from site_attendance.db.base import Base
from site_attendance.main import app
from site_attendance.services.break_policy import BreakPolicyResolver
from site_attendance.services.timecalc import TimeCalcConfig

from helpers import InMemoryDirectory

test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before usage and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    site_cache.invalidate()

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with TestingSessionLocal() as session:
        yield session


# ── Engine fixtures ─────────────────────────────────────────────────
@pytest.fixture
def directory() -> InMemoryDirectory:
    return InMemoryDirectory()


@pytest.fixture
def resolver(directory: InMemoryDirectory) -> BreakPolicyResolver:
    return BreakPolicyResolver(directory, is_enabled=lambda: True)


@pytest.fixture
def calc_config() -> TimeCalcConfig:
    return TimeCalcConfig(enabled=True, round_minutes=15, round_mode="nearest", break_minutes=0)

