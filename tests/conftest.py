#!/usr/bin/env python3
"""
Pytest configuration and shared fixtures.

Every test gets its own in-memory SQLite database (StaticPool keeps the single
connection alive for the test) and an httpx client wired to the FastAPI app
with the session dependency pointed at that database.
"""

import os
import sys

# Settings are read at import time; configure before importing the app
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_API_KEY = "test_api_key"

os.environ.update({
    "APP_ENV": "testing",
    "DATABASE_URL": TEST_DATABASE_URL,
    "STOREHOURS_API_KEY": TEST_API_KEY,
    "DEFAULT_TIMEZONE": "Australia/Sydney",
    "LOG_LEVEL": "WARNING",
})

# Add the project root to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import storehours.db.base  # noqa: F401  registers models on Base.metadata
from storehours.db.models.merchant import Merchant
from storehours.db.models.schedule import MerchantModeSchedule, MerchantOpeningHour, MerchantSpecialHour
from storehours.db.session import Base, get_session


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """httpx client over ASGI; one fresh session per request, like production."""
    from storehours.main import app

    async def _test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _test_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def api_headers():
    return {"X-API-Key": TEST_API_KEY}


@pytest.fixture
def seed_merchant(session_factory):
    """Insert a merchant with optional schedule rows; returns its code.

    ``opening_hours`` / ``mode_schedules`` / ``special_hours`` are lists of
    column dicts, everything else is passed to ``Merchant``.
    """
    async def _seed(code="demo", *, opening_hours=(), mode_schedules=(), special_hours=(), **fields):
        fields.setdefault("name", "Demo Kitchen")
        fields.setdefault("timezone", "Australia/Sydney")
        merchant = Merchant(
            code=code,
            opening_hours=[MerchantOpeningHour(**h) for h in opening_hours],
            mode_schedules=[MerchantModeSchedule(**s) for s in mode_schedules],
            special_hours=[MerchantSpecialHour(**s) for s in special_hours],
            **fields,
        )
        async with session_factory() as session:
            session.add(merchant)
            await session.commit()
        return code

    return _seed


# Pytest configuration hooks
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: Pure unit tests with no external dependencies")
    config.addinivalue_line("markers", "essential: Core functionality tests (< 2 minutes total)")
    config.addinivalue_line("markers", "integration: Tests that go through the database or HTTP layer")
    config.addinivalue_line("markers", "slow: Long-running tests (> 30 seconds each)")


def pytest_collection_modifyitems(config, items):
    """Run pure unit tests first, database/HTTP tests after"""
    def test_priority(item):
        if item.get_closest_marker("unit"):
            return 0
        elif item.get_closest_marker("integration"):
            return 2
        elif item.get_closest_marker("slow"):
            return 3
        return 1

    items[:] = sorted(items, key=test_priority)
