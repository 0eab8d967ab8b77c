import os
import sys
from datetime import date, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Add the app directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app import models  # noqa: F401
from app.api.deps.scheduling import get_calendar
from app.core.database import Base, get_db
from app.main import app
from app.schemas.calendar import BusinessCalendar

# One in-memory SQLite database per test; StaticPool keeps it on one connection
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# Monday 2 June 2025, 08:00 workshop time
FIXED_NOW = datetime(2025, 6, 2, 8, 0, 0)
TUESDAY = date(2025, 6, 3)
SUNDAY = date(2025, 6, 8)


@pytest.fixture
async def db():
    """Create a fresh database session for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)  # Clean slate
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def calendar() -> BusinessCalendar:
    """Default workshop calendar: Mon-Sat 09:00-18:00, lunch 12-13, 3 bays."""
    return BusinessCalendar()


@pytest.fixture
def mock_datetime() -> datetime:
    """Fixed "now" for consistent testing."""
    return FIXED_NOW


@pytest.fixture(autouse=True)
def override_dependencies(db: AsyncSession, calendar: BusinessCalendar):
    """Point the app at the test database and calendar."""

    async def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_calendar] = lambda: calendar
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    """HTTP client bound to the ASGI app."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


def next_working_date(calendar: BusinessCalendar, min_days_ahead: int = 2) -> date:
    """First working, unblocked date at least ``min_days_ahead`` from today.

    API requests use the real clock, so their dates are relative to today.
    """
    day = calendar.now().date() + timedelta(days=min_days_ahead)
    while not calendar.is_working_day(day) or calendar.is_blocked_date(day):
        day += timedelta(days=1)
    return day


# Import all scheduling fixtures to make them available
pytest_plugins = ["tests.fixtures.scheduling_fixtures"]
