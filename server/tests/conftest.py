"""Test configuration and fixtures."""

import os

# Settings are read at import time; point the application at SQLite first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("ENABLE_BACKGROUND_WORKERS", "false")
os.environ.setdefault("BEARER_TOKEN_SECRET", "test-secret-key-for-venue-booking-suite")

from datetime import time  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from venue_booking.core.database import Base, get_db  # noqa: E402
from venue_booking.models import *  # noqa: E402,F403 - register all models
from venue_booking.schemas.team import CreateTeamRequest  # noqa: E402
from venue_booking.schemas.venue import CreateVenueRequest  # noqa: E402
from venue_booking.services.team_service import TeamService  # noqa: E402
from venue_booking.services.venue_service import VenueService  # noqa: E402
from support import ADMIN_ID, CUSTOMER_ID, MANAGER_ID, OTHER_USER_ID, USER_ID, auth_headers  # noqa: E402

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create a test FastAPI application."""
    from fastapi import FastAPI
    from fastapi.exceptions import RequestValidationError

    from venue_booking.core.exceptions import (
        ProblemDetailsException,
        generic_exception_handler,
        problem_details_handler,
        request_validation_handler,
    )
    from venue_booking.core.middleware import setup_middleware
    from venue_booking.routers import admin_booking, booking, health, metrics, team, venue

    # Simplified app without lifespan, tracing or workers
    app = FastAPI(
        title="Venue Booking API (Test)",
        description="Test version of the API",
        version="1.0.0-test",
    )

    setup_middleware(app, enable_logging=False)

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.router)
    app.include_router(admin_booking.router)
    app.include_router(booking.router)
    app.include_router(venue.router)
    app.include_router(team.router)
    app.include_router(metrics.router)

    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN_ID, ["superadmin"])


@pytest.fixture
def manager_headers():
    return auth_headers(MANAGER_ID, ["manager"])


@pytest.fixture
def user_headers():
    return auth_headers(USER_ID, ["user"])


@pytest.fixture
def other_user_headers():
    return auth_headers(OTHER_USER_ID, ["user"])


@pytest.fixture
def customer_headers():
    return auth_headers(CUSTOMER_ID, ["customer"])


@pytest.fixture
def sample_venue_data():
    """Sample venue data for testing."""
    return {
        "name": "Main Hall",
        "location": "Building A",
        "capacity": 120,
        "description": "Indoor multi-purpose hall",
        "workingStartTime": "06:00:00",
        "workingEndTime": "22:00:00",
        "bufferTimeMinutes": 15,
    }


@pytest_asyncio.fixture
async def venue(test_session):
    """Venue open 06:00-22:00."""
    return await VenueService(test_session).create_venue(
        CreateVenueRequest(
            name="Main Hall",
            location="Building A",
            capacity=120,
            working_start_time=time(6, 0),
            working_end_time=time(22, 0),
        )
    )


@pytest_asyncio.fixture
async def other_venue(test_session):
    """Second venue, used to show bookings do not leak across venues."""
    return await VenueService(test_session).create_venue(
        CreateVenueRequest(name="Training Pitch", capacity=40)
    )


@pytest_asyncio.fixture
async def team(test_session):
    return await TeamService(test_session).create_team(
        CreateTeamRequest(name="Under 16s", description="Youth squad")
    )


@pytest_asyncio.fixture
async def other_team(test_session):
    return await TeamService(test_session).create_team(CreateTeamRequest(name="Seniors"))
