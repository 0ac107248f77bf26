"""
Pytest configuration and fixtures.
"""
import os

# Must be set before delivery_service.core.config is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("EVENTS_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import delivery_service.models  # noqa: F401
from delivery_service.core.database import Base, get_db
from delivery_service.main import app
from delivery_service.services.agent_directory import AgentDirectory
from delivery_service.services.assignment import AssignmentPolicy
from delivery_service.services.delivery_ledger import DeliveryLedger
from delivery_service.services.event_publisher import InMemoryEventPublisher
from delivery_service.services.events import DeliveryEventEmitter
from delivery_service.services.status_transitions import StatusTransitionHandler


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create async engine for tests."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    """Event sink that records everything published."""
    return InMemoryEventPublisher()


@pytest.fixture
def emitter(publisher) -> DeliveryEventEmitter:
    return DeliveryEventEmitter(publisher)


@pytest.fixture
def agents(db_session, emitter) -> AgentDirectory:
    return AgentDirectory(db_session, emitter)


@pytest.fixture
def ledger(db_session, emitter) -> DeliveryLedger:
    return DeliveryLedger(db_session, emitter)


@pytest.fixture
def assignment(db_session, agents, ledger, emitter) -> AssignmentPolicy:
    return AssignmentPolicy(db_session, agents, ledger, emitter)


@pytest.fixture
def transitions(db_session, ledger, emitter) -> StatusTransitionHandler:
    return StatusTransitionHandler(db_session, ledger, emitter)


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    publisher: InMemoryEventPublisher,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    original_publisher = app.state.event_publisher
    app.state.event_publisher = publisher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.event_publisher = original_publisher


# Sample data fixtures
@pytest.fixture
def sample_agent_data():
    """Sample agent data for tests (snake_case, as the services take it)."""
    return {
        "name": "John Doe",
        "email": "john@example.com",
        "phone": "123-456-7890",
        "vehicle_type": "Bike",
        "license_number": "LIC123",
    }


@pytest.fixture
def sample_delivery_data():
    """Sample delivery data for tests."""
    return {
        "order_id": 1001,
        "restaurant_id": 12,
        "customer_id": 345,
        "pickup_address": "123 Restaurant St",
        "delivery_address": "456 Customer Ave",
    }


@pytest_asyncio.fixture
async def active_agent(agents, sample_agent_data):
    """Admin-created agent, immediately dispatchable."""
    return await agents.create_agent_by_admin(**sample_agent_data)


@pytest_asyncio.fixture
async def pending_delivery(ledger, sample_delivery_data):
    return await ledger.create_delivery(**sample_delivery_data)
