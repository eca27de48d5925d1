"""Shared test fixtures and configuration."""
import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SHOP_NAME", "Test Coffee")

from coffee_cashier.main import app
from coffee_cashier.core.config import settings
from coffee_cashier.core.dependencies import (
    get_agent_service,
    get_realtime_connector,
    get_token_service,
)
from coffee_cashier.db.database import get_db
from coffee_cashier.db.models import Base
from coffee_cashier.services.agent.agent import AgentService
from coffee_cashier.services.catalog.in_memory_catalog import get_catalog


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def function_call(name, arguments="{}", call_id="call_1"):
    """Responses API function_call output item."""
    return SimpleNamespace(type="function_call", name=name, arguments=arguments, call_id=call_id)


def message(text):
    """Responses API assistant message output item."""
    return SimpleNamespace(
        type="message",
        content=[SimpleNamespace(type="output_text", text=text)],
    )


def response(*output, response_id="resp_1"):
    """Responses API result."""
    return SimpleNamespace(id=response_id, output=list(output))


@pytest.fixture
def openai_items():
    """Builders for fake Responses API output."""
    return SimpleNamespace(function_call=function_call, message=message, response=response)


@pytest.fixture
def catalog():
    """The packaged catalog."""
    return get_catalog()


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def override_get_db(test_db):
    """Override get_db dependency with test database."""
    async def _override_get_db():
        yield test_db
    return _override_get_db


@pytest.fixture
def mock_openai():
    """Mock OpenAI client whose Responses API returns a plain greeting."""
    mock_client = Mock()
    mock_client.responses.create = AsyncMock(return_value=response(message("Hi! What can I get you?")))
    return mock_client


@pytest.fixture
def mock_token_service():
    """Token service that mints a fixed key."""
    service = Mock()
    service.mint = AsyncMock(return_value="ek_test")
    return service


@pytest.fixture
def test_client(override_get_db, mock_openai, mock_token_service, monkeypatch):
    """Create FastAPI test client with overrides."""
    monkeypatch.setattr(settings, "openai_api_key", "test-key")

    # Override dependencies
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_agent_service] = lambda: AgentService(client=mock_openai)
    app.dependency_overrides[get_token_service] = lambda: mock_token_service
    app.dependency_overrides[get_realtime_connector] = lambda: Mock()

    client = TestClient(app)

    yield client

    # Clear overrides
    app.dependency_overrides.clear()
