"""
Pytest configuration and shared fixtures.

API tests run the FastAPI app in-process through httpx's ASGI transport
against a fresh in-memory DuckDB per test.
"""
from typing import Any, Dict, List

import httpx
import pytest
import pytest_asyncio

from core.config import AppConfig, AuthConfig, DatabaseConfig, StatsConfig, WebConfig
from core.models import User, UserRole
from core.repositories import (
    AccountRepository,
    CampaignRepository,
    Database,
    OrderRepository,
    UserRepository,
)
from tests.helpers import TEST_PASSWORD, TEST_SECRET, days_ago, make_order
from web.main import create_app
from web.services.auth_service import hash_password


@pytest.fixture
def config() -> AppConfig:
    """Test configuration: in-memory database, UTC reporting, no rate limits."""
    return AppConfig(
        env="dev",
        database=DatabaseConfig(path=":memory:"),
        auth=AuthConfig(secret_key=TEST_SECRET, cookie_secure=False),
        web=WebConfig(rate_limit_enabled=False),
        stats=StatsConfig(timezone="UTC"),
    )


@pytest_asyncio.fixture
async def db():
    """Connected in-memory DuckDB with the schema created."""
    database = Database(":memory:")
    await database.connect()
    yield database
    await database.close()


@pytest.fixture
def accounts(db) -> AccountRepository:
    return AccountRepository(db)


@pytest.fixture
def orders(db) -> OrderRepository:
    return OrderRepository(db)


@pytest.fixture
def campaigns(db) -> CampaignRepository:
    return CampaignRepository(db)


@pytest.fixture
def users(db) -> UserRepository:
    return UserRepository(db)


@pytest.fixture
def app(config, db):
    return create_app(config, db)


@pytest_asyncio.fixture
async def client(app):
    """Unauthenticated client."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest_asyncio.fixture
async def user(users) -> User:
    return await users.create(
        email="analyst@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        name="Analyst",
        role=UserRole.ADMIN.value,
    )


@pytest.fixture
def token(app, user) -> str:
    return app.state.sessions.issue(user)


@pytest_asyncio.fixture
async def auth_client(app, token):
    """Client that sends a valid bearer token."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
        headers={"Authorization": f"Bearer {token}"},
    ) as c:
        yield c


@pytest.fixture
def sample_orders() -> List[Dict[str, Any]]:
    """Two orders on the same day: 300 total amount, 40 total commission."""
    return [
        make_order("o-1", 100.0, 10.0, days_ago(1)),
        make_order("o-2", 200.0, 30.0, days_ago(1, hours=2)),
    ]
