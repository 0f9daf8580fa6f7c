import asyncio
from typing import Any

import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient
from httpx import AsyncClient, ASGITransport

from decisionfindr.main import app
from decisionfindr.database import get_database
from decisionfindr.storage.kv_store import MongoKeyValueStore
from decisionfindr.storage.user_store import UserScopedStore


@pytest_asyncio.fixture
async def mock_db():
    """Provide a mock MongoDB database for testing."""
    client = AsyncMongoMockClient()
    db = client["test_db"]
    yield db
    client.close()


@pytest.fixture
def kv(mock_db):
    """Durable key-value store backed by the mock database."""
    return MongoKeyValueStore(mock_db)


@pytest.fixture
def store(kv):
    """Storage handle for a signed-in user."""
    return UserScopedStore(kv, "user-1")


class GatedKeyValueStore:
    """Key-value store whose first write under a key prefix waits to be released."""

    def __init__(self, inner: MongoKeyValueStore, prefix: str) -> None:
        self._inner = inner
        self._prefix = prefix
        self._armed = True
        self.reached = asyncio.Event()
        self.release = asyncio.Event()

    async def get(self, key: str) -> Any | None:
        return await self._inner.get(key)

    async def set(self, key: str, value: Any) -> None:
        if self._armed and key.startswith(self._prefix):
            self._armed = False
            self.reached.set()
            await self.release.wait()
        await self._inner.set(key, value)

    async def remove(self, key: str) -> bool:
        return await self._inner.remove(key)

    async def keys(self, prefix: str = "") -> list[str]:
        return await self._inner.keys(prefix)


@pytest.fixture
def gate_writes(kv):
    """Build a store for user-1 whose first write under a prefix blocks."""
    def build(prefix: str) -> tuple[UserScopedStore, GatedKeyValueStore]:
        gated = GatedKeyValueStore(kv, prefix)
        return UserScopedStore(gated, "user-1"), gated
    return build


@pytest_asyncio.fixture
async def test_client(mock_db):
    """Provide an async test client with mocked database."""
    app.dependency_overrides[get_database] = lambda: mock_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def register_and_login(client: AsyncClient, email: str = "test@example.com") -> dict:
    """Create an account and return bearer headers for it."""
    password = "SecurePass123!"
    await client.post(
        "/auth/register",
        json={"email": email, "password": password, "full_name": "Test User"},
    )
    response = await client.post("/auth/login", json={"email": email, "password": password})
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def auth_headers(test_client):
    """Bearer headers of a freshly registered user."""
    return await register_and_login(test_client)


@pytest.fixture
def login_as(test_client):
    """Register another account and return its bearer headers."""
    async def _login_as(email: str) -> dict:
        return await register_and_login(test_client, email)
    return _login_as
