import os

# Must be set before netscan.config is imported
TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["STORAGE_BACKEND"] = "memory"
os.environ.setdefault("JWT_SECRET", "test-secret")

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from netscan.core import db as db_module
from netscan.core.bootstrap import configure_services
from netscan.main import app
from netscan.services.access import AccessGate
from netscan.services.credentials import CredentialStore
from netscan.services.history import HistoryStore
from netscan.services.sessions import SessionAuthenticator
from netscan.services.stats import StatsAggregator
from netscan.storage.memory import MemoryStorage
from netscan.storage.tortoise_store import TortoiseStorage


db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


# ---------- unit-level building blocks (memory backend) ----------

@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def credentials(storage):
    return CredentialStore(storage)


@pytest.fixture
def sessions(storage):
    return SessionAuthenticator(storage)


@pytest.fixture
def history(storage):
    return HistoryStore(storage, max_records=100)


@pytest.fixture
def stats(history):
    return StatsAggregator(history)


@pytest.fixture
def gate(sessions):
    return AccessGate(sessions)


@pytest.fixture
def observation():
    """
    Factory for valid save-result payloads (wire spelling).
    """

    def _observation(**overrides) -> dict:
        data = {
            "downloadSpeed": 94.5,
            "uploadSpeed": 21.25,
            "ping": 18,
            "jitter": 3,
            "packetLoss": 0.5,
            "networkScore": 82,
            "networkType": "wifi",
            "isp": "Example ISP",
            "ip": "203.0.113.7",
            "location": "Berlin, DE",
        }
        data.update(overrides)
        return data

    return _observation


@pytest_asyncio.fixture
async def create_identity(credentials):
    """
    Factory fixture to create accounts directly through the credential store.
    """

    async def _create_identity(password: str = "UserPass123"):
        email = f"user_{uuid.uuid4().hex[:6]}@example.com"
        identity = await credentials.create_identity("Test User", email, password)
        return identity, password

    return _create_identity


# ---------- HTTP level: route tests run against both backends ----------

@pytest_asyncio.fixture(params=["memory", "tortoise"])
async def backend(request):
    if request.param == "tortoise":
        await _init_test_db()
        yield TortoiseStorage()
        await Tortoise.close_connections()
    else:
        yield MemoryStorage()


@pytest_asyncio.fixture
async def client(backend):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with fresh storage.
    """
    configure_services(backend, max_history=100)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture: register a fresh account and return (headers, email, password).
    """

    async def _get_headers(password: str = "UserPass123") -> tuple[dict[str, str], str, str]:
        email = f"user_{uuid.uuid4().hex[:6]}@example.com"
        resp = await client.post(
            "/api/v1/auth/register",
            json={"name": "Route Tester", "email": email, "password": password},
        )
        assert resp.status_code == 201, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}, email, password

    return _get_headers
