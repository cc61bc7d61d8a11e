import json
import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from nutshell.config import settings
from nutshell.core import db as db_module
from nutshell.core.pubsub import hub
from nutshell.main import app
from nutshell.services.insight_pipeline import insight_pipeline


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


class RecordingWebSocket:
    """Stands in for an accepted push connection; keeps every decoded envelope."""

    def __init__(self):
        self.sent_texts = []

    async def send_text(self, text: str):
        self.sent_texts.append(text)

    @property
    def envelopes(self):
        return [json.loads(t) for t in self.sent_texts]

    def of_type(self, event_type: str):
        return [e["data"] for e in self.envelopes if e["type"] == event_type]


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest.fixture(autouse=True)
def ai_disabled(monkeypatch):
    """Tests never reach the real model; individual tests re-enable it with a mocked transport."""
    monkeypatch.setattr(settings, "openai_api_key", None)
    monkeypatch.setattr(settings, "enable_ai", True)


@pytest.fixture
def ai_enabled(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", "sk-test")
    monkeypatch.setattr(settings, "enable_ai", True)


@pytest.fixture(autouse=True)
def clean_hub():
    """Module-level singletons outlive a test; reset their bookkeeping."""
    hub._connections.clear()
    insight_pipeline._counts.clear()
    insight_pipeline._locks.clear()
    yield
    hub._connections.clear()


@pytest.fixture
def listener():
    """A push connection registered with the global hub."""
    ws = RecordingWebSocket()
    hub.register(ws)
    return ws


@pytest_asyncio.fixture
async def client():
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    await _init_test_db()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def db():
    """Fresh DB without the HTTP layer, for service-level tests."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def make_event(client):
    async def _make_event(name: str = "Summit 2026"):
        resp = await client.post("/api/v1/events", json={"name": name, "status": "LIVE"})
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    return _make_event


@pytest_asyncio.fixture
async def make_table(client):
    async def _make_table(event_id: int, name: str = "Table 1", **extra):
        resp = await client.post(f"/api/v1/events/{event_id}/tables", json={"name": name, **extra})
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    return _make_table
