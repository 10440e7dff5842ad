"""Shared fixtures: a throwaway SQLite database and a FastAPI TestClient."""
import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

_DB_DIR = tempfile.mkdtemp(prefix="promptforge-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402

from promptforge.database import engine  # noqa: E402
from promptforge.dependencies import get_clock, get_llm_provider  # noqa: E402
from promptforge.main import app  # noqa: E402
from promptforge.models import Base  # noqa: E402
from promptforge.services.analysis.llm import BaseLLMProvider  # noqa: E402

ALICE = "user-alice"
BOB = "user-bob"
CAROL = "user-carol"


def as_user(user_id: str) -> dict:
    return {"X-User-Id": user_id}


class FakeClock:
    """Manually advanced clock; every call returns the same instant."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def tick(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


CANNED_ANALYSIS = {
    "sections": {"role": "You are a travel guide", "instructions": "Plan a trip to {{city}}"},
    "variables": [
        {"name": "city", "description": "Destination", "type": "STRING"},
        {"name": "trip-length", "description": "Days", "type": "NUMBER", "default_value": "3"},
    ],
    "prompt_template": "## Role\nYou are a travel guide\n\n## Instructions\nPlan a trip to {{city}}",
    "metadata": {
        "role": "Travel guide",
        "objectives": ["Plan an itinerary"],
        "categories": ["Travel", "Planning"],
    },
}


class FakeProvider(BaseLLMProvider):
    """Returns a canned structure, or raises ``error`` when set."""

    def __init__(self, response=None, error: Exception = None, delay: float = 0.0):
        super().__init__(api_key="", model_name="fake-model")
        self.response = response if response is not None else CANNED_ANALYSIS
        self.error = error
        self.delay = delay
        self.calls = 0

    def _sync_generate_json(self, prompt, system_prompt, json_schema):
        raise NotImplementedError

    async def generate_json(self, prompt, system_prompt=None, json_schema=None):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return dict(self.response)


async def _drop_all():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(clock, provider):
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_llm_provider] = lambda: provider
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    asyncio.run(_drop_all())


@pytest.fixture
def make_prompt(client):
    """Create a prompt as ``owner`` and return the response JSON."""

    def _make(owner: str = ALICE, **fields):
        body = {"title": "Greeting", "content": "Hi {{name}}, you are {{age}}"}
        body.update(fields)
        response = client.post("/api/prompts", json=body, headers=as_user(owner))
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def make_profile(client):
    def _make(user_id: str, email: str, name: str = None):
        response = client.post("/api/profiles", json={"email": email, "name": name}, headers=as_user(user_id))
        assert response.status_code == 201, response.text
        return response.json()

    return _make
