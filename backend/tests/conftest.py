"""
Shared fixtures for the HyperLocal backend tests.

The app runs in-process over ASGITransport against a throwaway SQLite file;
the model endpoint is replaced with httpx.MockTransport.
"""
import copy
import json
import os
import sys
import tempfile
from pathlib import Path

import httpx
import pytest
from httpx import AsyncClient, ASGITransport

# Must be set before db.database builds its engine
BACKEND_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(BACKEND_DIR))
_DB_FILE = Path(tempfile.mkdtemp(prefix="hyperlocal-tests-")) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_FILE}"
os.environ["LOG_FORMAT"] = "text"
os.environ.setdefault("JWT_SECRET", "test-secret")

from server import app  # noqa: E402
from db.database import engine, AsyncSessionLocal  # noqa: E402
from db.models import Base  # noqa: E402
from routes.auth import create_user_session, upsert_user_from_claims  # noqa: E402
from services import llm_service, stripe_service  # noqa: E402
from services.rate_limit import limiter  # noqa: E402
from services.report_service import DEMO_ANALYSIS  # noqa: E402

limiter.enabled = False

ALICE = {"sub": "user-alice", "email": "alice@example.com", "first_name": "Alice", "last_name": "Nguyen"}
BOB = {"sub": "user-bob", "email": "bob@example.com", "first_name": "Bob", "last_name": "Okafor"}
DEMO = {"sub": "demo-user", "email": "demo@example.com"}

SAMPLE_LIVE_INSIGHT = {
    "weather": {
        "temp": "72°F",
        "condition": "Partly Cloudy",
        "impact": "Pleasant weather should bring steady patio traffic this afternoon.",
        "forecast": [
            {"date": "Tue", "high": 75, "low": 58, "condition": "Sunny"},
            {"date": "Wed", "high": 71, "low": 55, "condition": "Showers"},
        ],
    },
    "traffic": {
        "status": "Moderate",
        "delay": "5-10 minutes",
        "notablePatterns": "Lunch rush on Congress Ave; lane closure near 6th Street.",
    },
    "news": [
        {
            "title": "Downtown food festival returns this weekend",
            "source": "Austin American-Statesman",
            "summary": "Organizers expect 40,000 visitors over two days.",
            "date": "2026-10-18",
            "category": "Events",
            "url": "https://example.com/festival",
        }
    ],
}


@pytest.fixture
def anyio_backend():
    return 'asyncio'


@pytest.fixture
async def db_engine(anyio_backend):
    """Fresh schema per test"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client(db_engine):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _login(claims: dict) -> dict:
    async with AsyncSessionLocal() as session:
        await upsert_user_from_claims(session, claims)
        token = await create_user_session(session, claims["sub"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def alice_headers(db_engine) -> dict:
    return await _login(ALICE)


@pytest.fixture
async def bob_headers(db_engine) -> dict:
    return await _login(BOB)


@pytest.fixture
async def demo_headers(db_engine) -> dict:
    return await _login(DEMO)


@pytest.fixture
def analysis_payload() -> dict:
    return copy.deepcopy(DEMO_ANALYSIS)


@pytest.fixture
def live_insight_payload() -> dict:
    return copy.deepcopy(SAMPLE_LIVE_INSIGHT)


class LLMStub:
    """Stands in for the chat-completions endpoint and records each request"""

    def __init__(self):
        self.content = ""
        self.queued = []
        self.status_code = 200
        self.requests = []

    def reply(self, content):
        self.content = content if isinstance(content, str) else json.dumps(content)
        self.status_code = 200

    def reply_each(self, *contents):
        """Answer successive requests with these replies, in order"""
        self.queued = [c if isinstance(c, str) else json.dumps(c) for c in contents]
        self.status_code = 200

    def fail(self, status_code: int = 502):
        self.status_code = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": {"message": "upstream unavailable"}})
        content = self.queued.pop(0) if self.queued else self.content
        return httpx.Response(200, json={
            "id": "chatcmpl-test",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        })

    @property
    def last_prompt(self) -> str:
        messages = self.requests[-1]["messages"]
        return "\n".join(m["content"] for m in messages)


@pytest.fixture
def llm_stub(monkeypatch) -> LLMStub:
    stub = LLMStub()
    service = llm_service.LLMService(
        api_key="test-key",
        base_url="https://llm.test/v1",
        model="gpt-test",
        timeout=5,
        transport=httpx.MockTransport(stub.handler)
    )
    monkeypatch.setattr(llm_service, "_llm_service", service)
    return stub


@pytest.fixture(autouse=True)
def reset_stripe_credentials(monkeypatch):
    """Each test resolves Stripe credentials from its own environment"""
    for name in ("STRIPE_SECRET_KEY", "STRIPE_SECRET", "STRIPE_API_KEY",
                 "STRIPE_PUBLISHABLE_KEY", "STRIPE_PUBLIC_KEY",
                 "STRIPE_PRICE_ID", "STRIPE_WEBHOOK_SECRET"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(stripe_service, "_credential_cache", None)
