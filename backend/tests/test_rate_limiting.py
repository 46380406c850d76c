"""
Rate Limiting Tests for HyperLocal

The AI endpoints are limited per user; exceeding the limit returns 429 in
the shared {"message": ...} envelope.
"""
import pytest
from unittest.mock import MagicMock

from fastapi import Request
from slowapi.errors import RateLimitExceeded

from server import app
from services.rate_limit import (
    RATE_LIMITS, limiter, limit_ai, get_user_id_or_ip, rate_limit_exceeded_handler,
)


@pytest.fixture
def rate_limiting():
    """Turn the limiter on for one test"""
    limiter.reset()
    limiter.enabled = True
    yield limiter
    limiter.enabled = False
    limiter.reset()


def make_request(user_id=None, host="192.168.1.1"):
    mock_request = MagicMock(spec=Request)
    mock_request.state = MagicMock()
    mock_request.state.user_id = user_id
    mock_request.client = MagicMock()
    mock_request.client.host = host
    mock_request.headers = {}
    mock_request.url = MagicMock()
    mock_request.url.path = "/api/generate-mission"
    mock_request.method = "POST"
    return mock_request


def make_exceeded() -> RateLimitExceeded:
    limit = MagicMock()
    limit.error_message = None
    limit.limit = "10 per 1 minute"
    return RateLimitExceeded(limit)


class TestRateLimitingConfiguration:

    def test_limiter_exists_on_app(self):
        assert app.state.limiter is limiter

    def test_rate_limit_exception_handler_registered(self):
        assert RateLimitExceeded in app.exception_handlers

    def test_ai_limit_format(self):
        assert RATE_LIMITS["ai_generate"] == "10/minute"

    def test_limit_ai_creates_decorator(self):
        assert callable(limit_ai())


class TestKeyFunctions:

    def test_get_user_id_or_ip_with_user(self):
        assert get_user_id_or_ip(make_request(user_id="user_123")) == "user:user_123"

    def test_get_user_id_or_ip_without_user(self):
        assert get_user_id_or_ip(make_request()).startswith("ip:")


class TestRateLimitExceededHandler:

    def test_handler_returns_429_envelope(self):
        response = rate_limit_exceeded_handler(make_request(), make_exceeded())

        assert response.status_code == 429
        assert b'"message"' in response.body
        assert "Retry-After" in response.headers


class TestEndpointRateLimiting:

    @pytest.mark.anyio
    async def test_generate_is_rate_limited(self, client, alice_headers, llm_stub, rate_limiting):
        llm_stub.reply("Serve the neighborhood.")

        status_codes = []
        for _ in range(12):
            response = await client.post("/api/generate-mission", json={"input": "cafe"}, headers=alice_headers)
            status_codes.append(response.status_code)

        assert status_codes[:10] == [200] * 10, f"Expected ten successes, got: {status_codes}"
        assert status_codes[10] == 429
        assert "message" in response.json()

    @pytest.mark.anyio
    async def test_limit_is_per_user(self, client, alice_headers, bob_headers, llm_stub, rate_limiting):
        llm_stub.reply("Serve the neighborhood.")

        for _ in range(10):
            await client.post("/api/generate-vision", json={"input": "cafe"}, headers=alice_headers)

        blocked = await client.post("/api/generate-vision", json={"input": "cafe"}, headers=alice_headers)
        allowed = await client.post("/api/generate-vision", json={"input": "cafe"}, headers=bob_headers)

        assert blocked.status_code == 429
        assert allowed.status_code == 200

    @pytest.mark.anyio
    async def test_crud_endpoints_are_not_ai_limited(self, client, alice_headers, rate_limiting):
        for _ in range(15):
            response = await client.get("/api/missions", headers=alice_headers)
            assert response.status_code == 200

    @pytest.mark.anyio
    async def test_each_kind_has_its_own_budget(self, client, alice_headers, llm_stub, rate_limiting):
        llm_stub.reply("Serve the neighborhood.")

        for _ in range(10):
            response = await client.post("/api/generate-value", json={"input": "cafe"}, headers=alice_headers)
            assert response.status_code == 200

        other_kind = await client.post("/api/generate-target", json={"input": "cafe"}, headers=alice_headers)
        assert other_kind.status_code == 200
