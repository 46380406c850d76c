"""
Generator and LLM client tests, run directly against LLMService with a
mocked transport.
"""
import asyncio
import json

import httpx
import pytest

from models.report import AnalysisData, LiveInsight
from services.brand_generation_service import clean_statement, generate_brand_statement, GENERATORS
from services.errors import GenerationError
from services.llm_service import LLMService, parse_json_response
from services.market_analysis_service import generate_market_analysis, generate_live_insights

pytestmark = pytest.mark.anyio


def completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def make_llm(handler, timeout: float = 5) -> LLMService:
    return LLMService(
        api_key="test-key",
        base_url="https://llm.test/v1",
        model="gpt-test",
        timeout=timeout,
        transport=httpx.MockTransport(handler)
    )


class TestLLMService:

    async def test_sends_chat_completion_request(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return completion("hello")

        content = await make_llm(handler).complete("system text", "user text", temperature=0.2)

        assert content == "hello"
        assert captured["url"] == "https://llm.test/v1/chat/completions"
        assert captured["auth"] == "Bearer test-key"
        assert captured["body"]["model"] == "gpt-test"
        assert captured["body"]["messages"] == [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ]
        assert captured["body"]["temperature"] == 0.2
        assert "response_format" not in captured["body"]

    async def test_hung_call_times_out(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(2)
            return completion("too late")

        with pytest.raises(GenerationError, match="timed out"):
            await make_llm(handler, timeout=0.05).complete("s", "u")

    async def test_transport_error_is_generation_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GenerationError):
            await make_llm(handler).complete("s", "u")

    async def test_empty_content_is_generation_error(self):
        with pytest.raises(GenerationError, match="No content"):
            await make_llm(lambda request: completion("   ")).complete("s", "u")

    async def test_malformed_payload_is_generation_error(self):
        with pytest.raises(GenerationError, match="Malformed"):
            await make_llm(lambda request: httpx.Response(200, json={"choices": []})).complete("s", "u")

    async def test_missing_api_key(self):
        llm = LLMService(api_key="", transport=httpx.MockTransport(lambda request: completion("x")))
        with pytest.raises(GenerationError, match="not configured"):
            await llm.complete("s", "u")


class TestParseJsonResponse:

    def test_bare_object(self):
        assert parse_json_response('{"a": 1}') == {"a": 1}

    def test_fenced_object(self):
        assert parse_json_response('```json\n{"a": {"b": 2}}\n```') == {"a": {"b": 2}}

    def test_no_json(self):
        with pytest.raises(GenerationError):
            parse_json_response("no braces here")

    def test_array_is_rejected(self):
        with pytest.raises(GenerationError):
            parse_json_response("[1, 2, 3]")


class TestMarketAnalysis:

    async def test_returns_validated_analysis(self, analysis_payload):
        llm = make_llm(lambda request: completion(json.dumps(analysis_payload)))

        analysis = await generate_market_analysis("1 Main St", "Bookstore", llm=llm)

        assert isinstance(analysis, AnalysisData)
        assert analysis.market_size.tam.value == 48000000
        assert analysis.demographics.age_groups[0].range == "18-24"
        assert analysis.model_dump(by_alias=True) == analysis_payload

    async def test_requests_json_mode(self, analysis_payload):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return completion(json.dumps(analysis_payload))

        await generate_market_analysis("1 Main St", "Bookstore", llm=make_llm(handler))

        assert bodies[0]["response_format"] == {"type": "json_object"}
        system_prompt = bodies[0]["messages"][0]["content"]
        assert '"Bookstore"' in system_prompt
        assert '"1 Main St"' in system_prompt

    async def test_wrong_types_rejected(self, analysis_payload):
        analysis_payload["demographics"]["population"] = "a lot"
        llm = make_llm(lambda request: completion(json.dumps(analysis_payload)))

        with pytest.raises(GenerationError):
            await generate_market_analysis("1 Main St", "Bookstore", llm=llm)


class TestLiveInsights:

    async def test_returns_validated_insight(self, live_insight_payload):
        llm = make_llm(lambda request: completion(json.dumps(live_insight_payload)))

        insight = await generate_live_insights("1 Main St", "Bookstore", llm=llm)

        assert isinstance(insight, LiveInsight)
        assert insight.weather.temp == "72°F"
        assert insight.traffic.status == "Moderate"
        assert insight.news[0].url == "https://example.com/festival"

    async def test_optional_fields_default(self):
        minimal = {
            "weather": {"temp": 68, "condition": "Clear", "impact": "Normal traffic"},
            "traffic": {"status": "Light", "delay": "None", "notablePatterns": "Quiet morning"},
            "news": [{"title": "t", "source": "s", "summary": "x", "date": "today", "category": "Local"}],
        }
        llm = make_llm(lambda request: completion(json.dumps(minimal)))

        insight = await generate_live_insights("1 Main St", "Bookstore", llm=llm)

        assert insight.weather.forecast == []
        assert insight.news[0].url is None


class TestBrandGenerators:

    def test_clean_statement(self):
        assert clean_statement('  "**Bold** words"  ') == "Bold words"
        assert clean_statement("Plain") == "Plain"

    async def test_each_kind_has_its_own_prompt(self):
        prompts = {}

        for key in GENERATORS:
            def handler(request, key=key):
                prompts[key] = json.loads(request.content)["messages"][0]["content"]
                return completion("Statement")
            await generate_brand_statement(key, "florist", llm=make_llm(handler))

        assert len(set(prompts.values())) == len(GENERATORS)

    async def test_user_input_is_embedded(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return completion("Statement")

        await GENERATORS["target"]("organic pet food delivery", llm=make_llm(handler))
        assert "organic pet food delivery" in bodies[0]["messages"][1]["content"]

    async def test_unknown_kind(self):
        with pytest.raises(ValueError):
            await generate_brand_statement("slogan", "x", llm=make_llm(lambda request: completion("x")))
