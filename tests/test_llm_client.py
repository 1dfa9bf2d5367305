"""
Tests for the OpenRouter client: key rotation, retries and JSON helpers.
"""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from filmstudio.services import llm_client
from filmstudio.services.llm_client import KeyPool, LLMError


def _completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


@pytest.fixture
def openrouter(monkeypatch):
    """Route LLM traffic to a scripted handler; returns the list of seen auth keys."""
    seen: list[str] = []
    responses: list[httpx.Response] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"].removeprefix("Bearer "))
        return responses.pop(0)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    monkeypatch.setattr(llm_client, "_http_client", client)
    monkeypatch.setattr(llm_client, "_key_pool", KeyPool(["key-aaaaaaaaaaaaaaaa", "key-bbbbbbbbbbbbbbbb"]))
    monkeypatch.setattr(llm_client.asyncio, "sleep", AsyncMock())
    yield seen, responses


class TestKeyPool:
    def test_round_robin(self):
        pool = KeyPool(["a", "b"])
        assert [pool.next() for _ in range(3)] == ["a", "b", "a"]

    def test_skips_failing_key(self):
        pool = KeyPool(["a", "b"])
        for _ in range(3):
            pool.mark_failed("a")
        assert [pool.next() for _ in range(3)] == ["b", "b", "b"]

    def test_all_failing_resets(self):
        pool = KeyPool(["a"])
        for _ in range(3):
            pool.mark_failed("a")
        assert pool.next() == "a"
        assert pool.failures["a"] == 0

    def test_no_keys(self):
        with pytest.raises(LLMError):
            KeyPool([]).next()

    def test_mask_key(self):
        assert llm_client.mask_key("short") == "***"
        assert llm_client.mask_key("sk-or-v1-1234567890abcdef") == "sk-or-v1...cdef"


class TestLLMCall:
    async def test_returns_content(self, openrouter):
        seen, responses = openrouter
        responses.append(_completion("FADE IN."))

        result = await llm_client.llm_call("system", "user", caller="test")

        assert result == "FADE IN."
        assert len(seen) == 1

    async def test_unauthorized_rotates_key(self, openrouter):
        seen, responses = openrouter
        responses += [httpx.Response(401), _completion("ok")]

        assert await llm_client.llm_call("s", "u") == "ok"
        assert seen[0] != seen[1]

    async def test_retriable_status_then_success(self, openrouter):
        seen, responses = openrouter
        responses += [httpx.Response(503), _completion("ok")]

        assert await llm_client.llm_call("s", "u") == "ok"
        llm_client.asyncio.sleep.assert_awaited_once_with(2)

    async def test_retries_exhausted(self, openrouter):
        seen, responses = openrouter
        responses += [httpx.Response(429) for _ in range(3)]

        with pytest.raises(LLMError) as exc_info:
            await llm_client.llm_call("s", "u")

        assert exc_info.value.status_code == 429
        assert exc_info.value.retriable is True
        assert len(seen) == 3

    async def test_non_retriable_error(self, openrouter):
        seen, responses = openrouter
        responses.append(httpx.Response(400, json={"error": "bad"}))

        with pytest.raises(LLMError) as exc_info:
            await llm_client.llm_call("s", "u")

        assert exc_info.value.status_code == 400
        assert len(seen) == 1

    async def test_malformed_response(self, openrouter):
        _, responses = openrouter
        responses.append(httpx.Response(200, json={"choices": []}))

        with pytest.raises(LLMError, match="Malformed"):
            await llm_client.llm_call("s", "u")

    async def test_json_call(self, openrouter):
        _, responses = openrouter
        responses.append(_completion('```json\n{"scenes": []}\n```'))

        assert await llm_client.llm_json_call("s", "u") == {"scenes": []}


class TestJsonHelpers:
    def test_strip_fences(self):
        assert llm_client.strip_code_fences("```json\n[1]\n```") == "[1]"
        assert llm_client.strip_code_fences("[1]") == "[1]"

    def test_parse_json_response(self):
        assert llm_client.parse_json_response(json.dumps({"a": 1})) == {"a": 1}
        assert llm_client.parse_json_response("nope") is None
