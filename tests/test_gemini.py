"""Tests for the Gemini generateContent client using httpx.MockTransport."""

import json

import httpx
import pytest

from dreamsong._state import TransportFailure
from dreamsong.gemini import GeminiClient, build_request_body


def _client(handler) -> GeminiClient:
    return GeminiClient(
        model="gemini-test",
        base_url="https://gemini.example/v1beta/",
        transport=httpx.MockTransport(handler),
    )


def test_build_request_body_shape():
    assert build_request_body("hello") == {
        "contents": [{"role": "user", "parts": [{"text": "hello"}]}],
    }


@pytest.mark.asyncio
async def test_generate_posts_json_body_with_key_param():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"candidates": []})

    async with _client(handler) as client:
        payload = await client.generate("interpret this", "secret-key")

    assert payload == {"candidates": []}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-test:generateContent"
    assert request.url.params["key"] == "secret-key"
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content) == build_request_body("interpret this")


@pytest.mark.asyncio
async def test_empty_credential_is_sent_unchanged():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    async with _client(handler) as client:
        await client.generate("p", "")

    assert "key" in seen[0].url.params
    assert seen[0].url.params["key"] == ""


@pytest.mark.asyncio
async def test_non_2xx_becomes_transport_failure_with_reason_phrase():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": {"message": "boom"}})

    async with _client(handler) as client:
        result = await client.generate("p", "")

    assert result == TransportFailure(status_code=500, status_text="Internal Server Error")


@pytest.mark.asyncio
async def test_network_error_becomes_transport_failure_with_detail():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        result = await client.generate("p", "")

    assert isinstance(result, TransportFailure)
    assert result.status_code is None
    assert "connection refused" in result.detail


@pytest.mark.asyncio
async def test_non_json_success_body_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    async with _client(handler) as client:
        result = await client.generate("p", "")

    assert result is None


def test_endpoint_strips_trailing_slash():
    client = GeminiClient(model="m", base_url="https://x.example/v1beta/")
    assert client.endpoint == "https://x.example/v1beta/models/m:generateContent"
