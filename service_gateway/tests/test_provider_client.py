"""
Unit tests for the generation provider client.
"""

import json

import httpx
import pytest

from service_gateway.app.adapters.provider_client import GenerationProviderClient
from shared.errors import ServiceError, TransportError, UpstreamError


def make_client(handler, api_key="sk-test"):
    return GenerationProviderClient(
        "https://provider.test/v1/",
        api_key,
        model="gpt-4o-mini",
        transport=httpx.MockTransport(handler),
    )


class TestGenerationProviderClient:
    """Test cases for GenerationProviderClient."""

    @pytest.mark.asyncio
    async def test_complete_success(self, make_completion):
        """Test a successful completion returns the message text."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=make_completion('{"title": "T"}'))

        client = make_client(handler)
        try:
            text = await client.complete("system prompt", "user prompt")
        finally:
            await client.close()

        assert text == '{"title": "T"}'
        request = seen[0]
        assert str(request.url) == "https://provider.test/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer sk-test"

        body = json.loads(request.content)
        assert body["model"] == "gpt-4o-mini"
        assert body["max_tokens"] == 500
        assert body["temperature"] == 0.8
        assert body["n"] == 1
        assert body["messages"] == [
            {"role": "system", "content": "system prompt"},
            {"role": "user", "content": "user prompt"},
        ]

    @pytest.mark.asyncio
    async def test_non_success_status_raises_upstream_error(self):
        """Test provider errors carry status and body through."""
        client = make_client(lambda request: httpx.Response(429, text='{"error": "slow down"}'))
        try:
            with pytest.raises(UpstreamError) as exc_info:
                await client.complete("s", "u")
        finally:
            await client.close()

        assert exc_info.value.upstream_status == 429
        assert exc_info.value.upstream_body == '{"error": "slow down"}'

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self):
        """Test an unreachable provider is a transport error."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        try:
            with pytest.raises(TransportError):
                await client.complete("s", "u")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_error(self):
        """Test a provider timeout is a transport error."""
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler)
        try:
            with pytest.raises(TransportError):
                await client.complete("s", "u")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        """Test no request is made without an API key."""
        calls = []
        client = make_client(lambda request: calls.append(request), api_key=None)
        try:
            with pytest.raises(ServiceError) as exc_info:
                await client.complete("s", "u")
        finally:
            await client.close()

        assert exc_info.value.message == "Server missing OPENAI_API_KEY"
        assert calls == []

    @pytest.mark.asyncio
    async def test_non_json_envelope(self):
        """Test a 200 with a non-JSON body is an internal error."""
        client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        try:
            with pytest.raises(ServiceError):
                await client.complete("s", "u")
        finally:
            await client.close()

    @pytest.mark.parametrize("data, expected", [
        ({"choices": [{"message": {"content": "chat"}}]}, "chat"),
        ({"choices": [{"text": "legacy"}]}, "legacy"),
        ({"choices": [{"message": {"content": ""}, "text": "legacy"}]}, "legacy"),
        ({"choices": []}, ""),
        ({}, ""),
        ([], ""),
    ])
    def test_extract_text(self, data, expected):
        """Test text extraction from completion envelopes."""
        assert GenerationProviderClient.extract_text(data) == expected
