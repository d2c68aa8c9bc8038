"""
Tests for the Gemini completion client.

Requests go through httpx.MockTransport, so no network access is needed.
"""

import json

import httpx
import pytest

from gemchat.config import LLMSettings
from gemchat.conversations import Message
from gemchat.llm import (
    FALLBACK_TITLE,
    EmptyReply,
    GeminiClient,
    MalformedResponse,
    SafetyBlocked,
    TransportError,
    create_completion_client,
)

HISTORY = [
    Message(role="user", content="Hello"),
    Message(role="assistant", content="Hi! How can I help?"),
    Message(role="user", content="Tell me a joke"),
]


def _reply(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, response: httpx.Response | Exception):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    @property
    def body(self) -> dict:
        return json.loads(self.requests[-1].content)


def _client(recorder: Recorder, **kwargs) -> GeminiClient:
    return GeminiClient(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(recorder)),
        **kwargs,
    )


class TestComplete:
    """Test complete() request building and response decoding."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        recorder = Recorder(httpx.Response(200, json=_reply("Why did...")))
        client = _client(recorder)

        await client.complete(HISTORY, "You are a helpful assistant.", "secret-key")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1beta/models/gemini-1.5-flash-latest:generateContent"
        assert request.url.params["key"] == "secret-key"
        assert recorder.body == {
            "contents": [
                {"role": "user", "parts": [{"text": "Hello"}]},
                {"role": "model", "parts": [{"text": "Hi! How can I help?"}]},
                {"role": "user", "parts": [{"text": "Tell me a joke"}]},
            ],
            "systemInstruction": {"parts": [{"text": "You are a helpful assistant."}]},
            "generationConfig": {"temperature": 0.7, "topK": 40, "maxOutputTokens": 8192},
        }

    @pytest.mark.asyncio
    async def test_returns_reply_text(self):
        client = _client(Recorder(httpx.Response(200, json=_reply("Hi there!"))))

        assert await client.complete(HISTORY[:1], "sys", "key") == "Hi there!"

    @pytest.mark.asyncio
    async def test_joins_multiple_parts(self):
        body = {"candidates": [{"content": {"parts": [{"text": "Hi "}, {"text": "there!"}]}}]}
        client = _client(Recorder(httpx.Response(200, json=body)))

        assert await client.complete(HISTORY[:1], "sys", "key") == "Hi there!"

    @pytest.mark.asyncio
    async def test_custom_model_and_base_url(self):
        recorder = Recorder(httpx.Response(200, json=_reply("ok")))
        client = _client(recorder, base_url="http://proxy.local/", model="gemini-2.5-pro")

        await client.complete(HISTORY[:1], "sys", "key")

        url = recorder.requests[0].url
        assert url.host == "proxy.local"
        assert url.path == "/v1beta/models/gemini-2.5-pro:generateContent"

    @pytest.mark.asyncio
    async def test_error_envelope_message(self):
        body = {"error": {"code": 500, "message": "overloaded", "status": "UNAVAILABLE"}}
        client = _client(Recorder(httpx.Response(500, json=body)))

        with pytest.raises(TransportError) as exc_info:
            await client.complete(HISTORY[:1], "sys", "key")

        assert exc_info.value.message == "overloaded"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_error_without_envelope_uses_status(self):
        client = _client(Recorder(httpx.Response(503, text="<html>Service Unavailable</html>")))

        with pytest.raises(TransportError, match="Request failed with status 503"):
            await client.complete(HISTORY[:1], "sys", "key")

    @pytest.mark.asyncio
    async def test_network_failure(self):
        client = _client(Recorder(httpx.ConnectError("Connection refused")))

        with pytest.raises(TransportError, match="Connection refused") as exc_info:
            await client.complete(HISTORY[:1], "sys", "key")

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_invalid_json_is_malformed(self):
        client = _client(Recorder(httpx.Response(200, text="not json")))

        with pytest.raises(MalformedResponse):
            await client.complete(HISTORY[:1], "sys", "key")

    @pytest.mark.asyncio
    async def test_unexpected_shape_is_malformed(self):
        client = _client(Recorder(httpx.Response(200, json={"candidates": "oops"})))

        with pytest.raises(MalformedResponse, match="expected format"):
            await client.complete(HISTORY[:1], "sys", "key")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"candidates": []},
            {"candidates": [{"finishReason": "OTHER"}]},
            {"candidates": [{"content": {"parts": [{"text": ""}]}}]},
        ],
    )
    async def test_missing_text_is_empty_reply(self, body):
        client = _client(Recorder(httpx.Response(200, json=body)))

        with pytest.raises(EmptyReply, match="invalid or empty response"):
            await client.complete(HISTORY[:1], "sys", "key")

    @pytest.mark.asyncio
    async def test_block_reason_is_safety_blocked(self):
        body = {"promptFeedback": {"blockReason": "SAFETY"}}
        client = _client(Recorder(httpx.Response(200, json=body)))

        with pytest.raises(SafetyBlocked) as exc_info:
            await client.complete(HISTORY[:1], "sys", "key")

        assert exc_info.value.block_reason == "SAFETY"
        assert "blocked for safety reasons: SAFETY" in exc_info.value.message


class TestSuggestTitle:
    """Test best-effort title suggestions."""

    EXCHANGE = [
        Message(role="user", content="Hello"),
        Message(role="assistant", content="Hi there!"),
    ]

    @pytest.mark.asyncio
    async def test_prompt_and_cleanup(self):
        recorder = Recorder(httpx.Response(200, json=_reply('  "Friendly Greeting"\n')))
        client = _client(recorder, title_model="gemini-title")

        title = await client.suggest_title(self.EXCHANGE, "key")

        assert title == "Friendly Greeting"
        assert recorder.requests[0].url.path == "/v1beta/models/gemini-title:generateContent"
        body = recorder.body
        assert "systemInstruction" not in body
        assert "generationConfig" not in body
        prompt = body["contents"][0]["parts"][0]["text"]
        assert body["contents"][0]["role"] == "user"
        assert "(3-5 words)" in prompt
        assert prompt.endswith("Conversation:\nuser: Hello\nassistant: Hi there!")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, json={"error": {"message": "overloaded"}}),
            httpx.Response(200, text="garbage"),
            httpx.Response(200, json={"candidates": []}),
            httpx.Response(200, json=_reply('""')),
            httpx.ReadTimeout("timed out"),
        ],
    )
    async def test_failures_fall_back(self, response):
        client = _client(Recorder(response))

        assert await client.suggest_title(self.EXCHANGE, "key") == FALLBACK_TITLE


class TestLifecycle:
    """Test client construction and cleanup."""

    @pytest.mark.asyncio
    async def test_async_context_manager_closes_http_client(self):
        http_client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200))
        )
        async with GeminiClient(http_client=http_client):
            pass

        assert http_client.is_closed

    def test_factory_uses_settings(self):
        client = create_completion_client(
            LLMSettings(model="gemini-2.5-flash", temperature=0.1, top_k=8, max_output_tokens=512)
        )

        assert isinstance(client, GeminiClient)
        assert client.model == "gemini-2.5-flash"
        assert client.title_model == "gemini-2.5-flash"
        assert client.temperature == 0.1
        assert client.top_k == 8
        assert client.max_output_tokens == 512
