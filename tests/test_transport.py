"""Tests for chat transports and request building."""
import json
from types import SimpleNamespace

import anthropic
import httpx
import pytest
from conftest import EXAMPLE_LINES, body_of, text_line

from thinkstream.chat.models import Message, Role
from thinkstream.config import ClientSettings
from thinkstream.errors import TransportError
from thinkstream.stream import Channel, ContentDelta, Stop, UsageReport
from thinkstream.transport import ChatRequest, ProxyTransport, create_transport
from thinkstream.transport.anthropic import AnthropicTransport
from thinkstream.transport.models import ANTHROPIC_BETA, ANTHROPIC_VERSION

HISTORY = [
    Message(role=Role.USER, content="How many r's in strawberry?"),
    Message(role=Role.ASSISTANT, content="Three.", thinking="s-t-r-a-w..."),
    Message(role=Role.USER, content="Are you sure?"),
]


def mock_proxy(handler) -> ProxyTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ProxyTransport(api_token="test-token", base_url="http://proxy.test", client=client)


def sdk_event(type_: str, **fields) -> SimpleNamespace:
    return SimpleNamespace(type=type_, **fields)


def sdk_delta(type_: str, **fields) -> SimpleNamespace:
    return sdk_event("content_block_delta", delta=SimpleNamespace(type=type_, **fields))


SDK_EVENTS = [
    sdk_event("message_start", message=SimpleNamespace(usage=SimpleNamespace(input_tokens=12))),
    sdk_event("content_block_start"),
    sdk_delta("thinking_delta", thinking="Counting."),
    sdk_event("thinking", thinking="Counting."),
    sdk_delta("signature_delta", signature="abc"),
    sdk_delta("text_delta", text="Three."),
    sdk_event("text", text="Three."),
    sdk_event("content_block_stop"),
    sdk_event("message_delta", usage=SimpleNamespace(output_tokens=5)),
    sdk_event("message_stop"),
    sdk_delta("text_delta", text="after stop"),
]


class FakeMessageStream:
    """Async context manager standing in for the SDK's message stream."""

    def __init__(self, events: list) -> None:
        self._events = events

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def __aiter__(self):
        for event in self._events:
            if isinstance(event, Exception):
                raise event
            yield event


class FakeMessages:
    def __init__(self, events=(), response=None) -> None:
        self._events = list(events)
        self._response = response
        self.params: dict | None = None

    def stream(self, **params) -> FakeMessageStream:
        self.params = params
        return FakeMessageStream(self._events)

    async def create(self, **params):
        self.params = params
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


class FakeAnthropicClient:
    def __init__(self, **kwargs) -> None:
        self.messages = FakeMessages(**kwargs)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def fake_anthropic(**kwargs) -> tuple[AnthropicTransport, FakeAnthropicClient]:
    transport = AnthropicTransport(api_key="sk-ant-test")
    client = FakeAnthropicClient(**kwargs)
    transport._client = client
    return transport, client


def anthropic_request() -> httpx.Request:
    return httpx.Request("POST", "https://api.anthropic.com/v1/messages")


class TestChatRequest:
    """Tests for ChatRequest.build."""

    def test_defaults(self, settings):
        request = ChatRequest.build(HISTORY, settings)
        body = request.anthropic_config.body

        assert request.stream
        assert not request.verbose
        assert request.system == settings.system_prompt
        assert body["temperature"] == 1.0
        assert body["max_tokens"] == 128000
        assert body["thinking"] == {"type": "enabled", "budget_tokens": 64000}
        assert request.model == settings.model
        assert request.anthropic_config.headers == {
            "anthropic-version": ANTHROPIC_VERSION,
            "anthropic-beta": ANTHROPIC_BETA,
        }

    def test_thinking_is_not_sent_upstream(self, settings):
        """Test that only role and content go on the wire."""
        request = ChatRequest.build(HISTORY, settings)

        assert [m.model_dump() for m in request.messages] == [
            {"role": "user", "content": "How many r's in strawberry?"},
            {"role": "assistant", "content": "Three."},
            {"role": "user", "content": "Are you sure?"},
        ]

    def test_settings_flow_into_body(self):
        settings = ClientSettings(api_token="t", model="m", max_tokens=10, thinking_budget=5)
        body = ChatRequest.build(HISTORY, settings, stream=False).anthropic_config.body

        assert body["model"] == "m"
        assert body["max_tokens"] == 10
        assert body["thinking"]["budget_tokens"] == 5


class TestProxyTransport:
    """Tests for ProxyTransport against a mocked HTTP endpoint."""

    @pytest.mark.asyncio
    async def test_streams_events(self, settings):
        """Test that a streamed body is decoded into events."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body_of(EXAMPLE_LINES))

        async with mock_proxy(handler) as transport:
            events = [e async for e in transport.stream(ChatRequest.build(HISTORY, settings))]

        assert events == [
            ContentDelta(channel=Channel.THINKING, fragment="Let's "),
            ContentDelta(channel=Channel.THINKING, fragment="see."),
            ContentDelta(channel=Channel.TEXT, fragment="42"),
            Stop(),
        ]

    @pytest.mark.asyncio
    async def test_request_headers_and_body(self, settings):
        """Test the credential header and the JSON body sent to the proxy."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=body_of([text_line("ok"), EXAMPLE_LINES[-1]]))

        request = ChatRequest.build(HISTORY, settings, stream=False)
        async with mock_proxy(handler) as transport:
            [e async for e in transport.stream(request)]

        sent = seen[0]
        payload = json.loads(sent.content)
        assert sent.method == "POST"
        assert sent.url.host == "proxy.test"
        assert sent.headers["X-Anthropic-API-Token"] == "test-token"
        assert payload["stream"] is True
        assert payload["messages"][0] == {"role": "user", "content": "How many r's in strawberry?"}
        assert payload["anthropic_config"]["headers"]["anthropic-beta"] == ANTHROPIC_BETA

    @pytest.mark.asyncio
    async def test_error_status(self, settings):
        """Test that a non-success status becomes TransportError with the code."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="invalid token")

        async with mock_proxy(handler) as transport:
            with pytest.raises(TransportError) as exc_info:
                [e async for e in transport.stream(ChatRequest.build(HISTORY, settings))]

        assert exc_info.value.status_code == 401
        assert "invalid token" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connection_failure(self, settings):
        """Test that network errors become TransportError."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_proxy(handler) as transport:
            with pytest.raises(TransportError, match="failed"):
                [e async for e in transport.stream(ChatRequest.build(HISTORY, settings))]

    @pytest.mark.asyncio
    async def test_complete(self, settings):
        """Test the non-streaming request path."""
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["stream"] is False
            return httpx.Response(200, json={"content": [
                {"type": "thinking", "content_type": "thinking", "thinking": "Counting."},
                {"type": "text", "text": "Three."},
            ]})

        async with mock_proxy(handler) as transport:
            message = await transport.complete(ChatRequest.build(HISTORY, settings))

        assert message == Message(role=Role.ASSISTANT, content="Three.", thinking="Counting.")

    @pytest.mark.asyncio
    async def test_complete_invalid_body(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        async with mock_proxy(handler) as transport:
            with pytest.raises(TransportError, match="Invalid response body"):
                await transport.complete(ChatRequest.build(HISTORY, settings))

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        transport = ProxyTransport(api_token="t", client=client)

        await transport.close()

        assert not client.is_closed
        await client.aclose()


class TestAnthropicTransport:
    """Tests for the direct Anthropic transport."""

    def test_request_params(self, settings):
        """Test conversion of a chat request into Messages API parameters."""
        params = AnthropicTransport._request_params(ChatRequest.build(HISTORY, settings))

        assert params["model"] == settings.model
        assert params["system"] == settings.system_prompt
        assert params["thinking"] == {"type": "enabled", "budget_tokens": 64000}
        assert params["messages"][1] == {"role": "assistant", "content": "Three."}
        assert params["extra_headers"] == {"anthropic-beta": ANTHROPIC_BETA}

    @pytest.mark.asyncio
    async def test_stream_maps_sdk_events(self, settings):
        """Test that SDK stream events become thinking, text, usage and stop events."""
        transport, client = fake_anthropic(events=SDK_EVENTS)

        events = [e async for e in transport.stream(ChatRequest.build(HISTORY, settings))]

        assert events == [
            ContentDelta(channel=Channel.THINKING, fragment="Counting."),
            ContentDelta(channel=Channel.TEXT, fragment="Three."),
            UsageReport(total_cost="n/a", input_tokens=12, output_tokens=5, total_tokens=17),
            Stop(),
        ]
        assert client.messages.params["thinking"] == {"type": "enabled", "budget_tokens": 64000}
        assert client.messages.params["system"] == settings.system_prompt

    @pytest.mark.asyncio
    async def test_stream_api_error(self, settings):
        """Test that an SDK status error becomes TransportError with the code."""
        error = anthropic.RateLimitError(
            "rate limited",
            response=httpx.Response(429, request=anthropic_request()),
            body=None,
        )
        transport, _ = fake_anthropic(events=[error])

        with pytest.raises(TransportError) as exc_info:
            [e async for e in transport.stream(ChatRequest.build(HISTORY, settings))]

        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_stream_read_failure(self, settings):
        """Test that an httpx error while reading the body becomes TransportError."""
        transport, _ = fake_anthropic(events=[
            sdk_delta("text_delta", text="par"),
            httpx.RemoteProtocolError("peer closed connection"),
        ])

        events = []
        with pytest.raises(TransportError, match="peer closed connection"):
            async for event in transport.stream(ChatRequest.build(HISTORY, settings)):
                events.append(event)

        assert events == [ContentDelta(channel=Channel.TEXT, fragment="par")]

    @pytest.mark.asyncio
    async def test_complete(self, settings):
        """Test the non-streaming path folds content blocks into one message."""
        response = SimpleNamespace(content=[
            SimpleNamespace(type="thinking", thinking="Counting."),
            SimpleNamespace(type="text", text="Three."),
        ])
        transport, client = fake_anthropic(response=response)

        message = await transport.complete(ChatRequest.build(HISTORY, settings, stream=False))

        assert message == Message(role=Role.ASSISTANT, content="Three.", thinking="Counting.")
        assert client.messages.params["messages"][-1] == {
            "role": "user", "content": "Are you sure?"
        }

    @pytest.mark.asyncio
    async def test_complete_connection_error(self, settings):
        transport, _ = fake_anthropic(
            response=anthropic.APIConnectionError(request=anthropic_request())
        )

        with pytest.raises(TransportError) as exc_info:
            await transport.complete(ChatRequest.build(HISTORY, settings))

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_close(self):
        transport, client = fake_anthropic()

        await transport.close()

        assert client.closed

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_stream_real_api(self, api_keys):
        """Integration test: stream a short answer from the real API."""
        if not api_keys["anthropic"]:
            pytest.skip("ANTHROPIC_API_KEY not set")

        settings = ClientSettings(
            api_token=api_keys["anthropic"], max_tokens=2048, thinking_budget=1024
        )
        transport = AnthropicTransport(api_key=api_keys["anthropic"])

        try:
            request = ChatRequest.build(
                [Message(role=Role.USER, content="What is 6 times 7?")], settings
            )
            events = [e async for e in transport.stream(request)]

            assert isinstance(events[-1], Stop)
            assert any(
                isinstance(e, ContentDelta) and e.channel is Channel.TEXT for e in events
            )
        finally:
            await transport.close()


class TestTransportFactory:
    """Tests for create_transport."""

    @pytest.mark.asyncio
    async def test_proxy(self):
        transport = create_transport("proxy", api_token="t", base_url="http://x.test")

        assert isinstance(transport, ProxyTransport)
        assert transport.base_url == "http://x.test"
        await transport.close()

    @pytest.mark.asyncio
    async def test_anthropic(self):
        transport = create_transport("Anthropic", api_key="sk-ant-test")

        assert isinstance(transport, AnthropicTransport)
        await transport.close()

    def test_missing_credential(self):
        with pytest.raises(TypeError, match="api_token"):
            create_transport("proxy")
        with pytest.raises(TypeError, match="api_key"):
            create_transport("anthropic")

    def test_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported transport"):
            create_transport("carrier-pigeon")
