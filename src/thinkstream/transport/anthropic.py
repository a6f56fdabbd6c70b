"""Direct Anthropic transport.

Bypasses the proxy and calls the Anthropic Messages API with extended
thinking enabled, mapping SDK stream events to thinkstream events.

Uses the official Anthropic Python SDK for async streaming.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

from collections.abc import AsyncIterator
from typing import Any

import anthropic
import httpx
from anthropic import AsyncAnthropic

from ..chat.accumulator import fold_events
from ..chat.models import Message
from ..errors import TransportError
from ..stream.models import Channel, ContentDelta, Stop, StreamEvent, UsageReport
from .base import ChatTransport
from .models import ChatRequest

DEFAULT_THINKING_BUDGET = 16000


class AnthropicTransport(ChatTransport):
    """Anthropic Messages API transport.

    Hidden design decisions:
    - Anthropic API client initialization
    - Request body conversion (system prompt, thinking configuration)
    - Which SDK events carry thinking, text, usage and completion
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float = 600.0,
        **client_kwargs: Any
    ):
        """Initialize Anthropic transport.

        Args:
            api_key: Anthropic API key
            base_url: Optional custom API base URL
            timeout: Request timeout in seconds
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            **client_kwargs
        )

    @staticmethod
    def _request_params(request: ChatRequest) -> dict[str, Any]:
        """Convert a chat request into Messages API parameters."""
        body = dict(request.anthropic_config.body)
        body.setdefault("thinking", {
            "type": "enabled",
            "budget_tokens": DEFAULT_THINKING_BUDGET,
        })
        body.setdefault("max_tokens", 4096)

        params: dict[str, Any] = {
            **body,
            "messages": [message.model_dump() for message in request.messages],
        }
        if request.system:
            params["system"] = request.system

        # The SDK sets anthropic-version itself
        headers = {
            name: value
            for name, value in request.anthropic_config.headers.items()
            if name.lower() != "anthropic-version"
        }
        if headers:
            params["extra_headers"] = headers
        return params

    async def stream(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        params = self._request_params(request)
        input_tokens = 0

        try:
            async with self._client.messages.stream(**params) as stream:
                async for event in stream:
                    event_type = getattr(event, "type", None)

                    # message_start contains input_tokens
                    if event_type == "message_start":
                        input_tokens = event.message.usage.input_tokens
                    elif event_type == "content_block_delta":
                        delta = event.delta
                        if delta.type == "thinking_delta" and delta.thinking:
                            yield ContentDelta(channel=Channel.THINKING, fragment=delta.thinking)
                        elif delta.type == "text_delta" and delta.text:
                            yield ContentDelta(channel=Channel.TEXT, fragment=delta.text)
                    # message_delta contains cumulative output_tokens
                    elif event_type == "message_delta" and event.usage is not None:
                        output_tokens = event.usage.output_tokens
                        yield UsageReport(
                            total_cost="n/a",
                            input_tokens=input_tokens,
                            output_tokens=output_tokens,
                            total_tokens=input_tokens + output_tokens,
                        )
                    elif event_type == "message_stop":
                        yield Stop()
                        return
        except anthropic.APIError as e:
            raise TransportError(
                f"Anthropic API error: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e
        except httpx.HTTPError as e:
            # The SDK does not wrap errors raised while reading the body
            raise TransportError(f"Anthropic stream failed: {e}") from e

    async def complete(self, request: ChatRequest) -> Message:
        try:
            response = await self._client.messages.create(**self._request_params(request))
        except anthropic.APIError as e:
            raise TransportError(
                f"Anthropic API error: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Anthropic request failed: {e}") from e

        events: list[StreamEvent] = []
        for block in response.content:
            if block.type == "thinking":
                events.append(ContentDelta(channel=Channel.THINKING, fragment=block.thinking))
            elif block.type == "text":
                events.append(ContentDelta(channel=Channel.TEXT, fragment=block.text))
        return fold_events(events)

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
