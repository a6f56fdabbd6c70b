"""Streaming proxy transport.

Talks to the reasoning proxy service over plain HTTP. The proxy forwards
the request to the model API with extended thinking enabled and answers
with ``data: <json>`` records.

Uses httpx for async streaming requests.
Reference: https://www.python-httpx.org/async/
"""

from collections.abc import AsyncIterator
from typing import Any

import httpx

from ..chat.accumulator import fold_events
from ..chat.models import Message
from ..errors import DecodeError, TransportError
from ..stream.decoder import content_block_events, decode_stream
from ..stream.models import StreamEvent
from .base import ChatTransport
from .models import ChatRequest

TOKEN_HEADER = "X-Anthropic-API-Token"


class ProxyTransport(ChatTransport):
    """HTTP transport for the reasoning proxy.

    Hidden design decisions:
    - Credential header name
    - HTTP client lifecycle and timeouts
    - Response body framing (delegated to the stream decoder)
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = "http://localhost:1337",
        token_header: str = TOKEN_HEADER,
        timeout: float = 600.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the proxy transport.

        Args:
            api_token: Credential forwarded to the proxy
            base_url: Proxy endpoint
            token_header: Header carrying the credential
            timeout: Read timeout in seconds; thinking can take minutes
            client: Optional preconfigured httpx client (not closed by us)
        """
        self._api_token = api_token
        self._base_url = base_url
        self._token_header = token_header
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0)
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            self._token_header: self._api_token,
        }

    @staticmethod
    async def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        body = await response.aread()
        detail = body.decode("utf-8", errors="replace")[:500]
        raise TransportError(
            f"Upstream returned {response.status_code}: {detail}",
            status_code=response.status_code,
        )

    async def stream(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        payload: dict[str, Any] = request.model_copy(update={"stream": True}).model_dump()
        try:
            async with self._client.stream(
                "POST",
                self._base_url,
                json=payload,
                headers=self._headers(),
            ) as response:
                await self._raise_for_status(response)
                async for event in decode_stream(response.aiter_bytes()):
                    yield event
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {self._base_url} failed: {e}") from e

    async def complete(self, request: ChatRequest) -> Message:
        payload = request.model_copy(update={"stream": False}).model_dump()
        try:
            response = await self._client.post(
                self._base_url,
                json=payload,
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {self._base_url} failed: {e}") from e

        await self._raise_for_status(response)
        try:
            events = content_block_events(response.json().get("content", []))
        except (ValueError, AttributeError, DecodeError) as e:
            raise TransportError(f"Invalid response body: {e}") from e
        return fold_events(events)

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
