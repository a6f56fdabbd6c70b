from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from ..chat.models import Message
from ..stream.models import StreamEvent
from .models import ChatRequest


class ChatTransport(ABC):
    """Abstract base class for chat transports.

    This module hides the design decision of which backend answers a chat
    request. Implementations must handle backend-specific details like:
    - HTTP client setup and authentication
    - Request format conversion
    - Mapping backend responses to stream events
    - Translating failures into TransportError

    Supports async context manager protocol for proper resource cleanup:
        async with transport:
            async for event in transport.stream(request):
                ...
        # Automatically cleaned up
    """

    @abstractmethod
    def stream(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        """Stream a chat response as typed events.

        Args:
            request: The chat request; ``stream`` is forced on

        Returns:
            Async iterator of stream events in arrival order. Closing the
            iterator (or cancelling the consuming task) aborts the request.

        Raises:
            TransportError: Connection failure or non-success status
        """

    @abstractmethod
    async def complete(self, request: ChatRequest) -> Message:
        """Generate a complete, non-streaming assistant message.

        Raises:
            TransportError: Connection failure or non-success status
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "ChatTransport":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            # Suppress harmless cleanup errors from httpx/anyio
            if "Event loop is closed" not in str(e):
                raise
