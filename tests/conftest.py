"""Pytest configuration and shared fixtures."""
import asyncio
import json
import os
from collections.abc import Callable

import pytest

from thinkstream.chat.accumulator import fold_events
from thinkstream.chat.models import Message
from thinkstream.config import ClientSettings
from thinkstream.sessions import InMemorySessionStorage, SessionStore
from thinkstream.stream.models import StreamEvent
from thinkstream.transport.base import ChatTransport
from thinkstream.transport.models import ChatRequest


def data_line(payload: dict) -> str:
    """Format one ``data:`` record."""
    return "data: " + json.dumps(payload)


def thinking_line(text: str) -> str:
    return data_line({"type": "content", "content": [{"content_type": "thinking", "thinking": text}]})


def text_line(text: str) -> str:
    return data_line({"type": "content", "content": [{"type": "text", "text": text}]})


STOP_LINE = data_line({"type": "message_stop"})

# Four records of a short answer: two thinking fragments, one text fragment, stop
EXAMPLE_LINES = [
    data_line({"type": "content", "content": [{"content_type": "thinking", "thinking": "Let's "}]}),
    data_line({"type": "content", "content": [{"content_type": "thinking", "thinking": "see."}]}),
    data_line({"type": "content", "content": [{"text": "42"}]}),
    STOP_LINE,
]


def body_of(lines: list[str]) -> bytes:
    """Join records into a response body the way the proxy frames them."""
    return ("\n".join(lines) + "\n").encode("utf-8")


# Marker inside a transport script: block until ``resume`` is set
PAUSE = object()


class ScriptedTransport(ChatTransport):
    """Transport double that replays scripted events.

    Each call to ``stream`` consumes the next script (the last one repeats).
    A script item may be a StreamEvent, an exception to raise, or PAUSE.
    """

    def __init__(self, *scripts: list) -> None:
        self._scripts = [list(script) for script in scripts] or [[]]
        self.requests: list[ChatRequest] = []
        self.paused = asyncio.Event()
        self.resume = asyncio.Event()
        self.aborted = 0
        self.closed = False

    async def stream(self, request: ChatRequest):
        script = self._scripts[min(len(self.requests), len(self._scripts) - 1)]
        self.requests.append(request)
        try:
            for item in script:
                if item is PAUSE:
                    self.paused.set()
                    await self.resume.wait()
                elif isinstance(item, Exception):
                    raise item
                else:
                    yield item
        except (GeneratorExit, asyncio.CancelledError):
            self.aborted += 1
            raise

    async def complete(self, request: ChatRequest) -> Message:
        self.requests.append(request)
        events: list[StreamEvent] = [
            item for item in self._scripts[0]
            if item is not PAUSE and not isinstance(item, Exception)
        ]
        return fold_events(events)

    async def close(self) -> None:
        self.closed = True


class ManualHandle:
    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Frame scheduler that runs callbacks only when the test says so."""

    def __init__(self) -> None:
        self.handles: list[ManualHandle] = []

    def schedule(self, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled]

    def run_pending(self) -> int:
        """Run every live handle once. Returns how many ran."""
        pending = self.live
        self.handles = []
        for handle in pending:
            handle.callback()
        return len(pending)


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings():
    """Settings with a credential and in-memory storage."""
    return ClientSettings(api_token="test-token", storage_backend="memory")


@pytest.fixture
def storage():
    return InMemorySessionStorage()


@pytest.fixture
def store(storage):
    """A store with one fresh current session."""
    return SessionStore.open(storage)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture(scope="session")
def api_keys():
    """Return API credentials from environment."""
    return {
        "proxy": os.getenv("THINKSTREAM_API_TOKEN"),
        "anthropic": os.getenv("ANTHROPIC_API_KEY"),
    }
