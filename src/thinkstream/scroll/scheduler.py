"""Paint-opportunity scheduling for scroll actions.

Hides how "run this on the next frame" is realised. The coordinator only
needs a handle it can cancel; the default implementation uses the running
asyncio loop, which is also the loop Textual paints from.
"""

import asyncio
from collections.abc import Callable
from typing import Protocol

FRAME_INTERVAL = 1 / 60  # Seconds until the next paint opportunity


class ScheduledHandle(Protocol):
    """A scheduled callback that can be cancelled before it runs."""

    def cancel(self) -> None: ...


class FrameScheduler(Protocol):
    """Schedules a callback for the next paint opportunity."""

    def schedule(self, callback: Callable[[], None]) -> ScheduledHandle: ...


class LoopFrameScheduler:
    """Frame scheduler backed by ``loop.call_later``.

    The loop is resolved lazily so the scheduler can be built before the
    application loop starts.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        frame_interval: float = FRAME_INTERVAL,
    ) -> None:
        self._loop = loop
        self._frame_interval = frame_interval

    def schedule(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self._frame_interval, callback)
