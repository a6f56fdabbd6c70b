"""Elapsed-time tracking for the thinking phase of a turn."""

import time
from collections.abc import Callable


def format_elapsed_time(seconds: int) -> str:
    """Format whole seconds as a human readable duration.

    >>> format_elapsed_time(42)
    '42 seconds'
    >>> format_elapsed_time(65)
    '1 minute 5 seconds'
    """
    minutes, remaining = divmod(max(0, int(seconds)), 60)
    if minutes == 0:
        return f"{remaining} seconds"
    return f"{minutes} minute{'s' if minutes > 1 else ''} {remaining} seconds"


class ThinkingTimer:
    """Tracks how long the model has been thinking.

    Starts on the first thinking delta and is latched by ``finish()`` when
    the turn leaves streaming, so the final label never changes afterwards.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._started_at: float | None = None
        self._latched: int | None = None

    @property
    def is_running(self) -> bool:
        return self._started_at is not None and self._latched is None

    @property
    def is_complete(self) -> bool:
        return self._latched is not None

    @property
    def elapsed_seconds(self) -> int:
        if self._latched is not None:
            return self._latched
        if self._started_at is None:
            return 0
        return int(self._clock() - self._started_at)

    def start(self) -> None:
        """Start timing. Calling it again while running has no effect."""
        if self._started_at is None and self._latched is None:
            self._started_at = self._clock()

    def finish(self) -> int:
        """Latch the elapsed time and return it."""
        if self._latched is None:
            self._latched = self.elapsed_seconds
        return self._latched

    def label(self) -> str:
        """Display text for the thinking section header."""
        duration = format_elapsed_time(self.elapsed_seconds)
        if self.is_complete:
            return f"Thought for {duration}"
        return f"Thinking... {duration}"
