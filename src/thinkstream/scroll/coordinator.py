"""Auto-scroll policy for a growing transcript.

The coordinator decides, on every transcript mutation, whether the view is
pulled to the bottom. Streaming follows the newest content only while the
reader is already at the bottom; once they scroll up, growth never moves
the view.

Scroll actions occupy a single pending slot: scheduling a new one cancels
the one that has not run yet, so a burst of growth fires exactly once.
"""

import logging
from collections.abc import Callable

from ..sessions.store import ChangeKind, SessionStore, StoreChange
from .scheduler import FrameScheduler, ScheduledHandle

logger = logging.getLogger(__name__)

AT_BOTTOM_THRESHOLD = 50  # Gap below which the view counts as at the bottom

# Only these change kinds add content to the visible transcript
GROWTH_KINDS = frozenset({ChangeKind.CREATED, ChangeKind.UPDATED})


class ScrollCoordinator:
    """Decides when the transcript view should be forced to its end."""

    def __init__(
        self,
        scheduler: FrameScheduler,
        scroll_to_end: Callable[[], None],
        threshold: float = AT_BOTTOM_THRESHOLD,
    ) -> None:
        self._scheduler = scheduler
        self._scroll_to_end = scroll_to_end
        self._threshold = threshold
        self._at_bottom = True
        self._pending: ScheduledHandle | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self.actions_fired = 0

    @property
    def is_at_bottom(self) -> bool:
        return self._at_bottom

    @property
    def pending(self) -> bool:
        """Whether a scroll-to-end action is scheduled and has not run."""
        return self._pending is not None

    def on_user_scroll(
        self,
        offset: float,
        viewport_height: float,
        content_height: float,
    ) -> bool:
        """Recompute ``is_at_bottom`` after a user-initiated scroll.

        Scrolling away from the bottom also drops a pending action so it
        cannot yank the view back down.
        """
        gap = content_height - (offset + viewport_height)
        self._at_bottom = gap < self._threshold
        if not self._at_bottom:
            self._cancel_pending()
        return self._at_bottom

    def on_content_growth(self) -> bool:
        """React to content growth. Returns True if an action was scheduled."""
        if not self._at_bottom:
            return False
        self._cancel_pending()
        self._pending = self._scheduler.schedule(self._run)
        return True

    def cancel(self) -> None:
        """Drop any pending scroll action."""
        self._cancel_pending()

    def reset(self) -> None:
        """Start over for a different transcript: at the bottom, nothing pending."""
        self._cancel_pending()
        self._at_bottom = True

    def attach(self, store: SessionStore) -> None:
        """Follow every committed mutation of ``store``."""
        self.detach()
        self._unsubscribe = store.subscribe(self._on_store_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._cancel_pending()

    def _on_store_change(self, change: StoreChange) -> None:
        if change.kind in GROWTH_KINDS:
            self.on_content_growth()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _run(self) -> None:
        self._pending = None
        self.actions_fired += 1
        self._at_bottom = True
        try:
            self._scroll_to_end()
        except Exception:
            logger.exception("Scroll-to-end action failed")
