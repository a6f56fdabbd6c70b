"""Tests for the transcript widget's interaction with the scroll coordinator."""
import pytest
from conftest import ManualScheduler
from textual.app import App

from thinkstream.chat.models import Message, Role
from thinkstream.scroll import ScrollCoordinator
from thinkstream.ui.widgets import TranscriptView


class SpyCoordinator(ScrollCoordinator):
    """Coordinator that records the user scrolls it is told about."""

    def __init__(self) -> None:
        super().__init__(ManualScheduler(), lambda: None, threshold=3)
        self.user_scrolls: list[float] = []

    def on_user_scroll(self, offset, viewport_height, content_height):
        self.user_scrolls.append(offset)
        return super().on_user_scroll(offset, viewport_height, content_height)


class TranscriptApp(App):
    def compose(self):
        yield TranscriptView(id="transcript")


MESSAGES = tuple(Message(role=Role.USER, content=f"question {i}") for i in range(40))


class TestTranscriptView:
    """Tests for TranscriptView scrolling."""

    @pytest.mark.asyncio
    async def test_programmatic_scrolls_are_not_user_scrolls(self):
        """Test that only scrolls the widget did not start itself reach the coordinator."""
        app = TranscriptApp()
        async with app.run_test() as pilot:
            transcript = app.query_one(TranscriptView)
            coordinator = SpyCoordinator()
            transcript.attach(coordinator)
            transcript.show_messages(MESSAGES)
            await pilot.pause()
            coordinator.user_scrolls.clear()

            transcript.scroll_to_bottom()

            assert transcript.scroll_y > 0
            assert coordinator.user_scrolls == []

            transcript.scroll_to(y=0, animate=False, immediate=True)

            assert coordinator.user_scrolls == [0]
            assert not coordinator.is_at_bottom
