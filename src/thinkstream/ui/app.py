"""Main Textual TUI application.

Orchestrates the UI components and routes user interaction to the chat
controller. The app never mutates sessions itself: it renders whatever the
session store holds and redraws on the store's change notifications.
"""

import asyncio
import logging

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header

from ..config import ClientSettings
from ..controller import ChatController, StreamSession, TurnState
from ..scroll import LoopFrameScheduler, ScrollCoordinator
from ..sessions import ChangeKind, StoreChange
from .callbacks import LogPanelHandler
from .config import THINKING_TICK_SECONDS, TRANSCRIPT_AT_BOTTOM_LINES, LogLevel
from .screens import ConfirmationScreen
from .styles import APP_CSS
from .themes import DEFAULT_THEME, THEMES
from .widgets import ChatInputBar, DebugPanel, SessionSidebar, StatusBar, TranscriptView

logger = logging.getLogger(__name__)

_SIDEBAR_CHANGES = {
    ChangeKind.CREATED,
    ChangeKind.SELECTED,
    ChangeKind.RENAMED,
    ChangeKind.DELETED,
    ChangeKind.CLEARED,
}


class ThinkstreamApp(App):
    """Textual chat client for reasoning models."""

    CSS = APP_CSS
    TITLE = "Thinkstream"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+n", "new_chat", "New Chat"),
        Binding("ctrl+x", "delete_chat", "Delete Chat"),
        Binding("ctrl+k", "clear_chats", "Clear All"),
        Binding("ctrl+r", "copy_last_response", "Copy Response"),
        Binding("ctrl+y", "copy_usage", "Copy Usage"),
        Binding("escape", "cancel_stream", "Cancel"),
        Binding("ctrl+d", "toggle_debug", "Debug"),
    ]

    def __init__(
        self,
        controller: ChatController,
        settings: ClientSettings,
        log_level: str | None = None,
    ) -> None:
        super().__init__()
        self._controller = controller
        self._store = controller.store
        self._settings = settings
        self._log_level = log_level
        self._coordinator: ScrollCoordinator | None = None
        self._log_handler: LogPanelHandler | None = None
        self._unsubscribers: list = []
        # Latched "Thought for ..." labels keyed by (session id, message index)
        self._thought_labels: dict[tuple[str, int], str] = {}
        self._shown_session: str | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        with Horizontal(id="main"):
            yield SessionSidebar(id="sidebar")
            with Vertical(id="chat-panel"):
                yield TranscriptView(id="transcript")
                yield DebugPanel(id="debug-panel")

        with Vertical(id="bottom-bar"):
            yield StatusBar(id="status", model=self._settings.model)
            yield ChatInputBar(id="chat-input-bar")

        yield Footer()

    def on_mount(self) -> None:
        for theme in THEMES:
            self.register_theme(theme)
        self.theme = DEFAULT_THEME
        self.sub_title = f"{self._settings.model} | {self._settings.transport}"

        log_panel = self.query_one("#debug-panel", DebugPanel)
        self._log_handler = LogPanelHandler(log_panel, self)
        logging.getLogger("thinkstream").addHandler(self._log_handler)
        if self._log_level is not None:
            log_panel.log_level = LogLevel.from_string(self._log_level)
            log_panel.show()
            log_panel.info("tui", f"Log panel enabled with level: {self._log_level.upper()}")

        transcript = self.query_one("#transcript", TranscriptView)
        self._coordinator = ScrollCoordinator(
            LoopFrameScheduler(),
            transcript.scroll_to_bottom,
            threshold=TRANSCRIPT_AT_BOTTOM_LINES,
        )
        transcript.attach(self._coordinator)
        self._coordinator.attach(self._store)

        self._unsubscribers.append(self._store.subscribe(self._on_store_change))
        self._unsubscribers.append(self._controller.add_listener(self._on_turn))
        self.set_interval(THINKING_TICK_SECONDS, self._tick_thinking)

        self._refresh_sidebar()
        self._render_transcript(reset=True)
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

        if not self._settings.has_credential:
            self.notify(
                "No API token configured. Set THINKSTREAM_API_TOKEN to start chatting.",
                severity="warning",
                timeout=8,
            )

    def on_unmount(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        if self._coordinator is not None:
            self._coordinator.detach()
        if self._log_handler is not None:
            logging.getLogger("thinkstream").removeHandler(self._log_handler)
            self._log_handler = None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _refresh_sidebar(self) -> None:
        sidebar = self.query_one("#sidebar", SessionSidebar)
        self.call_later(sidebar.show_sessions, self._store.list(), self._store.current_id)

    def _thinking_labels(self, session_id: str | None) -> dict[int, str]:
        if session_id is None:
            return {}
        labels = {
            index: label
            for (sid, index), label in self._thought_labels.items()
            if sid == session_id
        }
        stream = self._controller.active_stream(session_id)
        if stream is not None and stream.message.thinking is not None:
            session = self._store.get(session_id)
            if session is not None and session.messages:
                labels[len(session.messages) - 1] = stream.timer.label()
        return labels

    def _render_transcript(self, reset: bool = False) -> None:
        current = self._store.current_id
        reset = reset or current != self._shown_session
        self._shown_session = current
        self.query_one("#transcript", TranscriptView).show_messages(
            self._store.visible_messages,
            self._thinking_labels(current),
            reset=reset,
        )

    def _on_store_change(self, change: StoreChange) -> None:
        if change.kind is ChangeKind.CLEARED:
            self._thought_labels.clear()
        if change.kind in _SIDEBAR_CHANGES:
            self._refresh_sidebar()
        if change.kind is not ChangeKind.UPDATED or change.session_id == self._store.current_id:
            self._render_transcript()

    def _on_turn(self, state: TurnState, stream: StreamSession) -> None:
        status = self.query_one("#status", StatusBar)
        transcript = self.query_one("#transcript", TranscriptView)

        if state is TurnState.SUBMITTING:
            transcript.add_class("-streaming")
            status.update_status(state=state, thinking="")
        elif state is TurnState.STREAMING:
            label = stream.timer.label() if stream.thinking_in_progress else ""
            status.update_status(state=state, thinking=label)
        elif state.is_terminal:
            self._latch_label(stream)
            status.update_status(state=state, usage=stream.usage, thinking="")
            if state is TurnState.ERRORED:
                self.notify(f"Error: {stream.error}", severity="error", timeout=6)
            elif state is TurnState.CANCELLED and not stream.orphaned:
                self.notify("Cancelled", severity="warning", timeout=2)
        elif state is TurnState.IDLE:
            if not self._controller.is_streaming:
                transcript.remove_class("-streaming")
            self._render_transcript()

    def _latch_label(self, stream: StreamSession) -> None:
        if stream.message.thinking is None:
            return
        session = self._store.get(stream.session_id)
        if session is None or not session.messages:
            return
        self._thought_labels[(stream.session_id, len(session.messages) - 1)] = stream.timer.label()

    def _tick_thinking(self) -> None:
        stream = self._controller.active_stream()
        if stream is None or not stream.thinking_in_progress:
            return
        self.query_one("#status", StatusBar).update_status(thinking=stream.timer.label())
        self._render_transcript()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        if not self._settings.has_credential:
            self.notify("Set THINKSTREAM_API_TOKEN before chatting.", severity="error")
            return
        self._run_turn(event.value)

    @work(group="turns")
    async def _run_turn(self, text: str) -> None:
        """Run one turn as a background async worker."""
        try:
            await self._controller.submit(text)
        except Exception as e:
            logger.exception("Turn failed")
            self.notify(f"Error: {str(e)[:80]}", severity="error", timeout=5)

    def on_session_sidebar_new_chat_requested(self, event: SessionSidebar.NewChatRequested) -> None:
        self.action_new_chat()

    def on_session_sidebar_select_requested(self, event: SessionSidebar.SelectRequested) -> None:
        self._controller.select_session(event.session_id)

    def on_session_sidebar_delete_requested(self, event: SessionSidebar.DeleteRequested) -> None:
        self._confirm_delete(event.session_id or self._store.current_id)

    def on_session_sidebar_clear_requested(self, event: SessionSidebar.ClearRequested) -> None:
        self.action_clear_chats()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_new_chat(self) -> None:
        """Start a new conversation."""
        self._controller.new_chat()
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def action_delete_chat(self) -> None:
        """Delete the highlighted conversation after confirmation."""
        sidebar = self.query_one("#sidebar", SessionSidebar)
        self._confirm_delete(sidebar.highlighted_session_id() or self._store.current_id)

    def _confirm_delete(self, session_id: str | None) -> None:
        session = self._store.get(session_id) if session_id else None
        if session is None:
            self.notify("No chat selected", severity="warning", timeout=2)
            return

        def on_result(confirmed: bool | None) -> None:
            if confirmed:
                self._controller.delete_session(session.id)
                self.notify("Chat deleted", timeout=2)

        self.push_screen(
            ConfirmationScreen("Delete chat", f"Delete '{session.title}'?"),
            on_result,
        )

    def action_clear_chats(self) -> None:
        """Delete every conversation after confirmation."""
        if not len(self._store):
            self.notify("No chats to clear", timeout=2)
            return

        def on_result(confirmed: bool | None) -> None:
            if confirmed:
                self._controller.clear_all()
                self.notify("All chats deleted", timeout=2)

        self.push_screen(
            ConfirmationScreen(
                "Clear all chats",
                f"Delete all {len(self._store)} chats? This cannot be undone.",
                confirm_label="Clear",
            ),
            on_result,
        )

    def action_cancel_stream(self) -> None:
        """Cancel the stream of the current conversation."""
        if self._controller.cancel():
            logger.info("Stream cancelled by user")

    def action_toggle_debug(self) -> None:
        """Toggle the log panel visibility."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)

    def action_copy_last_response(self) -> None:
        """Copy the last assistant answer to the clipboard."""
        response = self.query_one("#transcript", TranscriptView).last_assistant_content()
        if response:
            self.copy_to_clipboard(response)
            self.notify("Response copied")
        else:
            self.notify("No response to copy", severity="warning")

    def action_copy_usage(self) -> None:
        """Copy the usage summary to the clipboard."""
        self.copy_to_clipboard(self.query_one("#status", StatusBar).get_plain_text())
        self.notify("Usage copied")


async def run_textual_tui(
    controller: ChatController,
    settings: ClientSettings,
    log_level: str | None = None,
) -> None:
    """Run the Textual TUI until the user quits.

    Args:
        controller: Chat controller bound to a session store and transport
        settings: Client settings (model name, credential presence)
        log_level: Log level for the panel (debug/info/warning/error), None to hide
    """
    app = ThinkstreamApp(controller=controller, settings=settings, log_level=log_level)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        await controller.shutdown()
