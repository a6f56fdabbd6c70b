"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Input history management
- Session list rendering
- Transcript windowing (only visible messages are mounted)
- Thinking section layout and label
- Log rendering and level filtering
"""

from datetime import datetime

from rich.text import Text
from textual import events
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message as TextualMessage
from textual.widgets import Button, Collapsible, Label, ListItem, ListView, Markdown, RichLog, Static, TextArea

from ..chat.models import ChatSession, Message, Role
from ..controller import TurnState
from ..scroll import ScrollCoordinator, VirtualWindow
from ..stream.models import UsageReport
from .config import (
    LOG_MAX_MESSAGE_LENGTH,
    LOG_TIMESTAMP_FORMAT,
    SESSION_TITLE_WIDTH,
    TRANSCRIPT_ESTIMATED_LINES,
    TRANSCRIPT_OVERSCAN,
    TRANSCRIPT_PADDING,
    LogLevel,
)


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea and Send button."""

    class Submitted(TextualMessage):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Submit message (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.focus()
        text_area.highlight_cursor_line = False

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            event.stop()
            self._submit()

    def on_key(self, event: events.Key) -> None:
        """Handle keyboard shortcuts.

        Note: terminals do not report modifiers with Enter, so ctrl+j is
        the submit shortcut.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._is_cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()
        elif event.key == "down" and self._is_cursor_at_end():
            self._navigate_history(1)
            event.prevent_default()
            event.stop()

    def _is_cursor_at_start(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        return text_area.cursor_location == (0, 0)

    def _is_cursor_at_end(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        lines = text_area.text.split("\n")
        return text_area.cursor_location == (len(lines) - 1, len(lines[-1]))

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:
            if self._history_index == -1:
                return
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        value = text_area.text.strip()
        if not value:
            return
        if not self._history or self._history[-1] != value:
            self._history.append(value)
        self._history_index = -1
        text_area.text = ""
        self.post_message(self.Submitted(value))

    def focus_input(self) -> None:
        """Focus the text input."""
        self.query_one("#chat-input", TextArea).focus()


class StatusBar(Static):
    """One-line summary of the turn state, thinking timer and usage."""

    _STATE_STYLES = {
        TurnState.IDLE: "dim",
        TurnState.SUBMITTING: "bold yellow",
        TurnState.STREAMING: "bold cyan",
        TurnState.COMPLETED: "bold green",
        TurnState.ERRORED: "bold red",
        TurnState.CANCELLED: "yellow",
    }

    def __init__(self, *args, model: str = "", **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._model = model
        self._state = TurnState.IDLE
        self._thinking = ""
        self._usage: UsageReport | None = None

    def on_mount(self) -> None:
        self._update_display()

    def update_status(
        self,
        state: TurnState | None = None,
        thinking: str | None = None,
        usage: UsageReport | None = None,
    ) -> None:
        """Update any subset of the displayed fields."""
        if state is not None:
            self._state = state
        if thinking is not None:
            self._thinking = thinking
        if usage is not None:
            self._usage = usage
        self._update_display()

    def _update_display(self) -> None:
        style = self._STATE_STYLES.get(self._state, "white")
        parts = [
            f"[bold magenta]Model:[/] {self._model}",
            f"[{style}]{self._state.value}[/]",
        ]
        if self._thinking:
            parts.append(f"[italic]{self._thinking}[/]")
        if self._usage is not None:
            usage = self._usage
            parts.append(
                f"[bold yellow]Tokens:[/] {usage.total_tokens:,} "
                f"[dim]({usage.input_tokens:,}/{usage.output_tokens:,})[/]"
            )
            parts.append(f"[bold green]Cost:[/] {usage.total_cost}")
        self.update("  ".join(parts))

    def get_plain_text(self) -> str:
        """Usage summary as plain text for the clipboard."""
        if self._usage is None:
            return f"Model: {self._model}"
        usage = self._usage
        return (
            f"Model: {self._model}  "
            f"Tokens: {usage.total_tokens} ({usage.input_tokens}/{usage.output_tokens})  "
            f"Cost: {usage.total_cost}"
        )


class SessionItem(ListItem):
    """Sidebar entry for one conversation."""

    def __init__(self, session: ChatSession, current: bool = False) -> None:
        title = session.title
        if len(title) > SESSION_TITLE_WIDTH:
            title = title[: SESSION_TITLE_WIDTH - 1] + "…"
        super().__init__(
            Label(Text(title), classes="session-title"),
            Label(session.created_at.strftime("%b %d %H:%M"), classes="session-date"),
            classes="session-item -current" if current else "session-item",
        )
        self.session_id = session.id


class SessionSidebar(Vertical):
    """List of conversations with new / delete / clear controls."""

    BORDER_TITLE = "Chats"

    class NewChatRequested(TextualMessage):
        """User asked for a new conversation."""

    class SelectRequested(TextualMessage):
        """User picked a conversation in the list."""

        def __init__(self, session_id: str) -> None:
            super().__init__()
            self.session_id = session_id

    class DeleteRequested(TextualMessage):
        """User asked to delete the highlighted conversation."""

        def __init__(self, session_id: str | None) -> None:
            super().__init__()
            self.session_id = session_id

    class ClearRequested(TextualMessage):
        """User asked to delete every conversation."""

    def compose(self):
        yield ListView(id="session-list")
        with Horizontal(id="session-buttons"):
            yield Button("New", id="new-chat-btn", variant="primary").with_tooltip(
                "New chat (Ctrl+N)"
            )
            yield Button("Del", id="delete-chat-btn", variant="warning").with_tooltip(
                "Delete chat (Ctrl+X)"
            )
            yield Button("Clear", id="clear-chats-btn", variant="error").with_tooltip(
                "Delete all chats (Ctrl+K)"
            )

    async def show_sessions(self, sessions: list[ChatSession], current_id: str | None) -> None:
        """Rebuild the list, newest first, highlighting the current session."""
        list_view = self.query_one("#session-list", ListView)
        ordered = sorted(sessions, key=lambda s: s.created_at, reverse=True)
        await list_view.clear()
        await list_view.extend(
            SessionItem(session, current=session.id == current_id) for session in ordered
        )
        for position, session in enumerate(ordered):
            if session.id == current_id:
                list_view.index = position
                break
        self.border_subtitle = f"{len(ordered)}"

    def highlighted_session_id(self) -> str | None:
        item = self.query_one("#session-list", ListView).highlighted_child
        return item.session_id if isinstance(item, SessionItem) else None

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        if isinstance(event.item, SessionItem):
            self.post_message(self.SelectRequested(event.item.session_id))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "new-chat-btn":
            self.post_message(self.NewChatRequested())
        elif event.button.id == "delete-chat-btn":
            self.post_message(self.DeleteRequested(self.highlighted_session_id()))
        elif event.button.id == "clear-chats-btn":
            self.post_message(self.ClearRequested())


class MessageView(Vertical):
    """One transcript entry. Assistant entries carry a collapsible thinking section."""

    class Measured(TextualMessage):
        """Posted when the rendered height of the entry changes."""

        def __init__(self, index: int, height: int) -> None:
            super().__init__()
            self.index = index
            self.height = height

    def __init__(self, index: int, message: Message, thinking_label: str | None = None) -> None:
        role_class = "assistant-message" if message.is_assistant else "user-message"
        super().__init__(classes=f"chat-message {role_class}")
        self.index = index
        self._message = message
        self._thinking_label = thinking_label

    @property
    def message(self) -> Message:
        return self._message

    def compose(self):
        if self._message.role is Role.USER:
            yield Static("> You", classes="message-header")
            yield Static(Text(self._message.content), classes="message-content")
            return

        yield Static("< Assistant", classes="message-header")
        thinking = Collapsible(
            Static(Text(self._message.thinking or ""), classes="thinking-content"),
            title=self._label(),
            collapsed=False,
            classes="thinking",
        )
        thinking.display = self._message.thinking is not None
        yield thinking
        yield Markdown(self._message.content, classes="message-content")

    def _label(self) -> str:
        return self._thinking_label or "Thought process"

    def update_message(self, message: Message, thinking_label: str | None = None) -> None:
        """Re-render only the parts that changed."""
        if message == self._message and thinking_label == self._thinking_label:
            return
        previous = self._message
        self._message = message
        self._thinking_label = thinking_label

        if message.role is Role.USER:
            self.query_one(".message-content", Static).update(Text(message.content))
            return

        thinking = self.query_one(".thinking", Collapsible)
        thinking.display = message.thinking is not None
        thinking.title = self._label()
        if message.thinking != previous.thinking:
            thinking.query_one(".thinking-content", Static).update(Text(message.thinking or ""))
        if message.content != previous.content:
            self.query_one(".message-content", Markdown).update(message.content)

    def on_resize(self, event: events.Resize) -> None:
        margin = self.styles.margin
        self.post_message(
            self.Measured(self.index, self.outer_size.height + margin.top + margin.bottom)
        )


class TranscriptView(VerticalScroll):
    """Windowed transcript of the current session.

    Only messages inside the viewport plus an overscan margin are mounted;
    two spacers stand in for everything above and below. Heights reported
    by mounted entries replace the estimates in the VirtualWindow.
    """

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "No messages"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._window = VirtualWindow(
            estimate_size=TRANSCRIPT_ESTIMATED_LINES,
            overscan=TRANSCRIPT_OVERSCAN,
            padding_start=TRANSCRIPT_PADDING,
            padding_end=TRANSCRIPT_PADDING,
        )
        self._messages: tuple[Message, ...] = ()
        self._labels: dict[int, str] = {}
        self._views: dict[int, MessageView] = {}
        self._coordinator: ScrollCoordinator | None = None
        self._programmatic_scroll = False

    @property
    def window(self) -> VirtualWindow:
        return self._window

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._messages

    def compose(self):
        yield Static("", id="transcript-top", classes="spacer")
        yield Static("", id="transcript-bottom", classes="spacer")

    def attach(self, coordinator: ScrollCoordinator) -> None:
        self._coordinator = coordinator

    def scroll_to_bottom(self) -> None:
        """Scroll-to-end action run by the scroll coordinator."""
        self._window.scroll_to_end()
        self._sync_views()
        self._jump_to(None)

    def _jump_to(self, y: float | None) -> None:
        """Scroll without it counting as a user scroll. ``None`` jumps to the end."""
        self._programmatic_scroll = True
        try:
            if y is None:
                self.scroll_end(animate=False, immediate=True)
            else:
                self.scroll_to(y=y, animate=False, immediate=True)
        finally:
            self._programmatic_scroll = False

    def show_messages(
        self,
        messages: tuple[Message, ...],
        labels: dict[int, str] | None = None,
        reset: bool = False,
    ) -> None:
        """Render ``messages``; ``reset`` discards measurements of a previous session."""
        if reset:
            for view in self._views.values():
                view.remove()
            self._views.clear()
            self._window.reset()
            if self._coordinator is not None:
                self._coordinator.reset()
                self.call_after_refresh(self.scroll_to_bottom)
        self._messages = tuple(messages)
        self._labels = dict(labels or {})
        self._window.set_count(len(self._messages))
        self.border_subtitle = (
            f"{len(self._messages)} messages" if self._messages else "No messages"
        )
        self._sync_views()

    def last_assistant_content(self) -> str | None:
        for message in reversed(self._messages):
            if message.is_assistant and message.content:
                return message.content
        return None

    def _sync_views(self) -> None:
        wanted = self._window.visible_range()

        for index in [i for i in self._views if i not in wanted]:
            self._views.pop(index).remove()

        bottom = self.query_one("#transcript-bottom", Static)
        for index in wanted:
            message = self._messages[index]
            label = self._labels.get(index)
            view = self._views.get(index)
            if view is not None:
                view.update_message(message, label)
                continue

            view = MessageView(index, message, label)
            later = [i for i in self._views if i > index]
            self._views[index] = view
            self.mount(view, before=self._views[min(later)] if later else bottom)

        self._update_spacers()

    def _update_spacers(self) -> None:
        items = self._window.virtual_items()
        top = items[0].start if items else 0
        below = self._window.total_size - items[-1].end if items else 0
        self.query_one("#transcript-top", Static).styles.height = max(0, top)
        self.query_one("#transcript-bottom", Static).styles.height = max(0, below)

    def on_message_view_measured(self, event: MessageView.Measured) -> None:
        event.stop()
        if event.index >= self._window.count:
            return
        if self._window.measure(event.index, event.height):
            self._update_spacers()
            if round(self.scroll_y) != self._window.scroll_offset:
                self._jump_to(self._window.scroll_offset)

    def on_resize(self, event: events.Resize) -> None:
        self._window.set_viewport(event.size.height)
        self._sync_views()

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        before = self._window.visible_range()
        self._window.scroll_to(round(new_value))
        if self._coordinator is not None and not self._programmatic_scroll:
            self._coordinator.on_user_scroll(
                new_value, self.scrollable_content_region.height, self.virtual_size.height
            )
        if self._window.visible_range() != before:
            self.call_after_refresh(self._sync_views)


class DebugPanel(RichLog):
    """Log panel for real-time tracing with level filtering.

    Receives stdlib logging records through LogPanelHandler.
    Hidden by default, shown with --log-level or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    _LEVEL_COLORS = {
        LogLevel.DEBUG: "dim white",
        LogLevel.INFO: "cyan",
        LogLevel.WARNING: "yellow",
        LogLevel.ERROR: "red",
    }

    _COMPONENT_COLORS = {
        "tui": "cyan",
        "controller": "green",
        "decoder": "yellow",
        "proxy": "magenta",
        "anthropic": "magenta",
        "store": "blue",
        "file": "bright_blue",
        "coordinator": "bright_cyan",
    }

    def __init__(self, *args, log_level: int = LogLevel.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        """Current log level threshold."""
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {LogLevel.name(self._log_level)}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        self.display = False

    def log_entry(self, component: str, message: str, level: int = LogLevel.DEBUG) -> None:
        """Add a log entry if it meets the current level threshold."""
        if level < self._log_level:
            return
        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."

        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        level_color = self._LEVEL_COLORS.get(min(level, LogLevel.ERROR), "white")
        comp_color = self._COMPONENT_COLORS.get(component, "white")
        line = Text.assemble(
            (f"{timestamp} ", "dim"),
            (f"{LogLevel.name(level):<5} ", level_color),
            (f"[{component}] ", comp_color),
            message,
        )
        self.write(line)

    def info(self, component: str, message: str) -> None:
        self.log_entry(component, message, LogLevel.INFO)

    def show(self) -> None:
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True
