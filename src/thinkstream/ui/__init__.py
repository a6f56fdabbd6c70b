"""Terminal UI module for thinkstream.

Provides a Textual-based TUI for streamed reasoning chats.

Module structure (Parnas principle - each module hides a design decision):
- widgets.py: Custom widgets (input history, session list, windowed transcript, log panel)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palettes and theme configuration
- screens.py: Modal dialogs (confirmation screens)
- callbacks.py: Logging integration (how log records reach the TUI)
- app.py: Application orchestration (user interaction flow)
"""

from .app import ThinkstreamApp, run_textual_tui
from .callbacks import LogPanelHandler
from .config import LogLevel
from .screens import ConfirmationScreen
from .widgets import (
    ChatInputBar,
    DebugPanel,
    MessageView,
    SessionSidebar,
    StatusBar,
    TranscriptView,
)

__all__ = [
    "ChatInputBar",
    "ConfirmationScreen",
    "DebugPanel",
    "LogLevel",
    "LogPanelHandler",
    "MessageView",
    "SessionSidebar",
    "StatusBar",
    "ThinkstreamApp",
    "TranscriptView",
    "run_textual_tui",
]
