"""Logging integration for the TUI.

Hides the details of how library log records reach the log panel.
Uses thread-safe methods to update the UI from worker threads.
"""

import logging
import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from textual.app import App

    from .widgets import DebugPanel


class LogPanelHandler(logging.Handler):
    """Routes ``thinkstream`` log records into the DebugPanel.

    The component shown in the panel is the last part of the logger name,
    e.g. ``thinkstream.stream.decoder`` shows as ``decoder``.
    """

    def __init__(self, panel: "DebugPanel", app: "App", level: int = logging.DEBUG) -> None:
        super().__init__(level)
        self._panel = panel
        self._app = app
        self.setFormatter(logging.Formatter("%(message)s"))

    def _call_thread_safe(self, func: Any, *args: Any) -> None:
        if self._app._thread_id != threading.get_ident():
            self._app.call_from_thread(func, *args)
        else:
            func(*args)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            component = record.name.rsplit(".", 1)[-1]
            self._call_thread_safe(self._panel.log_entry, component, message, record.levelno)
        except Exception:
            self.handleError(record)
