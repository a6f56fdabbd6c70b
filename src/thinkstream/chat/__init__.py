"""Chat module for thinkstream.

Message and session models, the stream accumulator and the thinking timer.
"""

from .accumulator import apply_event, fold_events, is_terminal
from .models import DEFAULT_TITLE, TITLE_LENGTH, ChatSession, Message, Role, new_session_id
from .timer import ThinkingTimer, format_elapsed_time

__all__ = [
    "DEFAULT_TITLE",
    "TITLE_LENGTH",
    "ChatSession",
    "Message",
    "Role",
    "ThinkingTimer",
    "apply_event",
    "fold_events",
    "format_elapsed_time",
    "is_terminal",
    "new_session_id",
]
