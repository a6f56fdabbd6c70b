"""Session module for thinkstream.

Provides the session store and durable storage for conversation history.
"""

from .base import SessionStorage
from .factory import create_session_storage
from .file import FileSessionStorage
from .in_memory import InMemorySessionStorage
from .store import ChangeKind, SessionStore, StoreChange

__all__ = [
    "ChangeKind",
    "FileSessionStorage",
    "InMemorySessionStorage",
    "SessionStorage",
    "SessionStore",
    "StoreChange",
    "create_session_storage",
]
