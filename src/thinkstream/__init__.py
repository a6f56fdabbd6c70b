"""
Thinkstream: a streaming chat client for reasoning language models.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .chat import ChatSession, Message, Role, ThinkingTimer
from .config import ClientSettings
from .controller import ChatController, StreamSession, TurnResult, TurnState
from .errors import ConfigError, DecodeError, StorageError, ThinkstreamError, TransportError
from .sessions import SessionStore, create_session_storage
from .transport import ChatTransport, create_transport

__all__ = [
    "ChatController",
    "ChatSession",
    "ChatTransport",
    "ClientSettings",
    "ConfigError",
    "DecodeError",
    "Message",
    "Role",
    "SessionStore",
    "StorageError",
    "StreamSession",
    "ThinkingTimer",
    "ThinkstreamError",
    "TransportError",
    "TurnResult",
    "TurnState",
    "create_session_storage",
    "create_transport",
]
