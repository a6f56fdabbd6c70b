from .base import ChatTransport
from .factory import create_transport
from .models import AnthropicConfig, ChatRequest, WireMessage
from .proxy import ProxyTransport

__all__ = [
    "AnthropicConfig",
    "ChatRequest",
    "ChatTransport",
    "ProxyTransport",
    "WireMessage",
    "create_transport",
]
