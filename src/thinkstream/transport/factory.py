from typing import Any

from .base import ChatTransport


def create_transport(kind: str, **config: Any) -> ChatTransport:
    """Create a chat transport instance.

    This factory function hides the instantiation logic for different backends.

    Args:
        kind: Transport type ('proxy' or 'anthropic')
        **config: Transport-specific configuration
            For proxy:
                - api_token: str (required)
                - base_url: str (default: 'http://localhost:1337')
                - token_header: str (default: 'X-Anthropic-API-Token')
                - timeout: float (default: 600)
            For anthropic:
                - api_key: str (required)
                - base_url: str | None
                - timeout: float (default: 600)

    Returns:
        Initialized transport instance

    Raises:
        ValueError: If transport type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> transport = create_transport(
        ...     "proxy",
        ...     api_token="sk-ant-...",
        ...     base_url="http://localhost:1337"
        ... )

        >>> transport = create_transport("anthropic", api_key="sk-ant-...")
    """
    kind_lower = kind.lower()

    if kind_lower == "proxy":
        if "api_token" not in config:
            raise TypeError("Proxy transport requires 'api_token' in config")
        from .proxy import ProxyTransport
        return ProxyTransport(**config)

    if kind_lower in ("anthropic", "claude"):
        if "api_key" not in config:
            raise TypeError("Anthropic transport requires 'api_key' in config")
        from .anthropic import AnthropicTransport
        return AnthropicTransport(**config)

    raise ValueError(
        f"Unsupported transport: {kind}. "
        f"Supported transports: 'proxy', 'anthropic'"
    )
