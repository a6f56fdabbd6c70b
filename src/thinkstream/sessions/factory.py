"""Factory for creating session storage backends."""

from typing import Any

from .base import SessionStorage


def create_session_storage(
    backend: str = "file",
    **kwargs: Any
) -> SessionStorage:
    """Create a session storage backend.

    Args:
        backend: Backend type ("file" or "memory")
        **kwargs: Backend-specific configuration
            For file:
                - path: str | Path (default: ~/.thinkstream/chats.json)

    Returns:
        SessionStorage instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemorySessionStorage
        return InMemorySessionStorage(**kwargs)

    elif backend == "file":
        from .file import FileSessionStorage
        return FileSessionStorage(**kwargs)

    raise ValueError(
        f"Unsupported storage backend: {backend}. "
        f"Supported backends: file, memory"
    )
