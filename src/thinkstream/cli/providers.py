"""Provider factory functions for CLI.

Centralizes creation of settings, session storage and transports from
environment variables. Hides configuration details from command
implementations.
"""

import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from ..config import ClientSettings
from ..errors import ConfigError
from ..sessions import SessionStorage, create_session_storage
from ..transport import ChatTransport, create_transport

# Default console for output
_console = Console()


def configure_logging(level: str | None, console: Console | None = None) -> None:
    """Send ``thinkstream`` log records to stderr through Rich.

    Args:
        level: debug, info, warning or error; None leaves logging untouched
        console: Optional Rich console to render into
    """
    if level is None:
        return
    logger = logging.getLogger("thinkstream")
    logger.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(
            RichHandler(
                console=console or Console(stderr=True),
                show_path=False,
                rich_tracebacks=True,
            )
        )


def get_settings(console: Console | None = None, **overrides: object) -> ClientSettings:
    """Create client settings from environment variables.

    Args:
        console: Optional Rich console for output
        **overrides: Values that win over the environment (None is ignored)

    Returns:
        Validated ClientSettings

    Raises:
        SystemExit: If a variable holds an invalid value
    """
    con = console or _console
    try:
        return ClientSettings.from_env(**overrides)
    except ValidationError as e:
        con.print(f"[red]Error: invalid configuration: {e}[/red]")
        raise typer.Exit(code=1)


def get_storage(settings: ClientSettings, ephemeral: bool = False) -> SessionStorage:
    """Create the session storage backend.

    Args:
        settings: Client settings
        ephemeral: Keep history in memory only for this process

    Returns:
        Session storage instance

    Environment variables:
        THINKSTREAM_STORAGE: Backend type (file, memory; default: file)
        THINKSTREAM_STORAGE_PATH: History file (default: ~/.thinkstream/chats.json)
    """
    if ephemeral or settings.storage_backend == "memory":
        return create_session_storage("memory")
    try:
        return create_session_storage(settings.storage_backend, path=settings.storage_path)
    except ValueError as e:
        _console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


def get_transport(settings: ClientSettings, console: Console | None = None) -> ChatTransport:
    """Create the chat transport, exiting if no credential is configured.

    Args:
        settings: Client settings
        console: Optional Rich console for output

    Returns:
        Transport instance

    Raises:
        SystemExit: If THINKSTREAM_API_TOKEN is not set or the transport is unknown

    Environment variables:
        THINKSTREAM_TRANSPORT: proxy or anthropic (default: proxy)
        THINKSTREAM_API_TOKEN: Credential (falls back to ANTHROPIC_API_KEY)
        THINKSTREAM_BASE_URL: Proxy endpoint (proxy transport only)
    """
    con = console or _console
    try:
        token = settings.require_credential()
    except ConfigError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    kind = settings.transport.lower()
    try:
        if kind == "proxy":
            return create_transport(
                "proxy",
                api_token=token,
                base_url=settings.base_url,
                timeout=settings.request_timeout,
            )
        return create_transport(kind, api_key=token, timeout=settings.request_timeout)
    except ValueError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
