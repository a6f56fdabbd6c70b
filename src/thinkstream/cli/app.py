"""Main CLI application using Typer."""
import asyncio
import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..chat.models import Message, Role
from ..chat.timer import format_elapsed_time
from ..controller import ChatController, TurnResult, TurnState
from ..errors import TransportError
from ..sessions import ChangeKind, SessionStore, StoreChange
from ..transport.models import ChatRequest
from .providers import configure_logging, get_settings, get_storage, get_transport

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="thinkstream",
    help="Streaming chat client for reasoning language models",
    no_args_is_help=True,
    add_completion=True,
)

sessions_app = typer.Typer(
    help="Inspect and manage stored conversations",
    no_args_is_help=True,
)
app.add_typer(sessions_app, name="sessions")

# Console for rich output
console = Console()


class _StreamEcho:
    """Prints the growing assistant message of one session as it streams."""

    def __init__(self, store: SessionStore, out: Console, show_thinking: bool = True) -> None:
        self._store = store
        self._out = out
        self._show_thinking = show_thinking
        self._thinking_printed = 0
        self._content_printed = 0

    def __call__(self, change: StoreChange) -> None:
        if change.kind is not ChangeKind.UPDATED or change.session_id is None:
            return
        session = self._store.get(change.session_id)
        last = session.last_message if session is not None else None
        if last is None or not last.is_assistant:
            return

        thinking = last.thinking or ""
        if self._show_thinking and len(thinking) > self._thinking_printed:
            if self._thinking_printed == 0:
                self._out.print("[dim italic]Thinking...[/dim italic]")
            self._write(thinking[self._thinking_printed:], style="dim")
            self._thinking_printed = len(thinking)

        if len(last.content) > self._content_printed:
            if self._content_printed == 0 and self._thinking_printed:
                self._out.print("\n")
            self._write(last.content[self._content_printed:])
            self._content_printed = len(last.content)

    def _write(self, fragment: str, style: str | None = None) -> None:
        self._out.print(fragment, style=style, end="", markup=False, highlight=False, soft_wrap=True)


def _resolve_session(store: SessionStore, ident: str) -> str:
    """Map an id or unique id prefix to a session id, exiting if ambiguous."""
    if ident in store:
        return ident
    matches = [session.id for session in store.list() if session.id.startswith(ident)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        console.print(f"[red]Error: no conversation matches '{ident}'[/red]")
    else:
        console.print(f"[red]Error: '{ident}' matches {len(matches)} conversations[/red]")
    raise typer.Exit(code=1)


def _load_store() -> SessionStore:
    settings = get_settings(console)
    return SessionStore.load(get_storage(settings))


def _print_footer(result: TurnResult) -> None:
    parts = []
    if result.message.thinking is not None:
        parts.append(f"Thought for {format_elapsed_time(result.thinking_seconds)}")
    if result.usage is not None:
        parts.append(
            f"Tokens: {result.usage.total_tokens:,} "
            f"({result.usage.input_tokens:,}/{result.usage.output_tokens:,})"
        )
        parts.append(f"Cost: {result.usage.total_cost}")
    if parts:
        console.print(f"[dim]{'  '.join(parts)}[/dim]")


@app.command()
def chat(
    ephemeral: bool = typer.Option(
        False,
        "--ephemeral",
        "-e",
        help="Keep conversations in memory only"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch the interactive chat TUI."""
    settings = get_settings(console)
    transport = get_transport(settings, console)
    store = SessionStore.open(get_storage(settings, ephemeral=ephemeral))
    logging.getLogger("thinkstream").setLevel((log_level or settings.log_level).upper())

    async def _chat():
        from ..ui import run_textual_tui

        async with transport:
            controller = ChatController(store, transport, settings)
            await run_textual_tui(controller, settings, log_level=log_level)

    try:
        asyncio.run(_chat())
    except KeyboardInterrupt:
        pass
    console.print("\n[dim]Goodbye![/dim]")


@app.command()
def ask(
    prompt: str = typer.Argument(
        ...,
        help="Question to send"
    ),
    session: str | None = typer.Option(
        None,
        "--session",
        "-s",
        help="Continue a stored conversation (id or unique id prefix)"
    ),
    hide_thinking: bool = typer.Option(
        False,
        "--hide-thinking",
        help="Do not print the model's thinking"
    ),
    no_stream: bool = typer.Option(
        False,
        "--no-stream",
        help="Wait for the complete answer instead of streaming it"
    ),
    ephemeral: bool = typer.Option(
        False,
        "--ephemeral",
        "-e",
        help="Do not persist the conversation"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level for stderr output: debug, info, warning, or error"
    ),
):
    """Ask a single question and print the streamed answer."""
    settings = get_settings(console)
    configure_logging(log_level or settings.log_level)
    transport = get_transport(settings, console)
    store = SessionStore.load(get_storage(settings, ephemeral=ephemeral))

    if session:
        store.select_session(_resolve_session(store, session))
    else:
        store.create_session()

    async def _complete() -> Message:
        session_id = store.current_id
        history = [*store.current.messages, Message(role=Role.USER, content=prompt)]
        answer = await transport.complete(ChatRequest.build(history, settings, stream=False))
        store.append_message(session_id, history[-1])
        store.append_message(session_id, answer)
        store.derive_title(session_id)
        return answer

    async def _ask() -> TurnResult | Message | None:
        async with transport:
            if no_stream:
                return await _complete()

            controller = ChatController(store, transport, settings)
            unsubscribe = store.subscribe(
                _StreamEcho(store, console, show_thinking=not hide_thinking)
            )
            try:
                return await controller.submit(prompt)
            finally:
                unsubscribe()

    try:
        result = asyncio.run(_ask())
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        raise typer.Exit(code=130)
    except TransportError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if isinstance(result, Message):
        if result.thinking and not hide_thinking:
            console.print(Panel(Text(result.thinking), title="Thinking", border_style="dim"))
        console.print(Markdown(result.content))
        return

    console.print()
    if result is None:
        console.print("[red]Error: nothing to send[/red]")
        raise typer.Exit(code=1)
    if result.state is TurnState.ERRORED:
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(code=1)
    if result.state is TurnState.CANCELLED:
        console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(code=130)
    _print_footer(result)


@sessions_app.command("list")
def list_sessions():
    """List stored conversations, newest first."""
    store = _load_store()
    sessions = sorted(store.list(), key=lambda s: s.created_at, reverse=True)
    if not sessions:
        console.print("[dim]No stored conversations.[/dim]")
        return

    table = Table(title=f"Conversations ({len(sessions)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Messages", justify="right")
    table.add_column("Created", style="dim")

    for chat_session in sessions:
        table.add_row(
            chat_session.id[:8],
            Text(chat_session.title),
            str(len(chat_session.messages)),
            chat_session.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@sessions_app.command("show")
def show_session(
    session_id: str = typer.Argument(
        ...,
        help="Conversation id or unique id prefix"
    ),
    hide_thinking: bool = typer.Option(
        False,
        "--hide-thinking",
        help="Do not print thinking sections"
    ),
):
    """Print the transcript of a stored conversation."""
    store = _load_store()
    chat_session = store.get(_resolve_session(store, session_id))

    console.print(Text.assemble((chat_session.title, "bold cyan"), " ", (chat_session.id, "dim")))
    console.print()
    for message in chat_session.messages:
        if message.role is Role.USER:
            console.print("[bold yellow]You:[/bold yellow]", Text(message.content))
            continue
        if message.thinking and not hide_thinking:
            console.print(Panel(Text(message.thinking), title="Thinking", border_style="dim"))
        console.print("[bold green]Assistant:[/bold green]")
        console.print(Markdown(message.content))
        console.print()


@sessions_app.command("delete")
def delete_session(
    session_id: str = typer.Argument(
        ...,
        help="Conversation id or unique id prefix"
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt"
    ),
):
    """Delete one stored conversation."""
    store = _load_store()
    resolved = _resolve_session(store, session_id)
    title = store.get(resolved).title

    if not yes:
        confirm = typer.confirm(f"Delete '{title}'?")
        if not confirm:
            console.print("[dim]Aborted.[/dim]")
            return

    store.delete_session(resolved)
    console.print(f"[green]Deleted conversation {resolved[:8]}.[/green]")


@sessions_app.command("clear")
def clear_sessions(
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt"
    ),
):
    """Delete every stored conversation."""
    store = _load_store()
    count = len(store)

    if not yes:
        console.print(f"[yellow]WARNING: This will delete all {count} conversations![/yellow]")
        confirm = typer.confirm("Are you sure you want to continue?")
        if not confirm:
            console.print("[dim]Aborted.[/dim]")
            return

    store.clear_all()
    console.print(f"[green]Success! Deleted {count} conversations.[/green]")


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
