"""Chat controller: drives one streamed turn from submission to a terminal state.

State machine per turn:

    idle -> submitting -> streaming -> completed | errored | cancelled -> idle

Hidden design decisions:
- Optimistic transcript updates (user message and placeholder are committed
  before the first byte arrives and never rolled back)
- At most one stream per session; a new submission cancels the active one
  (last submission wins)
- Cancellation is cooperative: the flag is checked before every event and
  the consuming task is cancelled to abort the transport
- Partial assistant content is always kept, whatever the exit path
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .chat.accumulator import apply_event, is_terminal
from .chat.models import Message, Role
from .chat.timer import ThinkingTimer
from .config import ClientSettings
from .errors import ConfigError, TransportError
from .sessions.store import SessionStore
from .stream.models import Channel, ContentDelta, StreamFailure, UsageReport
from .transport.base import ChatTransport
from .transport.models import ChatRequest

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    """Lifecycle state of a chat turn."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERRORED = "errored"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (TurnState.COMPLETED, TurnState.ERRORED, TurnState.CANCELLED)


@dataclass
class StreamSession:
    """Ephemeral state of one in-flight request. Never persisted."""

    session_id: str
    message: Message
    timer: ThinkingTimer
    started_at: datetime = field(default_factory=datetime.now)
    state: TurnState = TurnState.IDLE
    completed: bool = False
    cancel_requested: bool = False
    orphaned: bool = False
    usage: UsageReport | None = None
    error: str | None = None
    task: asyncio.Task | None = None

    @property
    def thinking_in_progress(self) -> bool:
        return self.timer.is_running

    def cancel(self) -> None:
        """Request cancellation and abort the consuming task."""
        if self.cancel_requested or self.state.is_terminal:
            return
        self.cancel_requested = True

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if self.task is not None and not self.task.done() and self.task is not current:
            self.task.cancel()


@dataclass(frozen=True)
class TurnResult:
    """Outcome of a finished turn."""

    session_id: str
    state: TurnState
    message: Message
    error: str | None = None
    usage: UsageReport | None = None
    thinking_seconds: int = 0


TurnListener = Callable[[TurnState, StreamSession], None]


class ChatController:
    """Orchestrates submissions against a session store and a transport.

    Listeners are called on every state transition and once more, with
    ``streaming``, when the first thinking delta arrives.

    Example:
        controller = ChatController(store, transport, settings)
        result = await controller.submit("How many r's in strawberry?")
        print(result.state, result.message.content)
    """

    def __init__(
        self,
        store: SessionStore,
        transport: ChatTransport,
        settings: ClientSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._transport = transport
        self._settings = settings
        self._clock = clock
        self._active: dict[str, StreamSession] = {}
        self._listeners: list[TurnListener] = []
        self.last_result: TurnResult | None = None

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def state(self) -> TurnState:
        """State of the current session's turn; idle when nothing is in flight."""
        stream = self.active_stream()
        return stream.state if stream is not None else TurnState.IDLE

    def active_stream(self, session_id: str | None = None) -> StreamSession | None:
        sid = session_id or self._store.current_id
        if sid is None:
            return None
        return self._active.get(sid)

    @property
    def is_streaming(self) -> bool:
        return bool(self._active)

    def add_listener(self, listener: TurnListener) -> Callable[[], None]:
        """Register a transition listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _emit(self, state: TurnState, stream: StreamSession) -> None:
        for listener in list(self._listeners):
            try:
                listener(state, stream)
            except Exception:
                logger.exception("Turn listener failed on %s", state.value)

    def _transition(self, stream: StreamSession, state: TurnState) -> None:
        logger.debug("Session %s: %s -> %s", stream.session_id, stream.state.value, state.value)
        stream.state = state
        self._emit(state, stream)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def accepts(self, text: str) -> bool:
        """Whether a submission of ``text`` would be accepted."""
        if not text.strip():
            return False
        try:
            self._settings.require_credential()
        except ConfigError as e:
            logger.debug("Submission refused: %s", e)
            return False
        return True

    def start(self, text: str) -> asyncio.Task | None:
        """Run ``submit`` in a background task. Returns None if refused."""
        if not self.accepts(text):
            return None
        return asyncio.create_task(self.submit(text))

    async def submit(self, text: str) -> TurnResult | None:
        """Submit user input and stream the answer into the current session.

        Returns:
            The turn outcome, or None if the submission was refused (empty
            input or no credential). A refused submission mutates nothing.
        """
        if not self.accepts(text):
            return None

        session_id = self._store.current_id or self._store.create_session()

        previous = self._active.get(session_id)
        if previous is not None:
            logger.info("Cancelling active stream in session %s", session_id)
            previous.cancel()
            if previous.task is not None:
                await asyncio.wait({previous.task})
            if session_id not in self._store:
                session_id = self._store.current_id or self._store.create_session()

        session = self._store.get(session_id)
        user_message = Message(role=Role.USER, content=text)
        # Empty assistant slots (failed turns) are not sent back upstream
        history = [
            message for message in session.messages
            if message.role is Role.USER or message.content
        ]
        history.append(user_message)

        stream = StreamSession(
            session_id=session_id,
            message=Message(role=Role.ASSISTANT),
            timer=ThinkingTimer(self._clock),
            task=asyncio.current_task(),
        )
        self._active[session_id] = stream
        self._store.append_message(session_id, user_message)
        self._transition(stream, TurnState.SUBMITTING)
        self._store.append_message(session_id, stream.message)

        request = ChatRequest.build(history, self._settings)
        try:
            await self._consume(stream, request)
        except asyncio.CancelledError:
            if not stream.cancel_requested:
                # Cancelled from outside (shutdown): finalise, then propagate
                self._finish(stream, TurnState.CANCELLED)
                raise
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            self._finish(stream, TurnState.CANCELLED)
        except TransportError as e:
            logger.warning("Stream in session %s failed: %s", session_id, e)
            stream.error = str(e)
            self._finish(stream, TurnState.ERRORED)
        except Exception as e:
            logger.exception("Stream in session %s raised unexpectedly", session_id)
            stream.error = str(e) or type(e).__name__
            self._finish(stream, TurnState.ERRORED)
        else:
            self._finish(
                stream,
                TurnState.COMPLETED if stream.completed else TurnState.CANCELLED,
            )

        return self.last_result

    async def _consume(self, stream: StreamSession, request: ChatRequest) -> None:
        self._transition(stream, TurnState.STREAMING)

        async with contextlib.aclosing(self._transport.stream(request)) as events:
            async for event in events:
                if stream.cancel_requested:
                    break
                if isinstance(event, StreamFailure):
                    raise TransportError(event.message, status_code=event.code)
                if isinstance(event, UsageReport):
                    stream.usage = event
                    continue
                if is_terminal(event):
                    stream.completed = True
                    break

                updated = apply_event(stream.message, event)
                if updated is stream.message:
                    continue

                if (
                    isinstance(event, ContentDelta)
                    and event.channel is Channel.THINKING
                    and not stream.timer.is_running
                ):
                    stream.timer.start()
                    self._emit(TurnState.STREAMING, stream)

                stream.message = updated
                if not self._store.append_or_replace_last_assistant_message(
                    stream.session_id, updated
                ):
                    logger.info(
                        "Session %s no longer exists, discarding its stream",
                        stream.session_id,
                    )
                    stream.orphaned = True
                    stream.cancel_requested = True
                    break

        if not stream.completed and not stream.cancel_requested:
            raise TransportError("Stream ended before completion")

    def _finish(self, stream: StreamSession, state: TurnState) -> None:
        """Leave streaming: latch the timer, title the session, report the outcome."""
        stream.timer.finish()
        if self._active.get(stream.session_id) is stream:
            del self._active[stream.session_id]
        self._store.derive_title(stream.session_id)

        self.last_result = TurnResult(
            session_id=stream.session_id,
            state=state,
            message=stream.message,
            error=stream.error,
            usage=stream.usage,
            thinking_seconds=stream.timer.elapsed_seconds,
        )
        self._transition(stream, state)
        self._transition(stream, TurnState.IDLE)

    # ------------------------------------------------------------------
    # Cancellation and navigation
    # ------------------------------------------------------------------

    def cancel(self, session_id: str | None = None) -> bool:
        """Cancel the stream of a session (default: the current one)."""
        stream = self.active_stream(session_id)
        if stream is None:
            return False
        stream.cancel()
        return True

    def cancel_all(self) -> None:
        for stream in list(self._active.values()):
            stream.cancel()

    def new_chat(self) -> str:
        """Leave the current conversation and start a fresh one."""
        self.cancel()
        return self._store.create_session()

    def select_session(self, session_id: str) -> bool:
        if session_id != self._store.current_id and session_id in self._store:
            self.cancel()
        return self._store.select_session(session_id)

    def delete_session(self, session_id: str) -> bool:
        self.cancel(session_id)
        return self._store.delete_session(session_id)

    def clear_all(self) -> None:
        self.cancel_all()
        self._store.clear_all()

    async def shutdown(self) -> None:
        """Cancel every stream and wait until all of them have finished."""
        tasks = [s.task for s in self._active.values() if s.task is not None]
        self.cancel_all()
        if tasks:
            await asyncio.wait(tasks)
