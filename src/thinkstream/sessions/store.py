"""Session store: the single source of truth for conversations.

Owns the mapping of session id to session, the notion of a current session,
and durable persistence. Every committed mutation rewrites the durable
record wholesale and then notifies subscribers (renderer, scroll
coordinator).

Mutations are serialised by a re-entrant lock so the store is safe to use
from worker threads as well as from the event loop.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from pydantic import TypeAdapter, ValidationError

from ..chat.models import DEFAULT_TITLE, TITLE_LENGTH, ChatSession, Message, Role
from ..errors import StorageError
from .base import SessionStorage

logger = logging.getLogger(__name__)

_SESSIONS_ADAPTER = TypeAdapter(list[ChatSession])


class ChangeKind(str, Enum):
    """What kind of mutation a change notification describes."""

    CREATED = "created"
    SELECTED = "selected"
    UPDATED = "updated"
    RENAMED = "renamed"
    DELETED = "deleted"
    CLEARED = "cleared"


@dataclass(frozen=True)
class StoreChange:
    """Notification emitted after a committed mutation."""

    kind: ChangeKind
    session_id: str | None = None


StoreListener = Callable[[StoreChange], None]


class SessionStore:
    """In-memory session mapping with durable write-through.

    Example:
        store = SessionStore.open(FileSessionStorage("chats.json"))
        session_id = store.current_id
        store.append_message(session_id, Message(role=Role.USER, content="Hi"))
    """

    def __init__(self, storage: SessionStorage):
        self._storage = storage
        self._sessions: dict[str, ChatSession] = {}
        self._current_id: str | None = None
        self._lock = threading.RLock()
        self._listeners: list[StoreListener] = []

    @classmethod
    def load(cls, storage: SessionStorage) -> "SessionStore":
        """Create a store holding whatever history the storage contains."""
        store = cls(storage)
        store._restore()
        return store

    @classmethod
    def open(cls, storage: SessionStorage) -> "SessionStore":
        """Load history, then start a fresh empty session and make it current."""
        store = cls.load(storage)
        store.create_session()
        return store

    def _restore(self) -> None:
        try:
            blob = self._storage.load()
        except StorageError as e:
            logger.warning("Could not read session history: %s", e)
            return
        if not blob:
            return

        try:
            sessions = _SESSIONS_ADAPTER.validate_json(blob)
        except ValidationError as e:
            logger.warning("Ignoring corrupt session history: %s", e.error_count())
            return

        with self._lock:
            self._sessions = {session.id: session for session in sessions}
        logger.debug("Restored %d session(s)", len(self._sessions))

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: StoreChange) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(change)
            except Exception:
                logger.exception("Store listener failed for %s", change.kind.value)

    def _commit(self) -> None:
        """Rewrite the durable record. Caller must hold the lock."""
        try:
            if self._sessions:
                blob = _SESSIONS_ADAPTER.dump_json(
                    list(self._sessions.values()), by_alias=True
                ).decode("utf-8")
                self._storage.save(blob)
            else:
                self._storage.erase()
        except StorageError as e:
            logger.warning("Session history not persisted: %s", e)

    # ------------------------------------------------------------------
    # Collaborator surface: list / get / put / remove / clear
    # ------------------------------------------------------------------

    def get(self, session_id: str) -> ChatSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def put(self, session: ChatSession) -> None:
        """Insert or replace a session."""
        with self._lock:
            kind = ChangeKind.UPDATED if session.id in self._sessions else ChangeKind.CREATED
            self._sessions[session.id] = session
            self._commit()
        self._notify(StoreChange(kind, session.id))

    def remove(self, session_id: str) -> bool:
        """Remove a session. Returns False if it did not exist."""
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                return False
            if self._current_id == session_id:
                self._current_id = None
            self._commit()
        self._notify(StoreChange(ChangeKind.DELETED, session_id))
        return True

    def clear(self) -> None:
        """Remove every session and erase the durable record."""
        with self._lock:
            self._sessions.clear()
            self._current_id = None
            self._commit()
        self._notify(StoreChange(ChangeKind.CLEARED))

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def current_id(self) -> str | None:
        return self._current_id

    @property
    def current(self) -> ChatSession | None:
        with self._lock:
            if self._current_id is None:
                return None
            return self._sessions.get(self._current_id)

    @property
    def visible_messages(self) -> tuple[Message, ...]:
        """The transcript of the current session; empty when none is current."""
        session = self.current
        return tuple(session.messages) if session is not None else ()

    def snapshot(self) -> list[tuple[int, Message]]:
        """Ordered ``(index, message)`` pairs for the renderer."""
        return list(enumerate(self.visible_messages))

    def create_session(self) -> str:
        """Allocate a new empty session and make it current."""
        session = ChatSession()
        with self._lock:
            self._sessions[session.id] = session
            self._current_id = session.id
            self._commit()
        logger.debug("Created session %s", session.id)
        self._notify(StoreChange(ChangeKind.CREATED, session.id))
        return session.id

    def select_session(self, session_id: str) -> bool:
        """Make an existing session current. Unknown ids are ignored."""
        with self._lock:
            if session_id not in self._sessions:
                return False
            self._current_id = session_id
        self._notify(StoreChange(ChangeKind.SELECTED, session_id))
        return True

    def delete_session(self, session_id: str) -> bool:
        """Delete a session; if it was current, no session is current afterwards."""
        removed = self.remove(session_id)
        if removed:
            logger.debug("Deleted session %s", session_id)
        return removed

    def clear_all(self) -> None:
        """Delete every session and erase durable storage."""
        self.clear()
        logger.debug("Cleared all sessions")

    # ------------------------------------------------------------------
    # Transcript mutation
    # ------------------------------------------------------------------

    def append_message(self, session_id: str, message: Message) -> bool:
        """Append a message. Returns False if the session no longer exists."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            session.messages = [*session.messages, message]
            self._commit()
        self._notify(StoreChange(ChangeKind.UPDATED, session_id))
        return True

    def append_or_replace_last_assistant_message(
        self,
        session_id: str,
        message: Message
    ) -> bool:
        """Replace the trailing assistant message, or append if there is none.

        This is how partial stream updates land in the transcript without
        growing it on every fragment. An update for a session that has been
        deleted is discarded and reported as False, so an orphaned stream
        can never bring the session back.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            last = session.last_message
            if last is not None and last.role is Role.ASSISTANT:
                session.messages = [*session.messages[:-1], message]
            else:
                session.messages = [*session.messages, message]
            self._commit()
        self._notify(StoreChange(ChangeKind.UPDATED, session_id))
        return True

    def derive_title(self, session_id: str) -> str | None:
        """Title a session after its first user message.

        Only applies while the title is still the default placeholder.
        Returns the resulting title, or None if the session does not exist.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            first = session.first_user_message()
            if session.title != DEFAULT_TITLE or first is None:
                return session.title
            session.title = first.content[:TITLE_LENGTH]
            self._commit()
        self._notify(StoreChange(ChangeKind.RENAMED, session_id))
        return session.title

    def __len__(self) -> int:
        return len(self._sessions)

    # Defined last: inside the class body the name shadows the builtin.
    def list(self) -> list[ChatSession]:
        """All sessions in creation order."""
        with self._lock:
            return [*self._sessions.values()]

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
