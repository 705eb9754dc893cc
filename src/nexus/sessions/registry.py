"""Session registry: the in-memory map of chat sessions.

Owns session creation, selection, rename and deletion, and writes the whole
collection to the key/value store after every mutation. A failed write is
logged; in-memory state is never rolled back.
"""

import logging
from collections.abc import Callable

import pydantic

from ..config import CHAT_SESSIONS_KEY
from ..errors import PersistenceError, SessionNotFoundError, ValidationError
from ..store import KeyValueStore
from .models import Message, Session, new_session_id

logger = logging.getLogger(__name__)

SessionListener = Callable[[str | None], None]


class SessionRegistry:
    """Map of session id to session record with an "active" pointer.

    Listeners registered through ``subscribe`` are called with the affected
    session id after every mutation (including each streamed fragment) and
    with ``None`` when the active pointer is cleared.

    Example:
        registry = SessionRegistry(store)
        await registry.load()
        sid = await registry.create_session("Nexus", "flash", "Hello!")
        await registry.append_message(sid, Message.user("Hi"))
    """

    def __init__(self, store: KeyValueStore, key: str = CHAT_SESSIONS_KEY):
        self._store = store
        self._key = key
        self._sessions: dict[str, Session] = {}
        self._active_id: str | None = None
        self._listeners: list[SessionListener] = []

    async def load(self) -> None:
        """Restore sessions from the store; corrupt data leaves the registry empty."""
        try:
            data = await self._store.get(self._key)
        except PersistenceError as e:
            logger.error("Failed to load chat sessions: %s", e)
            data = None
        if data is not None and not isinstance(data, dict):
            logger.warning("Ignoring chat sessions stored as %s", type(data).__name__)
            data = None

        self._sessions = {}
        for entry in (data or {}).values():
            try:
                session = Session.model_validate(entry)
            except pydantic.ValidationError as e:
                logger.warning("Skipping invalid session entry: %s", e)
                continue
            self._sessions[session.id] = session
        self._active_id = None
        logger.debug("Loaded %d chat session(s)", len(self._sessions))

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def active_id(self) -> str | None:
        return self._active_id

    @property
    def active_session(self) -> Session | None:
        if self._active_id is None:
            return None
        return self._sessions.get(self._active_id)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> Session:
        """Return a session by id.

        Raises:
            SessionNotFoundError: If the id is not registered
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def allocate_id(self) -> str:
        """Return an id no registered session uses."""
        session_id = new_session_id()
        while session_id in self._sessions:
            session_id = new_session_id()
        return session_id

    def list_sessions(self) -> list[Session]:
        """Sessions ordered newest first (ids sort by creation time)."""
        return sorted(self._sessions.values(), key=lambda s: s.id, reverse=True)

    async def create_session(
        self,
        persona_id: str,
        model_id: str,
        initial_message: str,
        name: str = "New Chat",
        session_id: str | None = None,
    ) -> str:
        """Create a session seeded with a model-authored welcome message.

        The new session becomes active.

        Args:
            persona_id: Persona the session is bound to
            model_id: Model tier the session is bound to
            initial_message: Welcome text of the first (model) message
            name: Display name
            session_id: Id reserved with ``allocate_id``; a fresh one is
                allocated when omitted

        Returns:
            The new session id
        """
        if session_id is None:
            session_id = self.allocate_id()
        elif session_id in self._sessions:
            raise ValidationError(f"Session id already registered: {session_id}")

        self._sessions[session_id] = Session(
            id=session_id,
            name=name,
            messages=[Message.model_text(initial_message)],
            persona_id=persona_id,
            model_id=model_id,
        )
        self._active_id = session_id
        logger.info("Created session %s (%s/%s)", session_id, persona_id, model_id)
        await self._commit(session_id)
        return session_id

    async def select_session(self, session_id: str) -> Session:
        """Make a session active and return it so callers restore its persona and model.

        Raises:
            SessionNotFoundError: If the id is not registered
        """
        session = self.get(session_id)
        self._active_id = session_id
        self._notify(session_id)
        return session

    def clear_active(self) -> None:
        """Enter the "no active session" state; the next send creates a session."""
        self._active_id = None
        self._notify(None)

    async def append_message(self, session_id: str, message: Message) -> None:
        """Append a message to a session.

        Raises:
            SessionNotFoundError: If the id is not registered
        """
        self.get(session_id).messages.append(message)
        await self._commit(session_id)

    async def rename_session(self, session_id: str, name: str) -> None:
        """Rename a session; blank names are rejected and the old name is kept.

        Raises:
            SessionNotFoundError: If the id is not registered
            ValidationError: If the new name is empty after stripping
        """
        session = self.get(session_id)
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("Session name cannot be empty")
        session.name = cleaned
        await self._commit(session_id)

    async def delete_session(self, session_id: str) -> None:
        """Delete a session; deleting the active one clears the active pointer.

        Raises:
            SessionNotFoundError: If the id is not registered
        """
        if session_id not in self._sessions:
            raise SessionNotFoundError(session_id)
        del self._sessions[session_id]
        if self._active_id == session_id:
            self._active_id = None
        logger.info("Deleted session %s", session_id)
        await self._commit(session_id)

    async def commit(self, session_id: str) -> None:
        """Persist and notify after an in-place change to a session's messages."""
        await self._commit(session_id)

    async def _commit(self, session_id: str | None) -> None:
        await self._persist()
        self._notify(session_id)

    async def _persist(self) -> None:
        payload = {sid: s.model_dump(mode="json") for sid, s in self._sessions.items()}
        try:
            await self._store.set(self._key, payload)
        except PersistenceError as e:
            logger.error("Failed to save chat sessions: %s", e)

    def _notify(self, session_id: str | None) -> None:
        for listener in list(self._listeners):
            listener(session_id)
