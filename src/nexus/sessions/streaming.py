"""Streaming response assembly.

Applies a lazy, ordered sequence of text fragments to the last model message
of the session the stream was bound to at dispatch time.
"""

import logging
from collections.abc import AsyncIterable

from ..config import CHAT_ERROR_PREFIX
from ..errors import StreamInProgressError, TransportError
from .models import Message
from .registry import SessionRegistry

logger = logging.getLogger(__name__)

DEFAULT_ERROR_DETAIL = "An error occurred."


class StreamAssembler:
    """Grows a session's in-flight model message fragment by fragment.

    Only one stream may be active per session. Fragments always go to the
    session id passed to ``assemble``, whichever session is active in the
    registry at the time.
    """

    def __init__(self, registry: SessionRegistry):
        self._registry = registry
        self._streaming: set[str] = set()

    def is_streaming(self, session_id: str) -> bool:
        return session_id in self._streaming

    @property
    def streaming_sessions(self) -> frozenset[str]:
        return frozenset(self._streaming)

    async def assemble(self, session_id: str, fragments: AsyncIterable[str]) -> Message:
        """Consume ``fragments`` into a new model message of ``session_id``.

        An empty model message is appended before the first fragment so the
        reply grows visibly from fragment zero. The same message object is
        extended in place for every fragment.

        Returns:
            The model message that received the fragments

        Raises:
            StreamInProgressError: If the session is already streaming
            SessionNotFoundError: If the session does not exist at dispatch
            TransportError: If the producer fails mid-stream; partial text is
                kept and an apology message is appended to the session
        """
        if session_id in self._streaming:
            raise StreamInProgressError(session_id)

        self._streaming.add(session_id)
        try:
            message = Message.model_text("")
            await self._registry.append_message(session_id, message)

            count = 0
            try:
                async for fragment in fragments:
                    await self._apply(session_id, fragment)
                    count += 1
            except Exception as e:
                detail = str(e) or DEFAULT_ERROR_DETAIL
                logger.warning("Stream for session %s failed after %d fragment(s): %s", session_id, count, detail)
                await self.append_error(session_id, detail)
                if isinstance(e, TransportError):
                    raise
                raise TransportError(detail) from e

            logger.debug("Stream for session %s completed with %d fragment(s)", session_id, count)
            return message
        finally:
            self._streaming.discard(session_id)

    async def _apply(self, session_id: str, fragment: str) -> None:
        if session_id not in self._registry:
            logger.warning("Dropping fragment for deleted session %s", session_id)
            return

        session = self._registry.get(session_id)
        last = session.last_message
        if last is None or last.role != "model" or not last.parts or last.parts[0].text is None:
            logger.warning("Session %s has no model message to extend", session_id)
            return

        last.parts[0].text += fragment
        await self._registry.commit(session_id)

    async def append_error(self, session_id: str, detail: str) -> None:
        """Append a model-authored apology so the conversation log stays coherent."""
        if session_id not in self._registry:
            logger.warning("Cannot record error for deleted session %s: %s", session_id, detail)
            return
        await self._registry.append_message(session_id, Message.model_text(f"{CHAT_ERROR_PREFIX}{detail}"))
