"""Chat service: the send/receive flow on top of the session registry.

Hides the design decisions about:
- When a session is created (first send with no active session)
- How a chat context is built from persona, model tier and history
- The one-stream-per-session policy
- How collaborator failures become user-visible errors
- Voice input and read-aloud toggling
"""

import logging
from dataclasses import dataclass

from ..capabilities import (
    SpeechRecognizer,
    TextToSpeech,
    UnavailableSpeechRecognizer,
    UnavailableTextToSpeech,
)
from ..config import CHAT_ERROR_PREFIX
from ..errors import (
    SessionNotFoundError,
    StreamInProgressError,
    TransportError,
    UnsupportedCapability,
    ValidationError,
)
from ..genai import ChatContext, ChatTurn, GenerativeService, InlineData
from .models import (
    CHAT_MODELS,
    DEFAULT_MODEL_ID,
    DEFAULT_PERSONA_ID,
    ChatModel,
    Message,
    Persona,
    Session,
    build_system_instruction,
    resolve_chat_model,
    session_name_for,
)
from .personas import PersonaCatalog
from .registry import SessionRegistry
from .streaming import DEFAULT_ERROR_DETAIL, StreamAssembler

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """Outcome of a send: the session written to and the reply or error."""

    session_id: str
    reply: Message | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ChatService:
    """Coordinates the registry, the assembler and the generative service.

    Example:
        chat = ChatService(registry, personas, service)
        result = await chat.send("Hi")
        print(registry.get(result.session_id).last_message.text)
    """

    def __init__(
        self,
        registry: SessionRegistry,
        personas: PersonaCatalog,
        service: GenerativeService,
        assembler: StreamAssembler | None = None,
        recognizer: SpeechRecognizer | None = None,
        tts: TextToSpeech | None = None,
    ):
        self._registry = registry
        self._personas = personas
        self._service = service
        self._assembler = assembler or StreamAssembler(registry)
        self._recognizer = recognizer or UnavailableSpeechRecognizer()
        self._tts = tts or UnavailableTextToSpeech()
        self._contexts: dict[str, ChatContext] = {}
        self._sending: set[str] = set()
        self._voice_notice_shown = False

        self.persona_id = DEFAULT_PERSONA_ID
        self.model_id = DEFAULT_MODEL_ID
        self.draft = ""
        self.error: str | None = None
        self.speaking_index: int | None = None

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def personas(self) -> PersonaCatalog:
        return self._personas

    @property
    def persona(self) -> Persona:
        return self._personas.resolve(self.persona_id)

    @property
    def model(self) -> ChatModel:
        return resolve_chat_model(self.model_id)

    @property
    def loading(self) -> bool:
        """Whether the active session is waiting on a reply (input should be disabled)."""
        active = self._registry.active_id
        return active is not None and active in self._sending

    def is_sending(self, session_id: str) -> bool:
        return session_id in self._sending

    def new_chat(self) -> None:
        """Start over with no active session; in-flight streams keep their session."""
        self._registry.clear_active()
        self.error = None

    def set_persona(self, persona_id: str) -> None:
        """Switch persona; like switching model, this starts a new chat."""
        if persona_id not in self._personas:
            raise ValidationError(f"Unknown persona: {persona_id}")
        self.persona_id = persona_id
        self.new_chat()

    def set_model(self, model_id: str) -> None:
        if model_id not in CHAT_MODELS:
            raise ValidationError(f"Unknown model: {model_id}")
        self.model_id = model_id
        self.new_chat()

    async def select_session(self, session_id: str) -> Session | None:
        """Activate a session and restore its persona and model selection."""
        try:
            session = await self._registry.select_session(session_id)
        except SessionNotFoundError as e:
            logger.warning("%s", e)
            return None
        self.persona_id = session.persona_id
        self.model_id = session.model_id
        self.error = None
        self._contexts[session_id] = self._build_context(session)
        return session

    async def rename_session(self, session_id: str, name: str) -> None:
        try:
            await self._registry.rename_session(session_id, name)
        except SessionNotFoundError as e:
            logger.warning("%s", e)

    async def delete_session(self, session_id: str) -> None:
        try:
            await self._registry.delete_session(session_id)
        except SessionNotFoundError as e:
            logger.warning("%s", e)
            return
        self._contexts.pop(session_id, None)

    def _build_context(self, session: Session | None) -> ChatContext:
        """Create a chat context for the session's persona and tier, replaying its history.

        Leading model messages (the welcome text) and empty replies are not
        replayed, since the conversation sent to the model must open with a
        user turn. Exchanges that ended in an apology are left out, matching
        the history a live context keeps.
        """
        persona = self._personas.resolve(session.persona_id if session else self.persona_id)
        model = resolve_chat_model(session.model_id if session else self.model_id)
        context = self._service.create_chat_context(build_system_instruction(persona, model))

        if session is not None:
            seen_user = False
            for message in session.messages:
                if message.role == "user":
                    seen_user = True
                if not seen_user or not message.parts:
                    continue
                if message.role == "model" and message.text.startswith(CHAT_ERROR_PREFIX):
                    # A failed exchange never joins the model's history:
                    # drop its partial reply and the user turn that started it.
                    while context.history and context.history.pop().role != "user":
                        pass
                    continue
                if message.role == "model" and not message.has_text:
                    continue
                context.history.append(ChatTurn(
                    role=message.role,
                    parts=[p.model_copy(deep=True) for p in message.parts],
                ))
        return context

    async def send(self, text: str | None = None, attachment: InlineData | None = None) -> SendResult:
        """Send a user message to the active session, creating one if needed.

        Raises:
            ValidationError: If there is neither text nor attachment, or the
                attachment is not an image
            StreamInProgressError: If the active session is still streaming

        Returns:
            SendResult; transport failures are reported in ``error`` (and as
            an apology message in the session) rather than raised.
        """
        text = text or ""
        if not text.strip() and attachment is None:
            raise ValidationError("Type a message or attach an image.")
        if attachment is not None and not attachment.is_image:
            raise ValidationError("Please upload a valid image file.")

        active_id = self._registry.active_id
        if active_id is not None and active_id in self._sending:
            raise StreamInProgressError(active_id)

        # The session is marked as sending before the first await, so a
        # concurrent send sees it streaming even while it is being created.
        creating = active_id is None or active_id not in self._registry
        session_id = self._registry.allocate_id() if creating else active_id
        self._sending.add(session_id)

        self.error = None
        if self._recognizer.listening:
            self._recognizer.stop()

        try:
            if creating:
                persona = self.persona
                await self._registry.create_session(
                    persona.id,
                    self.model_id,
                    persona.welcome_message,
                    name=session_name_for(text),
                    session_id=session_id,
                )
                self._contexts[session_id] = self._build_context(None)

            context = self._contexts.get(session_id)
            if context is None:
                context = self._build_context(self._registry.get(session_id))
                self._contexts[session_id] = context

            user_message = Message.user(text if text.strip() else None, attachment)
            await self._registry.append_message(session_id, user_message)
            self.draft = ""

            try:
                stream = await self._service.send_streamed(context, user_message.parts)
            except Exception as e:
                detail = str(e) or DEFAULT_ERROR_DETAIL
                logger.error("Chat request for session %s failed: %s", session_id, detail)
                await self._registry.append_message(
                    session_id, Message.model_text(f"{CHAT_ERROR_PREFIX}{detail}")
                )
                self.error = detail
                return SendResult(session_id=session_id, error=detail)

            try:
                reply = await self._assembler.assemble(session_id, stream)
            except TransportError as e:
                self.error = str(e)
                return SendResult(session_id=session_id, error=self.error)
            return SendResult(session_id=session_id, reply=reply)

        except SessionNotFoundError as e:
            logger.warning("Session vanished during send: %s", e)
            self.error = str(e)
            return SendResult(session_id=session_id, error=self.error)
        finally:
            self._sending.discard(session_id)

    def toggle_listening(self) -> bool:
        """Start or stop voice input; transcripts are appended to ``draft``.

        Returns:
            True if listening after the call. When voice input is unavailable
            a notice is put in ``error`` the first time only.
        """
        if not self._recognizer.available:
            if not self._voice_notice_shown:
                self._voice_notice_shown = True
                notice = UnsupportedCapability("Voice input", "Voice input is not supported on this system.")
                self.error = str(notice)
            return False

        if self._recognizer.listening:
            self._recognizer.stop()
            return False

        def _on_transcript(transcript: str) -> None:
            self.draft = f"{self.draft} {transcript}".strip()

        def _on_error(reason: str) -> None:
            logger.error("Speech recognition error: %s", reason)
            self.error = f"Speech recognition error: {reason}"

        self._recognizer.start(_on_transcript, _on_error)
        return True

    def read_aloud(self, message_index: int) -> bool:
        """Toggle reading a model message of the active session aloud.

        Returns:
            True if the message is now being read.

        Raises:
            UnsupportedCapability: If speech output is unavailable
        """
        if not self._tts.available:
            raise UnsupportedCapability("Read aloud", "Reading aloud is not supported on this system.")

        if self._tts.speaking and self.speaking_index == message_index:
            self._tts.cancel()
            self.speaking_index = None
            return False
        if self._tts.speaking:
            self._tts.cancel()

        session = self._registry.active_session
        if session is None or not 0 <= message_index < len(session.messages):
            return False
        message = session.messages[message_index]
        if message.role != "model" or not message.has_text:
            return False

        def _on_end() -> None:
            if self.speaking_index == message_index:
                self.speaking_index = None

        self.speaking_index = message_index
        self._tts.speak(" ".join(p.text for p in message.parts if p.text), _on_end)
        return True
