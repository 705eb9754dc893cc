"""Chat session module for Nexus Studio.

Module structure (each module hides a design decision):
- models.py: Session, message and persona representation
- personas.py: Persona catalog and fallback resolution
- registry.py: Session lifecycle and persistence
- streaming.py: Ordered assembly of streamed replies
- chat.py: Send/receive flow and error conversion
"""

from .chat import ChatService, SendResult
from .models import (
    BUILTIN_PERSONAS,
    CHAT_MODELS,
    DEFAULT_MODEL_ID,
    DEFAULT_PERSONA_ID,
    ChatModel,
    Message,
    Persona,
    Session,
)
from .personas import PersonaCatalog
from .registry import SessionRegistry
from .streaming import StreamAssembler

__all__ = [
    "BUILTIN_PERSONAS",
    "CHAT_MODELS",
    "ChatModel",
    "ChatService",
    "DEFAULT_MODEL_ID",
    "DEFAULT_PERSONA_ID",
    "Message",
    "Persona",
    "PersonaCatalog",
    "SendResult",
    "Session",
    "SessionRegistry",
    "StreamAssembler",
]
