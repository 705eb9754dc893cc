"""Data models for chat sessions.

These models define sessions, messages and personas independently of the
store used to persist them.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from uuid_extensions import uuid7

from ..config import IMAGE_SESSION_NAME, SESSION_NAME_MAX_LENGTH
from ..genai.models import InlineData, Part

Role = Literal["user", "model"]


class Message(BaseModel):
    """A chat message: a role and an ordered list of parts."""

    role: Role = Field(description="Author of the message: 'user' or 'model'")
    parts: list[Part] = Field(default_factory=list)

    @classmethod
    def model_text(cls, text: str) -> "Message":
        """Create a model-authored message with a single text part."""
        return cls(role="model", parts=[Part.from_text(text)])

    @classmethod
    def user(cls, text: str | None = None, attachment: InlineData | None = None) -> "Message":
        """Create a user message; the attachment (if any) comes before the text."""
        parts: list[Part] = []
        if attachment is not None:
            parts.append(Part.from_inline(attachment))
        if text:
            parts.append(Part.from_text(text))
        return cls(role="user", parts=parts)

    @property
    def text(self) -> str:
        """All text parts joined together."""
        return "".join(p.text for p in self.parts if p.text)

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())


class Session(BaseModel):
    """A persisted, named conversation thread."""

    id: str = Field(description="Time-ordered identifier (uuid7)")
    name: str
    messages: list[Message] = Field(default_factory=list)
    persona_id: str
    model_id: str

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None


class Persona(BaseModel):
    """A named system-prompt profile selectable per session."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    instruction: str
    welcome_message: str


class ChatModel(BaseModel):
    """A selectable model tier; all tiers share the configured chat model."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    instruction_suffix: str = ""


DEFAULT_PERSONA_ID = "Nexus"
DEFAULT_MODEL_ID = "flash"

BUILTIN_PERSONAS: dict[str, Persona] = {
    "Nexus": Persona(
        id="Nexus",
        name="Nexus AI (Default)",
        instruction=(
            "You are Nexus AI, a helpful and versatile symbiotic assistant. Be concise, "
            "knowledgeable, and friendly. Your goal is to provide accurate information and "
            "complete tasks efficiently."
        ),
        welcome_message="Hello! I am Nexus AI. How can I assist you today?",
    ),
    "Creative": Persona(
        id="Creative",
        name="Creative Muse",
        instruction=(
            "You are a Creative Muse, an AI specialized in brainstorming, writing, and artistic "
            "inspiration. Be imaginative, eloquent, and encouraging. Provide unique ideas and help "
            "users overcome creative blocks."
        ),
        welcome_message="Greetings! I am your Creative Muse. What wonders shall we imagine today?",
    ),
    "Technical": Persona(
        id="Technical",
        name="Code Architect",
        instruction=(
            "You are a Code Architect, a master of software engineering, algorithms, and system "
            "design. Provide clear, optimal, and well-explained code. Prioritize best practices, "
            "security, and performance. Explain complex technical concepts simply."
        ),
        welcome_message="Code Architect initialized. Provide the technical challenge.",
    ),
    "Business": Persona(
        id="Business",
        name="Strategic Analyst",
        instruction=(
            "You are a Strategic Analyst AI. You are an expert in business strategy, market "
            "analysis, and financial planning. Provide data-driven insights, create professional "
            "reports, and help users make informed business decisions. Your tone is professional "
            "and insightful."
        ),
        welcome_message="Welcome. I am your Strategic Analyst. How can we optimize for success today?",
    ),
}

CHAT_MODELS: dict[str, ChatModel] = {
    "flash": ChatModel(id="flash", name="Nexus QLM - Flash", description="Fast, for general tasks."),
    "pro": ChatModel(
        id="pro",
        name="Nexus QLM - Pro",
        description="Advanced, for deep reasoning.",
        instruction_suffix="Focus on providing deep, thoughtful, and well-structured answers.",
    ),
    "vision": ChatModel(
        id="vision",
        name="Nexus QLM - Vision",
        description="Specialized, for image analysis.",
        instruction_suffix=(
            "You are a world-class expert at analyzing images with extreme detail. When an image "
            "is provided, describe it with a sharp eye for subtleties."
        ),
    ),
}


def new_session_id() -> str:
    """Allocate a unique identifier that sorts by creation time."""
    return str(uuid7())


def session_name_for(text: str | None) -> str:
    """Derive a display name from the first user input."""
    name = (text or "").strip()[:SESSION_NAME_MAX_LENGTH]
    return name or IMAGE_SESSION_NAME


def resolve_chat_model(model_id: str) -> ChatModel:
    return CHAT_MODELS.get(model_id, CHAT_MODELS[DEFAULT_MODEL_ID])


def build_system_instruction(persona: Persona, model: ChatModel) -> str:
    if model.instruction_suffix:
        return f"{persona.instruction}\n{model.instruction_suffix}"
    return persona.instruction
