"""Content and result models exchanged with the generative service."""

import base64
import mimetypes
import re
from collections.abc import AsyncIterator
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[^;,]+)?(;base64)?,(?P<data>.*)$", re.DOTALL)


class StreamingResponse:
    """Wrapper for streaming responses that captures usage info.

    Acts as an async iterator for text fragments while storing token usage
    that becomes available at the end of the stream. Fragments are yielded
    exactly once and in producer order; the stream cannot be restarted.

    Usage:
        stream = await service.send_streamed(context, parts)
        async for fragment in stream:
            print(fragment, end="")
        print(stream.usage)
    """

    def __init__(self, async_iter: AsyncIterator[str]):
        self._iter = async_iter
        self._usage: dict[str, Any] | None = None

    @property
    def usage(self) -> dict[str, Any] | None:
        """Get token usage info (available after iteration completes)."""
        return self._usage

    def set_usage(self, usage: dict[str, Any]) -> None:
        """Set token usage info (called by the service at end of stream)."""
        self._usage = usage

    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> str:
        return await self._iter.__anext__()


class InlineData(BaseModel):
    """Binary attachment carried inline as base64."""

    model_config = ConfigDict(frozen=True)

    mime_type: str = Field(description="MIME type, e.g. image/png")
    data: str = Field(description="Base64-encoded payload")

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> "InlineData":
        return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))

    @classmethod
    def from_file(cls, path: str | Path) -> "InlineData":
        """Read a file, guessing its MIME type from the extension."""
        path = Path(path).expanduser()
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls.from_bytes(path.read_bytes(), mime_type or "application/octet-stream")

    @classmethod
    def from_data_url(cls, url: str) -> "InlineData":
        """Parse a ``data:<mime>;base64,<payload>`` URL.

        Raises:
            ValueError: If the string is not a data URL
        """
        match = _DATA_URL_RE.match(url)
        if not match:
            raise ValueError("Not a data URL")
        return cls(mime_type=match.group("mime") or "image/png", data=match.group("data"))

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class Part(BaseModel):
    """One piece of a message: either text or an inline attachment.

    Text parts are mutable so a streaming reply can grow in place.
    """

    text: str | None = None
    inline_data: InlineData | None = None

    @model_validator(mode="after")
    def _exactly_one_kind(self) -> "Part":
        if (self.text is None) == (self.inline_data is None):
            raise ValueError("A part holds either text or inline_data, not both or neither")
        return self

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_inline(cls, inline: InlineData) -> "Part":
        return cls(inline_data=inline)


class ChatTurn(BaseModel):
    """A single completed turn in a chat context."""

    role: Literal["user", "model"]
    parts: list[Part]


class ChatContext(BaseModel):
    """Conversation handle returned by ``create_chat_context``.

    Holds the system instruction and the turns sent so far; the service
    replays them on every request.
    """

    system_instruction: str
    model: str
    history: list[ChatTurn] = Field(default_factory=list)


class ImageAspectRatio(str, Enum):
    """Aspect ratios accepted by image generation."""

    SQUARE = "1:1"
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    STANDARD = "4:3"
    TALL = "3:4"


class VideoAspectRatio(str, Enum):
    """Aspect ratios offered for video generation."""

    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    SQUARE = "1:1"


class EditedImage(BaseModel):
    """Result of an image edit: the new image and any caption the model added."""

    model_config = ConfigDict(frozen=True)

    image: InlineData
    text: str | None = None


class GeneratedVideo(BaseModel):
    """Terminal result of a video generation operation."""

    model_config = ConfigDict(frozen=True)

    uri: str = Field(description="Download URI of the generated video")
    polls: int = Field(default=0, ge=0, description="Number of polls before completion")


class StoryGenre(str, Enum):
    FANTASY = "Fantasy"
    SCI_FI = "Sci-Fi"
    MYSTERY = "Mystery"
    ROMANCE = "Romance"
    HORROR = "Horror"
    ADVENTURE = "Adventure"


class StoryAudience(str, Enum):
    CHILDREN = "Children"
    TEENAGERS = "Teenagers"
    ADULTS = "Adults"


class StoryTone(str, Enum):
    HUMOROUS = "Humorous"
    SERIOUS = "Serious"
    WHIMSICAL = "Whimsical"
    SUSPENSEFUL = "Suspenseful"
    DRAMATIC = "Dramatic"
    ADVENTUROUS = "Adventurous"


class StoryLength(str, Enum):
    SHORT = "Short"
    MEDIUM = "Medium"
    LONG = "Long"


class StoryOptions(BaseModel):
    """Creative constraints for story generation."""

    model_config = ConfigDict(frozen=True)

    genre: StoryGenre = StoryGenre.FANTASY
    audience: StoryAudience = StoryAudience.TEENAGERS
    tone: StoryTone = StoryTone.ADVENTUROUS
    length: StoryLength = StoryLength.MEDIUM

    def system_instruction(self) -> str:
        return (
            f"You are a creative storyteller. Write a {self.length.value} story for "
            f"{self.audience.value}. The genre is {self.genre.value} and the tone should be "
            f"{self.tone.value}."
        )
