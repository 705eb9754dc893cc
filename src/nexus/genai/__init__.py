from .base import GenerativeService, ProgressCallback
from .factory import create_generative_service
from .models import (
    ChatContext,
    ChatTurn,
    EditedImage,
    GeneratedVideo,
    ImageAspectRatio,
    InlineData,
    Part,
    StoryAudience,
    StoryGenre,
    StoryLength,
    StoryOptions,
    StoryTone,
    StreamingResponse,
    VideoAspectRatio,
)
from .providers import GeminiService

__all__ = [
    "ChatContext",
    "ChatTurn",
    "EditedImage",
    "GeminiService",
    "GeneratedVideo",
    "GenerativeService",
    "ImageAspectRatio",
    "InlineData",
    "Part",
    "ProgressCallback",
    "StoryAudience",
    "StoryGenre",
    "StoryLength",
    "StoryOptions",
    "StoryTone",
    "StreamingResponse",
    "VideoAspectRatio",
    "create_generative_service",
]
