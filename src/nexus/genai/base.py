from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .models import (
    ChatContext,
    EditedImage,
    GeneratedVideo,
    ImageAspectRatio,
    InlineData,
    Part,
    StoryOptions,
    StreamingResponse,
    VideoAspectRatio,
)

ProgressCallback = Callable[[], None]


class GenerativeService(ABC):
    """Abstract base class for generative-AI services.

    This module hides the design decision of which service backs chat,
    image, video and story generation. Implementations must handle
    service-specific details like:
    - API client setup and authentication
    - Request/response format conversion
    - Polling of long-running operations
    - Converting service failures into ``TransportError``

    Supports async context manager protocol for proper resource cleanup:
        async with service:
            image = await service.generate_image("a fox", ImageAspectRatio.SQUARE)
    """

    @abstractmethod
    def create_chat_context(self, system_instruction: str) -> ChatContext:
        """Create a conversation handle seeded with a system instruction."""

    @abstractmethod
    async def send_streamed(self, context: ChatContext, parts: list[Part]) -> StreamingResponse:
        """Send a user turn and stream the reply.

        Args:
            context: Conversation handle from ``create_chat_context``
            parts: Content of the user turn

        Returns:
            StreamingResponse yielding text fragments in order. The stream is
            finite and may raise ``TransportError`` mid-sequence. On success
            the user and model turns are recorded in ``context`` together; a
            failed exchange leaves it unchanged.
        """

    @abstractmethod
    async def generate_image(self, prompt: str, aspect_ratio: ImageAspectRatio) -> InlineData:
        """Generate a single image for a prompt.

        Raises:
            TransportError: If the service fails or returns no image data
        """

    @abstractmethod
    async def edit_image(self, prompt: str, image: InlineData) -> EditedImage:
        """Edit ``image`` according to ``prompt``.

        Raises:
            TransportError: If the service fails or answers without an image
        """

    @abstractmethod
    async def generate_video(
        self,
        prompt: str,
        aspect_ratio: VideoAspectRatio,
        image: InlineData | None = None,
        on_progress: ProgressCallback | None = None,
        poll_interval: float = 10.0,
    ) -> GeneratedVideo:
        """Start a video generation and poll it until a terminal state.

        ``on_progress`` is invoked once per poll, before waiting.

        Raises:
            TransportError: If the operation fails or yields no URI
        """

    @abstractmethod
    async def download_video(self, video: GeneratedVideo, destination: Path) -> Path:
        """Download a generated video to ``destination``."""

    @abstractmethod
    async def generate_story_stream(self, prompt: str, options: StoryOptions) -> StreamingResponse:
        """Stream a story for ``prompt`` shaped by ``options``."""

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "GenerativeService":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
