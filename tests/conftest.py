"""Pytest configuration and shared fixtures."""
import asyncio
from pathlib import Path

import pytest

from nexus.genai import (
    ChatContext,
    ChatTurn,
    EditedImage,
    GeneratedVideo,
    GenerativeService,
    ImageAspectRatio,
    InlineData,
    Part,
    StoryOptions,
    StreamingResponse,
    VideoAspectRatio,
)
from nexus.sessions import ChatService, PersonaCatalog, SessionRegistry
from nexus.store import InMemoryKeyValueStore

# Smallest valid PNG header; services never decode image bytes
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
EDITED_PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rEDIT"


class FakeGenerativeService(GenerativeService):
    """Scripted generative service.

    ``replies`` holds one script per ``send_streamed`` call and ``requests``
    records the history each call was sent with. A script is a
    list of fragments; an Exception item is raised at that point of the
    stream and an ``asyncio.Event`` item pauses the stream until it is set.
    """

    def __init__(self):
        self.replies: list[list] = []
        self.dispatch_error: Exception | None = None
        self.sent: list[list[Part]] = []
        self.requests: list[list[ChatTurn]] = []
        self.contexts: list[ChatContext] = []

        self.image_error: Exception | None = None
        self.image_requests: list[tuple[str, ImageAspectRatio]] = []

        self.edit_error: Exception | None = None
        self.edit_text: str | None = "Here is your edit."
        self.edit_requests: list[tuple[str, InlineData]] = []

        self.video_error: Exception | None = None
        self.video_polls = 2
        self.video_requests: list[dict] = []

        self.story_fragments: list = ["Once ", "upon ", "a time."]
        self.story_requests: list[tuple[str, StoryOptions]] = []
        self.closed = False

    def create_chat_context(self, system_instruction: str) -> ChatContext:
        context = ChatContext(system_instruction=system_instruction, model="fake-model")
        self.contexts.append(context)
        return context

    async def send_streamed(self, context: ChatContext, parts: list[Part]) -> StreamingResponse:
        if self.dispatch_error is not None:
            raise self.dispatch_error
        self.sent.append(parts)
        self.requests.append(list(context.history))
        script = self.replies.pop(0) if self.replies else ["ok"]
        return StreamingResponse(self._play(script, context, ChatTurn(role="user", parts=parts)))

    async def _play(self, script: list, context: ChatContext | None = None, user_turn: ChatTurn | None = None):
        collected = []
        for item in script:
            if isinstance(item, Exception):
                raise item
            if isinstance(item, asyncio.Event):
                await item.wait()
                continue
            await asyncio.sleep(0)
            collected.append(item)
            yield item
        if context is not None and user_turn is not None:
            context.history.extend([
                user_turn,
                ChatTurn(role="model", parts=[Part.from_text("".join(collected))]),
            ])

    async def generate_image(self, prompt: str, aspect_ratio: ImageAspectRatio) -> InlineData:
        self.image_requests.append((prompt, aspect_ratio))
        if self.image_error is not None:
            raise self.image_error
        return InlineData.from_bytes(PNG_BYTES, "image/png")

    async def edit_image(self, prompt: str, image: InlineData) -> EditedImage:
        self.edit_requests.append((prompt, image))
        if self.edit_error is not None:
            raise self.edit_error
        return EditedImage(image=InlineData.from_bytes(EDITED_PNG_BYTES, "image/png"), text=self.edit_text)

    async def generate_video(
        self,
        prompt: str,
        aspect_ratio: VideoAspectRatio,
        image: InlineData | None = None,
        on_progress=None,
        poll_interval: float = 10.0,
    ) -> GeneratedVideo:
        self.video_requests.append({
            "prompt": prompt,
            "aspect_ratio": aspect_ratio,
            "image": image,
            "poll_interval": poll_interval,
        })
        if self.video_error is not None:
            raise self.video_error
        for _ in range(self.video_polls):
            if on_progress is not None:
                on_progress()
        return GeneratedVideo(uri=f"https://videos.example/{len(self.video_requests)}.mp4", polls=self.video_polls)

    async def download_video(self, video: GeneratedVideo, destination: Path) -> Path:
        destination = Path(destination)
        destination.write_bytes(b"video:" + video.uri.encode())
        return destination

    async def generate_story_stream(self, prompt: str, options: StoryOptions) -> StreamingResponse:
        self.story_requests.append((prompt, options))
        return StreamingResponse(self._play(self.story_fragments))

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def png() -> InlineData:
    return InlineData.from_bytes(PNG_BYTES, "image/png")


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def service() -> FakeGenerativeService:
    return FakeGenerativeService()


@pytest.fixture
async def registry(store) -> SessionRegistry:
    registry = SessionRegistry(store)
    await registry.load()
    return registry


@pytest.fixture
async def personas(store) -> PersonaCatalog:
    catalog = PersonaCatalog(store)
    await catalog.load()
    return catalog


@pytest.fixture
def chat(registry, personas, service) -> ChatService:
    return ChatService(registry, personas, service)
