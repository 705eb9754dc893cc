"""Google Gemini generative service implementation.

Uses the official Google GenAI SDK for async chat, image, video and story
generation.
Reference: https://github.com/googleapis/python-genai

Note: Gemini can return empty chunks due to safety filtering; they are
skipped rather than yielded as empty fragments.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ...config import (
    DEFAULT_CHAT_MODEL,
    DEFAULT_EDIT_MODEL,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_VIDEO_MODEL,
)
from ...errors import TransportError
from ..base import GenerativeService, ProgressCallback
from ..models import (
    ChatContext,
    ChatTurn,
    EditedImage,
    GeneratedVideo,
    ImageAspectRatio,
    InlineData,
    Part,
    StoryOptions,
    StreamingResponse,
    VideoAspectRatio,
)

logger = logging.getLogger(__name__)

# Default safety settings - relaxed so creative prompts are not over-blocked
DEFAULT_SAFETY_SETTINGS = [
    types.SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="BLOCK_ONLY_HIGH"),
]

_TRANSPORT_ERRORS = (genai_errors.APIError, httpx.HTTPError)


def _usage_from(metadata: Any) -> dict[str, int]:
    return {
        "prompt_tokens": metadata.prompt_token_count or 0,
        "completion_tokens": metadata.candidates_token_count or 0,
        "total_tokens": metadata.total_token_count or 0,
    }


class GeminiService(GenerativeService):
    """Google Gemini generative service.

    Hidden design decisions:
    - Google GenAI client initialization
    - Part/turn format conversion
    - Model selection per operation
    - Video operation polling and authenticated download
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_CHAT_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        edit_model: str = DEFAULT_EDIT_MODEL,
        video_model: str = DEFAULT_VIDEO_MODEL,
        **client_kwargs: Any
    ):
        """Initialize Gemini service.

        Args:
            api_key: Google AI API key
            model: Chat and story model
            image_model: Image generation model
            edit_model: Image editing model (must answer with image parts)
            video_model: Video generation model
            **client_kwargs: Additional kwargs for Client
        """
        self._api_key = api_key
        self._model = model
        self._image_model = image_model
        self._edit_model = edit_model
        self._video_model = video_model
        self._client = genai.Client(api_key=api_key, **client_kwargs)

    @property
    def model(self) -> str:
        """Get the default chat model name."""
        return self._model

    def _convert_part(self, part: Part) -> types.Part:
        if part.inline_data is not None:
            return types.Part(inline_data=types.Blob(
                mime_type=part.inline_data.mime_type,
                data=part.inline_data.to_bytes(),
            ))
        return types.Part(text=part.text or "")

    def _convert_turns(self, turns: list[ChatTurn]) -> list[types.Content]:
        return [
            types.Content(role=turn.role, parts=[self._convert_part(p) for p in turn.parts])
            for turn in turns
        ]

    def _extract_content(self, response: Any) -> str:
        """Extract text content from a response or chunk, handling empty ones."""
        if response.candidates and len(response.candidates) > 0:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                texts = [part.text for part in candidate.content.parts if getattr(part, "text", None)]
                if texts:
                    return "".join(texts)

        try:
            return response.text or ""
        except (ValueError, AttributeError):
            return ""

    def create_chat_context(self, system_instruction: str) -> ChatContext:
        return ChatContext(system_instruction=system_instruction, model=self._model)

    async def send_streamed(self, context: ChatContext, parts: list[Part]) -> StreamingResponse:
        """Send a user turn and stream the model reply.

        The user and model turns join the context history together once the
        stream has completed; a failed exchange leaves the history as it was.
        """
        user_turn = ChatTurn(role="user", parts=[p.model_copy(deep=True) for p in parts])
        contents = self._convert_turns([*context.history, user_turn])
        config = types.GenerateContentConfig(
            system_instruction=context.system_instruction,
            safety_settings=DEFAULT_SAFETY_SETTINGS,
        )
        response = StreamingResponse(self._stream_generator(
            context.model, contents, config,
            on_usage=lambda usage: response.set_usage(usage),
            context=context,
            user_turn=user_turn,
        ))
        return response

    async def _stream_generator(
        self,
        model: str,
        contents: list[types.Content] | str,
        config: types.GenerateContentConfig,
        on_usage: Callable[[dict[str, int]], None],
        context: ChatContext | None = None,
        user_turn: ChatTurn | None = None,
    ) -> AsyncIterator[str]:
        """Internal generator that yields text and captures usage from chunks."""
        usage = None
        collected: list[str] = []

        try:
            stream = await self._client.aio.models.generate_content_stream(
                model=model, contents=contents, config=config
            )
            async for chunk in stream:
                if chunk.usage_metadata:
                    usage = _usage_from(chunk.usage_metadata)

                text = self._extract_content(chunk)
                if text:
                    collected.append(text)
                    yield text
        except _TRANSPORT_ERRORS as e:
            logger.warning("Gemini stream failed after %d fragment(s): %s", len(collected), e)
            raise TransportError(str(e)) from e

        if context is not None and user_turn is not None:
            context.history.extend([
                user_turn,
                ChatTurn(role="model", parts=[Part.from_text("".join(collected))]),
            ])
        if usage:
            on_usage(usage)

    async def generate_image(self, prompt: str, aspect_ratio: ImageAspectRatio) -> InlineData:
        try:
            response = await self._client.aio.models.generate_images(
                model=self._image_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=1,
                    output_mime_type="image/png",
                    aspect_ratio=ImageAspectRatio(aspect_ratio).value,
                ),
            )
        except _TRANSPORT_ERRORS as e:
            raise TransportError(str(e)) from e

        images = response.generated_images or []
        if not images or not images[0].image or not images[0].image.image_bytes:
            raise TransportError("Image generation failed to return image data.")
        return InlineData.from_bytes(images[0].image.image_bytes, "image/png")

    async def edit_image(self, prompt: str, image: InlineData) -> EditedImage:
        try:
            response = await self._client.aio.models.generate_content(
                model=self._edit_model,
                contents=[
                    types.Part(inline_data=types.Blob(mime_type=image.mime_type, data=image.to_bytes())),
                    types.Part(text=prompt),
                ],
                config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
            )
        except _TRANSPORT_ERRORS as e:
            raise TransportError(str(e)) from e

        if not response.candidates or not response.candidates[0].content or not response.candidates[0].content.parts:
            raise TransportError("Invalid response from image editing model.")

        edited: InlineData | None = None
        text: str | None = None
        # The response can contain both image and text parts
        for part in response.candidates[0].content.parts:
            if part.text:
                text = part.text
            elif part.inline_data and part.inline_data.data:
                edited = InlineData.from_bytes(
                    part.inline_data.data, part.inline_data.mime_type or "image/png"
                )

        if edited is None:
            raise TransportError(
                "Image editing did not return an image. The model may have only provided a text response."
            )
        return EditedImage(image=edited, text=text)

    async def generate_video(
        self,
        prompt: str,
        aspect_ratio: VideoAspectRatio,
        image: InlineData | None = None,
        on_progress: ProgressCallback | None = None,
        poll_interval: float = 10.0,
    ) -> GeneratedVideo:
        """Generate a video, polling the long-running operation.

        Note: ``aspect_ratio`` is accepted for interface compatibility; the
        Veo 2 request is sent with the model's default framing.
        """
        source = None
        if image is not None:
            source = types.Image(image_bytes=image.to_bytes(), mime_type=image.mime_type)

        polls = 0
        try:
            operation = await self._client.aio.models.generate_videos(
                model=self._video_model,
                prompt=prompt,
                image=source,
                config=types.GenerateVideosConfig(number_of_videos=1),
            )
            while not operation.done:
                if on_progress is not None:
                    on_progress()
                polls += 1
                await asyncio.sleep(poll_interval)
                operation = await self._client.aio.operations.get(operation)
        except _TRANSPORT_ERRORS as e:
            raise TransportError(str(e)) from e

        logger.debug("Video operation finished after %d poll(s) (aspect %s)", polls, aspect_ratio)
        if operation.error:
            raise TransportError(f"Video generation failed: {operation.error}")

        videos = operation.response.generated_videos if operation.response else None
        if not videos or not videos[0].video or not videos[0].video.uri:
            raise TransportError("Video generation failed or returned no URI.")
        return GeneratedVideo(uri=videos[0].video.uri, polls=polls)

    async def download_video(self, video: GeneratedVideo, destination: Path) -> Path:
        """Download the video file; the URI requires the API key."""
        try:
            async with httpx.AsyncClient(follow_redirects=True, timeout=120.0) as client:
                response = await client.get(video.uri, headers={"x-goog-api-key": self._api_key})
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to download video: {e}") from e

        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(response.content)
        return destination

    async def generate_story_stream(self, prompt: str, options: StoryOptions) -> StreamingResponse:
        config = types.GenerateContentConfig(
            system_instruction=options.system_instruction(),
            safety_settings=DEFAULT_SAFETY_SETTINGS,
        )
        response = StreamingResponse(self._stream_generator(
            self._model, prompt, config,
            on_usage=lambda usage: response.set_usage(usage),
        ))
        return response

    async def close(self) -> None:
        """Close the Gemini client.

        Note: The Google GenAI client doesn't require explicit closing,
        but we implement this for interface consistency.
        """
        pass
