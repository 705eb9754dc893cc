"""Video studio: presets, styles, progress messages and a bounded gallery.

Hides the design decisions about:
- How a style modifier combines with the prompt
- Which progress message is shown on each poll
- What a gallery entry records
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import NamedTuple

from ..config import VIDEO_GALLERY_KEY, VIDEO_GALLERY_LIMIT, VIDEO_POLL_INTERVAL
from ..errors import TransportError, ValidationError
from ..genai import GeneratedVideo, GenerativeService, InlineData, VideoAspectRatio
from ..history import BoundedGallery, VideoGalleryItem
from ..store import KeyValueStore

logger = logging.getLogger(__name__)


class VideoPreset(NamedTuple):
    name: str
    prompt: str


class VideoStyle(NamedTuple):
    name: str
    value: str


VIDEO_PRESETS: tuple[VideoPreset, ...] = (
    VideoPreset(
        "Explainer Video",
        "Create a short, engaging explainer video about [Your Product/Service]. Use simple visuals "
        "and clear narration to explain how it works and its key benefits. The tone should be "
        "friendly and informative.",
    ),
    VideoPreset(
        "Social Media Ad",
        "Generate a dynamic 15-second social media ad for [Your Brand/Product]. It should be "
        "eye-catching, fast-paced, and end with a clear call to action like \"Shop Now\" or "
        "\"Learn More\".",
    ),
    VideoPreset(
        "Short Film Scene",
        "A cinematic scene of a detective in a rain-soaked, neon-lit city street at night, looking "
        "thoughtfully at a mysterious clue. Moody, atmospheric lighting with a sense of suspense.",
    ),
    VideoPreset(
        "Product Showcase",
        "A clean, elegant 360-degree showcase of [Your Product] on a minimalist background. "
        "Highlight its design, materials, and key features with smooth camera movements.",
    ),
    VideoPreset(
        "Nature Documentary Clip",
        "A stunning, high-definition drone shot flying over a majestic mountain range at sunrise, "
        "with golden light hitting the peaks and clouds rolling through the valleys. Epic and serene.",
    ),
    VideoPreset(
        "Corporate Opener",
        "An inspiring and professional opener for a corporate presentation. Feature abstract "
        "geometric shapes, clean transitions, and a futuristic feel, ending with a placeholder "
        "for a company logo.",
    ),
    VideoPreset(
        "Travel Vlog Intro",
        "A high-energy travel vlog intro sequence. Quick cuts of beautiful landscapes, drone "
        "footage, and a person backpacking, set to upbeat music. End with a title card: "
        "\"[Your Adventure Name]\".",
    ),
    VideoPreset(
        "Real Estate Tour",
        "A smooth, cinematic virtual tour of a modern luxury home. Glide through the living room, "
        "kitchen, and master bedroom, showcasing the spacious and elegant design. Bright, natural "
        "lighting.",
    ),
)

VIDEO_STYLES: tuple[VideoStyle, ...] = (
    VideoStyle("Default", ""),
    VideoStyle("Cinematic", "cinematic, hyper-detailed, photorealistic, professional color grading,"),
    VideoStyle("Hyper-Realistic", "hyper-realistic, 8k, ultra-detailed textures, lifelike,"),
    VideoStyle("Anime", "anime style, cel-shaded, vibrant colors, japanese animation style,"),
    VideoStyle("Documentary", "documentary footage, steady cam, natural lighting,"),
    VideoStyle("Claymation", "claymation style, stop-motion animation,"),
    VideoStyle("Vintage Film", "vintage film look, grain, scratches, 1950s style,"),
)

LOADING_MESSAGES: tuple[str, ...] = (
    "Warming up the video engine...",
    "Analyzing inputs and generating storyboard...",
    "Rendering high-resolution frames (this can take a moment)...",
    "Applying visual effects and motion...",
    "Encoding your masterpiece...",
    "Finalizing and preparing for download...",
)


def style_value(style: str) -> str:
    """Resolve a style by name or raw modifier text; unknown names pass through."""
    for known in VIDEO_STYLES:
        if style == known.name or style == known.value:
            return known.value
    return style


class VideoStudio:
    """Generates videos and keeps the last ten in a persisted gallery."""

    def __init__(
        self,
        service: GenerativeService,
        store: KeyValueStore,
        poll_interval: float = VIDEO_POLL_INTERVAL,
    ):
        self._service = service
        self._poll_interval = poll_interval
        self.gallery: BoundedGallery[VideoGalleryItem] = BoundedGallery(
            store, VIDEO_GALLERY_KEY, VideoGalleryItem, VIDEO_GALLERY_LIMIT
        )
        self.prompt = ""
        self.aspect_ratio = VideoAspectRatio.LANDSCAPE
        self.style = ""
        self.video: GeneratedVideo | None = None
        self.loading = False
        self.loading_message = ""
        self.error: str | None = None

    async def load(self) -> None:
        await self.gallery.load()

    def apply_preset(self, name: str) -> str:
        for preset in VIDEO_PRESETS:
            if preset.name == name:
                self.prompt = preset.prompt
                return self.prompt
        raise ValidationError(f"Unknown preset: {name}")

    async def generate(
        self,
        prompt: str,
        aspect_ratio: VideoAspectRatio | str = VideoAspectRatio.LANDSCAPE,
        style: str = "",
        image: InlineData | None = None,
        on_progress: Callable[[str], None] | None = None,
    ) -> GeneratedVideo:
        """Generate a video and add it to the gallery.

        ``on_progress`` receives the next loading message on every poll.

        Raises:
            ValidationError: Empty prompt, bad aspect ratio or non-image input
            TransportError: The service failed or returned no video
        """
        if not prompt.strip():
            raise ValidationError("Please enter a prompt.")
        try:
            ratio = VideoAspectRatio(aspect_ratio)
        except ValueError as e:
            raise ValidationError(f"Unsupported aspect ratio: {aspect_ratio}") from e
        if image is not None and not image.is_image:
            raise ValidationError("Please upload a valid image file.")

        modifier = style_value(style)
        final_prompt = f"{modifier} {prompt}"
        self.prompt = prompt
        self.aspect_ratio = ratio
        self.style = modifier
        self.loading = True
        self.error = None
        self.video = None
        self.loading_message = LOADING_MESSAGES[0]
        message_index = 0

        def _advance() -> None:
            nonlocal message_index
            message_index = (message_index + 1) % len(LOADING_MESSAGES)
            self.loading_message = LOADING_MESSAGES[message_index]
            if on_progress is not None:
                on_progress(self.loading_message)

        try:
            video = await self._service.generate_video(
                final_prompt, ratio, image=image, on_progress=_advance, poll_interval=self._poll_interval
            )
        except TransportError as e:
            logger.error("Video generation failed: %s", e)
            self.error = str(e)
            raise
        except Exception as e:
            logger.error("Video generation failed: %s", e)
            self.error = str(e) or "Failed to generate video. Please try again."
            raise TransportError(self.error) from e
        finally:
            self.loading = False

        self.video = video
        await self.gallery.add(VideoGalleryItem(
            id=self.gallery.next_id(),
            prompt=final_prompt,
            url=video.uri,
            aspect_ratio=ratio.value,
            style=modifier,
        ))
        return video

    def select_from_gallery(self, item_id: int) -> VideoGalleryItem:
        item = self.gallery.get(item_id)
        if item is None:
            raise ValidationError(f"No gallery item {item_id}")
        self.prompt = item.prompt
        self.aspect_ratio = VideoAspectRatio(item.aspect_ratio)
        self.style = item.style
        self.video = GeneratedVideo(uri=item.url)
        self.error = None
        return item

    async def clear_gallery(self) -> None:
        await self.gallery.clear()

    async def download(self, destination: Path) -> Path:
        if self.video is None:
            raise ValidationError("No video has been generated yet.")
        return await self._service.download_video(self.video, destination)
