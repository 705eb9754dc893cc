"""Text-to-image studio."""

import logging
from pathlib import Path

from ..errors import TransportError, ValidationError
from ..genai import GenerativeService, ImageAspectRatio, InlineData

logger = logging.getLogger(__name__)


class ImageStudio:
    """Generates one image per prompt and keeps the latest result."""

    def __init__(self, service: GenerativeService):
        self._service = service
        self.image: InlineData | None = None
        self.loading = False
        self.error: str | None = None

    async def generate(
        self,
        prompt: str,
        aspect_ratio: ImageAspectRatio | str = ImageAspectRatio.SQUARE,
    ) -> InlineData:
        """Generate an image.

        Raises:
            ValidationError: Empty prompt or unknown aspect ratio
            TransportError: The service failed or returned no image
        """
        if not prompt.strip():
            raise ValidationError("Please enter a prompt.")
        try:
            ratio = ImageAspectRatio(aspect_ratio)
        except ValueError as e:
            raise ValidationError(f"Unsupported aspect ratio: {aspect_ratio}") from e

        self.loading = True
        self.error = None
        self.image = None
        try:
            self.image = await self._service.generate_image(prompt, ratio)
        except TransportError as e:
            logger.error("Image generation failed: %s", e)
            self.error = str(e)
            raise
        except Exception as e:
            logger.error("Image generation failed: %s", e)
            self.error = str(e) or "Failed to generate image. Please try again."
            raise TransportError(self.error) from e
        finally:
            self.loading = False
        return self.image

    def save(self, destination: Path) -> Path:
        """Write the latest image to disk."""
        if self.image is None:
            raise ValidationError("No image has been generated yet.")
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.image.to_bytes())
        return destination
