"""Story studio: streamed story generation with optional read-aloud."""

import logging
from collections.abc import Callable

from ..capabilities import TextToSpeech, UnavailableTextToSpeech
from ..errors import TransportError, UnsupportedCapability, ValidationError
from ..genai import GenerativeService, StoryOptions

logger = logging.getLogger(__name__)


class StoryStudio:
    """Streams a story into ``story`` fragment by fragment."""

    def __init__(self, service: GenerativeService, tts: TextToSpeech | None = None):
        self._service = service
        self._tts = tts or UnavailableTextToSpeech()
        self.story = ""
        self.loading = False
        self.error: str | None = None
        self.reading = False

    async def generate(
        self,
        prompt: str,
        options: StoryOptions | None = None,
        on_fragment: Callable[[str], None] | None = None,
    ) -> str:
        """Generate a story; ``on_fragment`` sees the text after each fragment.

        Raises:
            ValidationError: Empty prompt
            TransportError: The stream failed; ``story`` keeps the partial text
        """
        if not prompt.strip():
            raise ValidationError("Please enter a story idea.")
        options = options or StoryOptions()

        self.loading = True
        self.error = None
        self.story = ""
        self.stop_reading()
        try:
            stream = await self._service.generate_story_stream(prompt, options)
            async for fragment in stream:
                self.story += fragment
                if on_fragment is not None:
                    on_fragment(self.story)
        except TransportError as e:
            logger.error("Story generation failed: %s", e)
            self.error = str(e)
            raise
        except Exception as e:
            logger.error("Story generation failed: %s", e)
            self.error = str(e) or "Failed to generate story. Please try again."
            raise TransportError(self.error) from e
        finally:
            self.loading = False
        return self.story

    def read_aloud(self) -> bool:
        """Toggle reading the story aloud; returns True if now reading.

        Raises:
            UnsupportedCapability: If speech output is unavailable
        """
        if not self._tts.available:
            raise UnsupportedCapability("Read aloud", "Reading aloud is not supported on this system.")
        if self.reading:
            self.stop_reading()
            return False
        if not self.story:
            return False

        def _on_end() -> None:
            self.reading = False

        self._tts.speak(self.story, _on_end)
        self.reading = True
        return True

    def stop_reading(self) -> None:
        if self._tts.speaking:
            self._tts.cancel()
        self.reading = False
