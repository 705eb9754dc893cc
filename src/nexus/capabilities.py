"""Capability interfaces for environment-specific features.

Speech input and output depend on the host environment. The chat service
only talks to these narrow interfaces, so it runs (and is tested) where no
speech engine exists.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

TranscriptCallback = Callable[[str], None]
ErrorCallback = Callable[[str], None]


class SpeechRecognizer(ABC):
    """Continuous speech-to-text input."""

    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether speech recognition works in this environment."""

    @property
    @abstractmethod
    def listening(self) -> bool:
        """Whether recognition is currently running."""

    @abstractmethod
    def start(self, on_transcript: TranscriptCallback, on_error: ErrorCallback) -> None:
        """Start listening; final transcripts are delivered to ``on_transcript``."""

    @abstractmethod
    def stop(self) -> None:
        """Stop listening."""


class TextToSpeech(ABC):
    """Speech output for model replies."""

    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether speech synthesis works in this environment."""

    @property
    @abstractmethod
    def speaking(self) -> bool:
        """Whether an utterance is currently playing."""

    @abstractmethod
    def speak(self, text: str, on_end: Callable[[], None]) -> None:
        """Start speaking ``text``; ``on_end`` runs when playback finishes."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop any utterance in progress."""


class UnavailableSpeechRecognizer(SpeechRecognizer):
    """Recognizer for environments without speech input."""

    @property
    def available(self) -> bool:
        return False

    @property
    def listening(self) -> bool:
        return False

    def start(self, on_transcript: TranscriptCallback, on_error: ErrorCallback) -> None:
        on_error("not-supported")

    def stop(self) -> None:
        pass


class UnavailableTextToSpeech(TextToSpeech):
    """Synthesizer for environments without speech output."""

    @property
    def available(self) -> bool:
        return False

    @property
    def speaking(self) -> bool:
        return False

    def speak(self, text: str, on_end: Callable[[], None]) -> None:
        on_end()

    def cancel(self) -> None:
        pass
