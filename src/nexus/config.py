"""Configuration for Nexus Studio.

Centralizes storage keys, bounds and intervals, and loads runtime settings
from environment variables.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Persistent store keys (one slot per logical collection)
CHAT_SESSIONS_KEY = "nexus-chat-sessions"
PERSONAS_KEY = "nexus-personas"
IMAGE_GALLERY_KEY = "imageEditingHistory"
VIDEO_GALLERY_KEY = "videoGenerationHistory"
AUTO_SAVE_KEY = "imageEditorAutoSave"

# Gallery bounds (newest entries kept)
IMAGE_GALLERY_LIMIT = 20
VIDEO_GALLERY_LIMIT = 10

# Edit history timing (seconds)
CAPTURE_QUIET_PERIOD = 0.5
AUTO_SAVE_INTERVAL = 30.0

# Video generation polling interval (seconds)
VIDEO_POLL_INTERVAL = 10.0

# Session naming
SESSION_NAME_MAX_LENGTH = 30
IMAGE_SESSION_NAME = "Image Analysis"

# Chat error message prefix appended into the conversation
CHAT_ERROR_PREFIX = "Sorry, I encountered an error: "

# Default models per operation
DEFAULT_CHAT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
DEFAULT_EDIT_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_VIDEO_MODEL = "veo-2.0-generate-001"


class Settings(BaseModel):
    """Runtime settings resolved from the environment."""

    api_key: str | None = Field(default=None, description="Gemini API key")
    chat_model: str = Field(default=DEFAULT_CHAT_MODEL)
    store_backend: str = Field(default="sqlite", description="Key/value store: memory or sqlite")
    store_path: str = Field(default="~/.nexus/store.db")
    video_poll_interval: float = Field(default=VIDEO_POLL_INTERVAL, gt=0)
    log_level: str = Field(default="WARNING")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (and a local .env file).

        Environment variables:
            GEMINI_API_KEY / API_KEY: Gemini API key
            NEXUS_CHAT_MODEL: Chat and story model (default: gemini-2.5-flash)
            NEXUS_STORE: Store backend, memory or sqlite (default: sqlite)
            NEXUS_STORE_PATH: SQLite file path (default: ~/.nexus/store.db)
            NEXUS_VIDEO_POLL_INTERVAL: Seconds between video polls (default: 10)
            NEXUS_LOG_LEVEL: Root log level (default: WARNING)
        """
        load_dotenv()
        return cls(
            api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
            chat_model=os.getenv("NEXUS_CHAT_MODEL", DEFAULT_CHAT_MODEL),
            store_backend=os.getenv("NEXUS_STORE", "sqlite").lower(),
            store_path=os.getenv("NEXUS_STORE_PATH", "~/.nexus/store.db"),
            video_poll_interval=float(os.getenv("NEXUS_VIDEO_POLL_INTERVAL", str(VIDEO_POLL_INTERVAL))),
            log_level=os.getenv("NEXUS_LOG_LEVEL", "WARNING").upper(),
        )
