"""Creative studios: images, stories and videos.

Module structure (each module hides a design decision):
- images.py: Text-to-image requests and result keeping
- story.py: Story option composition and streamed accumulation
- video.py: Presets, styles, progress messages and the video gallery
"""

from .images import ImageStudio
from .story import StoryStudio
from .video import LOADING_MESSAGES, VIDEO_PRESETS, VIDEO_STYLES, VideoPreset, VideoStudio, VideoStyle

__all__ = [
    "ImageStudio",
    "LOADING_MESSAGES",
    "StoryStudio",
    "VIDEO_PRESETS",
    "VIDEO_STYLES",
    "VideoPreset",
    "VideoStudio",
    "VideoStyle",
]
