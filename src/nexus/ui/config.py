"""UI configuration constants.

Centralizes magic numbers and configuration values for the UI module.
"""

import logging


class LogLevel:
    """Log level constants with numeric values for comparison.

    Same values as the ``logging`` module: DEBUG < INFO < WARNING < ERROR.
    Lower numeric value = more verbose (shows more messages).
    """

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    _names = {
        DEBUG: "DEBUG",
        INFO: "INFO",
        WARNING: "WARN",
        ERROR: "ERROR",
    }

    _from_string = {
        "debug": DEBUG,
        "info": INFO,
        "warning": WARNING,
        "error": ERROR,
    }

    @classmethod
    def name(cls, level: int) -> str:
        """Get the name for a log level (levels between constants round down)."""
        for value in sorted(cls._names, reverse=True):
            if level >= value:
                return cls._names[value]
        return "DEBUG"

    @classmethod
    def from_string(cls, level_str: str) -> int:
        """Convert string to log level. Returns DEBUG if invalid."""
        return cls._from_string.get(level_str.lower(), cls.DEBUG)


# Log panel configuration
LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
LOG_MAX_MESSAGE_LENGTH = 500  # Characters before truncating log messages

# Chat display configuration
SESSION_LIST_PREVIEW = 40  # Characters of the last message shown under a session name

# How often the editor's history indicator is refreshed (seconds)
HISTORY_STATUS_REFRESH = 0.25

# Tab ids
TAB_CHAT = "tab-chat"
TAB_EDITOR = "tab-editor"
TAB_IMAGES = "tab-images"
TAB_STORY = "tab-story"
TAB_VIDEO = "tab-video"
