"""UI configuration constants.

Centralizes magic numbers and configuration values for the UI module.
"""

import logging


class LogLevel:
    """Log level constants with numeric values for comparison.

    Values match the standard ``logging`` levels so records can be routed
    into the log panel without translation.
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
        """Get the name for a log level."""
        if level >= cls.ERROR:
            return cls._names[cls.ERROR]
        return cls._names.get(level, "DEBUG")

    @classmethod
    def from_string(cls, level_str: str) -> int:
        """Convert string to log level. Returns DEBUG if invalid."""
        return cls._from_string.get(level_str.lower(), cls.DEBUG)


# Transcript windowing, in terminal lines
TRANSCRIPT_ESTIMATED_LINES = 6
TRANSCRIPT_OVERSCAN = 2
TRANSCRIPT_PADDING = 1
TRANSCRIPT_AT_BOTTOM_LINES = 3

# Thinking timer label refresh
THINKING_TICK_SECONDS = 1.0

# Session sidebar
SESSION_TITLE_WIDTH = 24

# Log panel configuration
LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
LOG_MAX_MESSAGE_LENGTH = 500  # Characters before truncating log messages
