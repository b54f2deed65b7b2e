"""Log severity levels and their Loki label names."""

from enum import IntEnum


class LogLevel(IntEnum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3


_LEVEL_NAMES = {
    LogLevel.DEBUG: "debug",
    LogLevel.INFO: "info",
    LogLevel.WARN: "warn",
    LogLevel.ERROR: "error",
}

_ALIASES = {"warning": LogLevel.WARN}


def level_to_string(level) -> str:
    """Return the ``detected_level`` label value for *level*, or "unknown"."""
    try:
        return _LEVEL_NAMES[LogLevel(level)]
    except (ValueError, TypeError):
        return "unknown"


def parse_level(text: str) -> LogLevel:
    """Parse a level name such as "info" or "WARNING" into a LogLevel."""
    normalized = text.strip().lower()
    for level, name in _LEVEL_NAMES.items():
        if name == normalized:
            return level
    if normalized in _ALIASES:
        return _ALIASES[normalized]
    raise ValueError(f"Unknown log level: {text!r}")
