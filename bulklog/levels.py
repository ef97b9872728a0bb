"""Log levels for bulklog."""

from __future__ import annotations

from enum import IntEnum

from bulklog.errors import ConfigError

_ALIASES = {
    "NOTHING": "NONE",
    "CRITICAL": "FATAL",
    "WARNING": "WARN",
}


class LogLevel(IntEnum):
    """Ordered log levels. Lower values are more severe.

    A message is kept by a logger when its level is not NONE and is less
    than or equal to the logger level.
    """

    NONE = 0
    FATAL = 1
    ERROR = 2
    WARN = 3
    INFO = 4
    DEBUG = 5
    TRACE = 6

    @property
    def label(self) -> str:
        """Name used in shipped documents, e.g. "Error"."""
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: LogLevel | int | str) -> LogLevel:
        """Convert a level name or number to a LogLevel.

        Names are case-insensitive and accept the stdlib spellings
        "warning" and "critical".

        Raises:
            ConfigError: If the value is not a known level.
        """
        if isinstance(value, LogLevel):
            return value

        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise ConfigError(
                    f"Unknown log level: {value}", code="INVALID_LEVEL"
                ) from None

        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.parse(int(text))
            name = text.upper()
            name = _ALIASES.get(name, name)
            if name in cls.__members__:
                return cls[name]

        raise ConfigError(f"Unknown log level: {value!r}", code="INVALID_LEVEL")
