"""Buffered logger base class for bulklog."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from bulklog.cache import LogCache
from bulklog.config import ConfigParams
from bulklog.errors import ConfigError
from bulklog.levels import LogLevel
from bulklog.message import ErrorDescription, LogMessage

DEFAULT_INTERVAL = 10.0
DEFAULT_MAX_CACHE_SIZE = 100


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CachedLogger(ABC):
    """Logger that buffers messages and saves them in batches.

    Subclasses only implement `_save`, which receives each non-empty batch
    drained from the cache. Everything else (level filtering, message
    building, the bounded cache and `dump`) is shared.

    Args:
        level: Maximum level of messages kept. Defaults to INFO.
        source: Name of the component producing the logs.
        interval: Seconds between automatic flushes. Defaults to 10.0.
        max_cache_size: Maximum number of buffered messages; the oldest
            are dropped when exceeded. Defaults to 100.
        clock: Function returning the current time. Defaults to UTC now.

    Configuration keys (see `configure`):
        level: Level name or number.
        source: Source name.
        interval: Milliseconds between automatic flushes.
        max_cache_size: Maximum number of buffered messages.
    """

    def __init__(
        self,
        level: LogLevel | int | str = LogLevel.INFO,
        source: str | None = None,
        interval: float = DEFAULT_INTERVAL,
        max_cache_size: int = DEFAULT_MAX_CACHE_SIZE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if interval <= 0:
            raise ConfigError("interval must be positive", code="INVALID_VALUE")
        if max_cache_size <= 0:
            raise ConfigError("max_cache_size must be positive", code="INVALID_VALUE")
        self._level = LogLevel.parse(level)
        self._source = source
        self._interval = interval
        self._cache = LogCache(max_size=max_cache_size)
        self._clock = clock or _utcnow
        # Held for a whole flush, from the open check to the end of _save
        self._flush_lock = threading.Lock()

    def configure(self, config: ConfigParams | Mapping[str, Any] | str) -> None:
        """Apply configuration parameters.

        Raises:
            ConfigError: If a value is malformed.
        """
        config = ConfigParams.from_value(config)

        level = config.get_as_string("level")
        if level:
            self._level = LogLevel.parse(level)

        self._source = config.get_as_string_with_default("source", self._source or "") or None

        interval_ms = config.get_as_integer_with_default("interval", int(self._interval * 1000))
        if interval_ms <= 0:
            raise ConfigError("interval must be positive", code="INVALID_VALUE")
        self._interval = interval_ms / 1000.0

        max_cache_size = config.get_as_integer_with_default(
            "max_cache_size", self._cache.max_size
        )
        if max_cache_size <= 0:
            raise ConfigError("max_cache_size must be positive", code="INVALID_VALUE")
        if max_cache_size != self._cache.max_size:
            self._cache.resize(max_cache_size)

    @property
    def level(self) -> LogLevel:
        return self._level

    @level.setter
    def level(self, value: LogLevel | int | str) -> None:
        self._level = LogLevel.parse(value)

    @property
    def source(self) -> str | None:
        return self._source

    @source.setter
    def source(self, value: str | None) -> None:
        self._source = value

    @property
    def interval(self) -> float:
        """Seconds between automatic flushes."""
        return self._interval

    @property
    def max_cache_size(self) -> int:
        return self._cache.max_size

    @property
    def cache_size(self) -> int:
        """Return the number of messages waiting for the next flush."""
        return self._cache.size

    @property
    def dropped_count(self) -> int:
        """Return the number of messages dropped because the cache was full."""
        return self._cache.drop_count

    def is_open(self) -> bool:
        """Return True if buffered messages can be saved.

        Loggers with an open/close lifecycle override this.
        """
        return True

    def write(
        self,
        level: LogLevel,
        correlation_id: str | None,
        error: BaseException | None,
        message: str,
        source: str | None = None,
    ) -> None:
        """Append a fully built message to the cache."""
        description = (
            ErrorDescription.from_exception(error, correlation_id) if error is not None else None
        )
        self._cache.append(
            LogMessage(
                time=self._clock(),
                level=level,
                source=source if source is not None else self._source,
                correlation_id=correlation_id,
                message=message,
                error=description,
            )
        )

    def log(
        self,
        level: LogLevel | int | str,
        correlation_id: str | None,
        error: BaseException | None,
        message: str | None,
        *args: Any,
    ) -> None:
        """Log a message if `level` passes the logger level.

        The message is a %-style template expanded with `args`, like the
        standard logging module.
        """
        level = LogLevel.parse(level)
        if level == LogLevel.NONE or level > self._level:
            return

        text = message or ""
        if args:
            try:
                text = text % args
            except (TypeError, ValueError):
                text = " ".join([text, *map(str, args)])

        self.write(level, correlation_id, error, text)

    def fatal(
        self, correlation_id: str | None, error: BaseException | None, message: str = "", *args: Any
    ) -> None:
        self.log(LogLevel.FATAL, correlation_id, error, message, *args)

    def error(
        self, correlation_id: str | None, error: BaseException | None, message: str = "", *args: Any
    ) -> None:
        self.log(LogLevel.ERROR, correlation_id, error, message, *args)

    def warn(
        self, correlation_id: str | None, error: BaseException | None, message: str = "", *args: Any
    ) -> None:
        self.log(LogLevel.WARN, correlation_id, error, message, *args)

    def info(self, correlation_id: str | None, message: str, *args: Any) -> None:
        self.log(LogLevel.INFO, correlation_id, None, message, *args)

    def debug(self, correlation_id: str | None, message: str, *args: Any) -> None:
        self.log(LogLevel.DEBUG, correlation_id, None, message, *args)

    def trace(self, correlation_id: str | None, message: str, *args: Any) -> None:
        self.log(LogLevel.TRACE, correlation_id, None, message, *args)

    def dump(self) -> None:
        """Save buffered messages now.

        Does nothing while the logger is not open; messages stay buffered.
        Concurrent calls run one at a time. Errors raised while saving
        propagate to the caller, and the drained messages are not put back.
        """
        with self._flush_lock:
            if not self.is_open():
                return
            self._flush()

    def _flush(self) -> None:
        messages = self._cache.drain()
        if not messages:
            return
        self._save(messages)

    @abstractmethod
    def _save(self, messages: list[LogMessage]) -> None:
        """Persist a non-empty batch of messages, in order."""
