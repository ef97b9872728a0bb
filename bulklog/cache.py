"""Bounded in-memory cache of log messages."""

from __future__ import annotations

import logging
import threading
from collections import deque

from bulklog.message import LogMessage

_logger = logging.getLogger("bulklog")


class LogCache:
    """Thread-safe bounded buffer of log messages awaiting a flush.

    Uses `collections.deque` with `maxlen` internally. When the cache is
    full, the oldest message is dropped by the deque so memory stays bounded
    whatever the producer rate, and a warning is logged every 100 drops.

    `drain()` swaps the buffer for an empty one under the lock, so messages
    appended while a flush is talking to the backend land in the new buffer
    and are neither lost nor sent twice.

    Args:
        max_size: Maximum number of messages to hold. Defaults to 100.

    Example:
        cache = LogCache(max_size=500)
        cache.append(message)
        batch = cache.drain()
    """

    def __init__(self, max_size: int = 100) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._max_size = max_size
        self._deque: deque[LogMessage] = deque(maxlen=max_size)
        self._lock = threading.Lock()
        self._drop_count = 0
        self._last_warning_count = 0

    def append(self, message: LogMessage) -> None:
        """Add a message, dropping the oldest one if the cache is full."""
        with self._lock:
            if len(self._deque) >= self._max_size:
                self._drop_count += 1
                # Log warning every 100 drops to avoid spam
                if self._drop_count - self._last_warning_count >= 100:
                    _logger.warning(
                        "bulklog: Cache full, dropped %d messages. "
                        "Consider increasing max_cache_size or shortening the interval.",
                        self._drop_count,
                    )
                    self._last_warning_count = self._drop_count

            # deque with maxlen automatically drops oldest on append
            self._deque.append(message)

    def drain(self) -> list[LogMessage]:
        """Atomically take every buffered message and leave the cache empty."""
        with self._lock:
            if not self._deque:
                return []
            snapshot = self._deque
            self._deque = deque(maxlen=self._max_size)
        return list(snapshot)

    def clear(self) -> None:
        """Discard every buffered message."""
        with self._lock:
            self._deque.clear()

    def resize(self, max_size: int) -> None:
        """Change the capacity, keeping the newest messages."""
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        with self._lock:
            dropped = max(0, len(self._deque) - max_size)
            self._deque = deque(self._deque, maxlen=max_size)
            self._max_size = max_size
            self._drop_count += dropped

    @property
    def size(self) -> int:
        """Return the current number of buffered messages."""
        with self._lock:
            return len(self._deque)

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def drop_count(self) -> int:
        """Return the total number of messages dropped due to overflow."""
        return self._drop_count

    def __len__(self) -> int:
        return self.size
