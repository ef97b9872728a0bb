"""Background timer that periodically flushes a logger."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

_logger = logging.getLogger("bulklog")


class FlushTimer:
    """Daemon thread calling a flush callback at a fixed rate.

    The first call happens as soon as the timer starts, the following ones
    every `interval` seconds measured from the start time, so a slow flush
    does not shift later ticks. When a flush takes longer than the interval
    the missed ticks are skipped rather than run back to back.

    A failing callback is logged and the timer keeps running: the next
    scheduled tick still fires.

    Args:
        callback: Function called on every tick.
        interval: Seconds between ticks.
        name: Thread name. Defaults to "bulklog-flush-timer".

    Example:
        timer = FlushTimer(logger.dump, interval=10.0)
        timer.start()
        # ...
        timer.stop()
    """

    def __init__(
        self,
        callback: Callable[[], object],
        interval: float,
        name: str = "bulklog-flush-timer",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._callback = callback
        self._interval = interval
        self._name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._started = False
        self._ticks = 0
        self._failures = 0

    def start(self) -> None:
        """Start the timer thread. Calling it again while running is a no-op."""
        if self._started:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name=self._name)
        self._started = True
        self._thread.start()

    def stop(self, timeout: float | None = 10.0) -> bool:
        """Stop the timer, waiting for an in-flight tick to complete.

        Args:
            timeout: Maximum seconds to wait for the thread to stop, or None
                to wait without limit.

        Returns:
            False if the thread was still running a tick when the timeout
            expired. No further tick starts after it.
        """
        if not self._started:
            return True

        self._stop_event.set()

        stopped = True
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                stopped = False
                _logger.warning("bulklog: Flush timer did not stop within %.1fs", timeout)

        self._started = False
        self._thread = None
        return stopped

    def _run(self) -> None:
        """Main timer loop."""
        next_tick = time.monotonic()

        while not self._stop_event.is_set():
            self._tick()

            next_tick += self._interval
            now = time.monotonic()
            if next_tick < now:
                # Skip ticks missed while the callback was running
                missed = int((now - next_tick) // self._interval) + 1
                next_tick += missed * self._interval

            if self._stop_event.wait(timeout=next_tick - now):
                break

    def _tick(self) -> None:
        self._ticks += 1
        try:
            self._callback()
        except Exception as e:
            self._failures += 1
            _logger.error("bulklog: Scheduled flush failed: %s", e)

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_alive(self) -> bool:
        """Return True if the timer thread is running."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def ticks(self) -> int:
        """Return the number of ticks run so far."""
        return self._ticks

    @property
    def failures(self) -> int:
        """Return the number of ticks whose callback raised."""
        return self._failures
