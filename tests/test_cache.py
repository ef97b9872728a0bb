"""Tests for LogCache."""

import threading
from datetime import UTC, datetime

import pytest

from bulklog.cache import LogCache
from bulklog.levels import LogLevel
from bulklog.message import LogMessage


def make_message(i: int) -> LogMessage:
    return LogMessage(
        time=datetime(2024, 3, 5, tzinfo=UTC),
        level=LogLevel.INFO,
        source="test",
        correlation_id=None,
        message=f"message {i}",
    )


class TestLogCache:
    """Tests for LogCache."""

    def test_size_equals_number_of_appends(self):
        """Test that every append below the cap is kept."""
        cache = LogCache(max_size=100)

        for i in range(42):
            cache.append(make_message(i))

        assert cache.size == 42
        assert len(cache) == 42

    def test_drain_returns_messages_in_order_and_empties_cache(self):
        """Test the snapshot-and-clear step."""
        cache = LogCache(max_size=10)
        for i in range(5):
            cache.append(make_message(i))

        batch = cache.drain()

        assert [m.message for m in batch] == [f"message {i}" for i in range(5)]
        assert cache.size == 0

    def test_drain_on_empty_cache(self):
        """Test that draining an empty cache returns an empty list."""
        assert LogCache().drain() == []

    def test_appends_after_drain_go_to_next_batch(self):
        """Test that drained and new messages never mix."""
        cache = LogCache(max_size=10)
        cache.append(make_message(1))

        first = cache.drain()
        cache.append(make_message(2))
        second = cache.drain()

        assert [m.message for m in first] == ["message 1"]
        assert [m.message for m in second] == ["message 2"]

    def test_drop_oldest_when_full(self):
        """Test that the oldest messages are dropped on overflow."""
        cache = LogCache(max_size=5)

        for i in range(8):
            cache.append(make_message(i))

        assert cache.size == 5
        assert cache.drop_count == 3
        assert [m.message for m in cache.drain()] == [f"message {i}" for i in range(3, 8)]

    def test_drop_warning_logged(self, caplog):
        """Test that overflow is reported every 100 drops."""
        cache = LogCache(max_size=1)

        with caplog.at_level("WARNING", logger="bulklog"):
            for i in range(101):
                cache.append(make_message(i))

        assert cache.drop_count == 100
        assert any("dropped 100 messages" in r.getMessage() for r in caplog.records)

    def test_resize_keeps_newest(self):
        """Test shrinking the cache."""
        cache = LogCache(max_size=10)
        for i in range(6):
            cache.append(make_message(i))

        cache.resize(2)

        assert cache.max_size == 2
        assert cache.drop_count == 4
        assert [m.message for m in cache.drain()] == ["message 4", "message 5"]

    def test_clear(self):
        """Test discarding buffered messages."""
        cache = LogCache()
        cache.append(make_message(1))

        cache.clear()

        assert cache.size == 0

    def test_invalid_size(self):
        """Test that the size must be positive."""
        with pytest.raises(ValueError):
            LogCache(max_size=0)


class TestLogCacheConcurrency:
    """Tests for concurrent producers."""

    def test_concurrent_appends_are_not_lost(self):
        """Test that appends from many threads are all kept."""
        cache = LogCache(max_size=10000)
        threads_count = 8
        per_thread = 500

        def produce(offset: int) -> None:
            for i in range(per_thread):
                cache.append(make_message(offset * per_thread + i))

        threads = [threading.Thread(target=produce, args=(t,)) for t in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        batch = cache.drain()
        assert len(batch) == threads_count * per_thread
        assert len({m.message for m in batch}) == threads_count * per_thread

    def test_concurrent_appends_and_drains(self):
        """Test that draining while producing neither loses nor duplicates."""
        cache = LogCache(max_size=100000)
        total = 4000
        drained: list[LogMessage] = []
        done = threading.Event()

        def produce() -> None:
            for i in range(total):
                cache.append(make_message(i))
            done.set()

        def consume() -> None:
            while not done.is_set():
                drained.extend(cache.drain())
            drained.extend(cache.drain())

        producer = threading.Thread(target=produce)
        consumer = threading.Thread(target=consume)
        consumer.start()
        producer.start()
        producer.join()
        consumer.join()

        assert [m.message for m in drained] == [f"message {i}" for i in range(total)]
