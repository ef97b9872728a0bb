"""Tests for the CachedLogger base class."""

import threading

import pytest

from bulklog.cached_logger import CachedLogger
from bulklog.errors import ConfigError
from bulklog.levels import LogLevel
from bulklog.message import LogMessage


class MemoryLogger(CachedLogger):
    """Logger keeping saved batches in memory."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.batches: list[list[LogMessage]] = []
        self.fail = False

    def _save(self, messages: list[LogMessage]) -> None:
        if self.fail:
            raise RuntimeError("Simulated save error")
        self.batches.append(messages)

    @property
    def all_messages(self) -> list[LogMessage]:
        return [m for batch in self.batches for m in batch]


class TestLogging:
    """Tests for the level helpers."""

    def test_level_helpers(self):
        """Test that every helper logs at its level."""
        logger = MemoryLogger(level=LogLevel.TRACE)
        err = ValueError("bad")

        logger.fatal("1", err, "Fatal error message")
        logger.error("2", err, "Error message")
        logger.warn("3", None, "Warning message")
        logger.info("4", "Information message")
        logger.debug("5", "Debug message")
        logger.trace("6", "Trace message")
        logger.dump()

        levels = [m.level for m in logger.all_messages]
        assert levels == [
            LogLevel.FATAL,
            LogLevel.ERROR,
            LogLevel.WARN,
            LogLevel.INFO,
            LogLevel.DEBUG,
            LogLevel.TRACE,
        ]
        assert logger.all_messages[0].error.type == "ValueError"
        assert logger.all_messages[2].error is None

    def test_level_filtering(self):
        """Test that messages above the logger level are discarded."""
        logger = MemoryLogger(level=LogLevel.WARN)

        logger.error(None, None, "kept")
        logger.warn(None, None, "kept")
        logger.info(None, "dropped")
        logger.trace(None, "dropped")

        assert logger.cache_size == 2

    def test_none_level_disables_logging(self):
        """Test that a logger at NONE keeps nothing."""
        logger = MemoryLogger(level=LogLevel.NONE)

        logger.fatal(None, None, "dropped")

        assert logger.cache_size == 0

    def test_message_template(self):
        """Test %-style message arguments."""
        logger = MemoryLogger()

        logger.info("123", "Order %s has %d items", "A-1", 3)
        logger.dump()

        assert logger.all_messages[0].message == "Order A-1 has 3 items"

    def test_message_without_args_is_not_formatted(self):
        """Test that a literal % is kept when no args are given."""
        logger = MemoryLogger()

        logger.info(None, "100% done")
        logger.dump()

        assert logger.all_messages[0].message == "100% done"

    def test_mismatched_args_are_appended(self):
        """Test that a bad template does not lose the message."""
        logger = MemoryLogger()

        logger.info(None, "no placeholders", "extra")
        logger.dump()

        assert logger.all_messages[0].message == "no placeholders extra"

    def test_source_and_time(self):
        """Test message source and timestamp."""
        logger = MemoryLogger(source="orders")

        logger.info(None, "hello")
        logger.dump()

        message = logger.all_messages[0]
        assert message.source == "orders"
        assert message.time.tzinfo is not None


class TestDump:
    """Tests for dump."""

    def test_buffer_holds_every_append_until_dump(self):
        """Test that the cache length equals the number of appends."""
        logger = MemoryLogger(max_cache_size=100)

        for i in range(30):
            logger.info(None, "message %d", i)

        assert logger.cache_size == 30
        assert logger.batches == []

    def test_dump_saves_in_order_and_empties_cache(self):
        """Test that one batch with every message is saved."""
        logger = MemoryLogger()
        for i in range(5):
            logger.info(None, "message %d", i)

        logger.dump()

        assert len(logger.batches) == 1
        assert [m.message for m in logger.batches[0]] == [f"message {i}" for i in range(5)]
        assert logger.cache_size == 0

    def test_dump_on_empty_cache_does_not_save(self):
        """Test that an idle logger does no work."""
        logger = MemoryLogger()

        logger.dump()

        assert logger.batches == []

    def test_failed_save_is_not_requeued(self):
        """Test at-most-once delivery."""
        logger = MemoryLogger()
        logger.info(None, "lost")
        logger.fail = True

        with pytest.raises(RuntimeError):
            logger.dump()

        logger.fail = False
        logger.dump()

        assert logger.cache_size == 0
        assert logger.batches == []

    def test_overflow_drops_oldest(self):
        """Test the drop-oldest cache policy through the logger."""
        logger = MemoryLogger(max_cache_size=3)

        for i in range(5):
            logger.info(None, "message %d", i)
        logger.dump()

        assert [m.message for m in logger.all_messages] == ["message 2", "message 3", "message 4"]
        assert logger.dropped_count == 2

    def test_concurrent_logging(self):
        """Test that concurrent producers neither lose nor duplicate messages."""
        logger = MemoryLogger(max_cache_size=10000)

        def produce(name: str) -> None:
            for i in range(1000):
                logger.info(name, "message %d", i)

        threads = [threading.Thread(target=produce, args=(f"t{t}",)) for t in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert logger.cache_size == 2000
        logger.dump()
        keys = {(m.correlation_id, m.message) for m in logger.all_messages}
        assert len(keys) == 2000


class TestConfigure:
    """Tests for configure."""

    def test_configure_base_options(self):
        """Test the base configuration keys."""
        logger = MemoryLogger()

        logger.configure(
            {"level": "debug", "source": "svc", "interval": 2500, "max_cache_size": 7}
        )

        assert logger.level is LogLevel.DEBUG
        assert logger.source == "svc"
        assert logger.interval == 2.5
        assert logger.max_cache_size == 7

    def test_configure_from_string(self):
        """Test configuration strings."""
        logger = MemoryLogger()

        logger.configure("level=error;max_cache_size=5")

        assert logger.level is LogLevel.ERROR
        assert logger.max_cache_size == 5

    @pytest.mark.parametrize(
        "config",
        [{"level": "loud"}, {"interval": "0"}, {"max_cache_size": "-3"}, {"interval": "x"}],
    )
    def test_configure_rejects_invalid_values(self, config):
        """Test that malformed values raise configuration errors."""
        with pytest.raises(ConfigError):
            MemoryLogger().configure(config)

    def test_level_setter(self):
        """Test changing the level with a name."""
        logger = MemoryLogger()
        logger.level = "trace"
        assert logger.level is LogLevel.TRACE
