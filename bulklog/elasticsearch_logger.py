"""Logger that ships buffered messages to Elasticsearch or OpenSearch."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from bulklog.bulk import BulkWriteAdapter
from bulklog.cached_logger import CachedLogger
from bulklog.config import ConfigParams, ConnectionResolver, LoggerOptions
from bulklog.errors import ConfigError, InvocationError
from bulklog.naming import current_index_name
from bulklog.provisioner import IndexProvisioner
from bulklog.sinks import create_sink
from bulklog.worker import FlushTimer

if TYPE_CHECKING:
    from bulklog.message import LogMessage
    from bulklog.sinks.base import Sink

_logger = logging.getLogger("bulklog")

# Seconds added to the client timeouts when close() waits for the timer
STOP_GRACE = 1.0


class LoggerState(Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    CLOSING = "closing"


class ElasticsearchLogger(CachedLogger):
    """Buffered logger writing to an Elasticsearch or OpenSearch index.

    Messages are cached in memory and written with the bulk API by a
    background timer every `interval`, on `dump()` and once more on
    `close()`. The target index is created on demand, optionally with a
    date suffix so that each day gets its own index.

    Delivery is at most once: a batch that fails to write is logged (timer
    flushes) or raised (`dump()`/`close()`), and is not retried by the
    logger. Retries on connection errors and timeouts are left to the
    client, bounded by `options.max_retries`.

    Args:
        sink: Sink to write to. If not provided, one is created for
            `options.backend` when the logger opens.
        config: Configuration parameters applied with `configure`.
        clock: Function returning the current time, used for message
            timestamps and daily index names. Defaults to UTC now.

    Configuration keys:
        connection.uri, connection.host, connection.port, connection.protocol
        credential.username, credential.password, credential.api_key
        index: Base index name. Defaults to "log".
        date_format: Date pattern of the daily suffix. Defaults to "yyyyMMdd".
        daily: Rotate the index daily. Defaults to false.
        options.reconnect: Milliseconds before a dead node is retried.
            Defaults to 60000.
        options.timeout: Request timeout in milliseconds. Defaults to 30000.
        options.max_retries: Client retries. Defaults to 3.
        options.index_message: Index the message text. Defaults to false.
        options.include_type_name: Use the typed mappings of backends
            before 7.x. Defaults to false.
        options.backend: "elasticsearch" or "opensearch".
        options.verify_certs: Verify TLS certificates. Defaults to true.
        level, source, interval, max_cache_size: See CachedLogger.

    Example:
        logger = ElasticsearchLogger(config={
            "connection.uri": "http://localhost:9200",
            "index": "myapp-log",
            "daily": True,
        })
        logger.open()
        logger.error("123", err, "Failed to process order %s", order_id)
        logger.close()
    """

    def __init__(
        self,
        sink: Sink | None = None,
        config: ConfigParams | Mapping[str, Any] | str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self._sink = sink
        self._options = LoggerOptions()
        self._connection_resolver = ConnectionResolver()
        self._state = LoggerState.CLOSED
        self._state_lock = threading.Lock()
        self._timer: FlushTimer | None = None
        self._active_sink: Sink | None = None
        self._provisioner: IndexProvisioner | None = None
        self._writer: BulkWriteAdapter | None = None

        if config is not None:
            self.configure(config)

    def configure(self, config: ConfigParams | Mapping[str, Any] | str) -> None:
        """Apply configuration parameters.

        Raises:
            ConfigError: If a value is malformed, including an invalid
                date format.
        """
        config = ConfigParams.from_value(config)
        super().configure(config)
        self._connection_resolver.configure(config)
        self._options = LoggerOptions.from_config(config, base=self._options)

    @property
    def options(self) -> LoggerOptions:
        return self._options

    @property
    def state(self) -> LoggerState:
        return self._state

    @property
    def current_index(self) -> str | None:
        """Return the last index that was ensured to exist, if any."""
        provisioner = self._provisioner
        return provisioner.current_index if provisioner is not None else None

    def index_name(self) -> str:
        """Compute the index messages are written to right now."""
        return current_index_name(
            self._options.index,
            self._options.daily,
            self._options.date_format,
            self._clock(),
        )

    def is_open(self) -> bool:
        return self._state is LoggerState.OPEN

    def open(self, correlation_id: str | None = None) -> None:
        """Connect, make sure the index exists and start the flush timer.

        Does nothing if the logger is already open.

        Raises:
            ConfigError: If no connection is configured.
            ProvisioningError: If the index cannot be checked or created.
        """
        with self._state_lock:
            if self._state is LoggerState.OPEN:
                return

            self._state = LoggerState.OPENING
            try:
                connection = self._connection_resolver.resolve(correlation_id)
                if connection is None:
                    raise ConfigError(
                        "Connection is not configured",
                        correlation_id=correlation_id,
                        code="NO_CONNECTION",
                    )

                sink = self._sink if self._sink is not None else create_sink(self._options.backend)
                self._active_sink = sink
                sink.open(connection, self._options.client_options())

                self._provisioner = IndexProvisioner(
                    sink,
                    index_message=self._options.index_message,
                    include_type_name=self._options.include_type_name,
                )
                self._writer = BulkWriteAdapter(
                    sink, include_type_name=self._options.include_type_name
                )

                # The index may have been deleted since the last run
                self._provisioner.ensure_index(
                    self.index_name(), force=True, correlation_id=correlation_id
                )
            except Exception:
                self._release()
                self._state = LoggerState.CLOSED
                raise

            self._state = LoggerState.OPEN
            self._timer = FlushTimer(self.dump, self._interval)
            self._timer.start()
            _logger.debug(
                "bulklog: Opened logger on '%s', flushing every %.1fs",
                self.current_index,
                self._interval,
            )

    def close(self, correlation_id: str | None = None) -> None:
        """Stop the timer, flush buffered messages and disconnect.

        Does nothing if the logger is already closed. An in-flight flush,
        from the timer or a concurrent `dump()`, is allowed to complete
        before the connection is released. The connection is released even
        if the final flush fails; that error is then raised.
        """
        with self._state_lock:
            if self._state is LoggerState.CLOSED:
                return

            self._state = LoggerState.CLOSING
            timer, self._timer = self._timer, None
            if timer is not None:
                timer.stop(timeout=self._stop_timeout())

            with self._flush_lock:
                try:
                    self._flush()
                finally:
                    self._release()
                    self._cache.clear()
                    self._state = LoggerState.CLOSED
                    _logger.debug("bulklog: Closed logger")

    def _stop_timeout(self) -> float:
        """Seconds a single flush may take with every client retry."""
        options = self._options.client_options()
        return options.timeout * (options.max_retries + 1) + STOP_GRACE

    def _release(self) -> None:
        sink = self._active_sink
        self._active_sink = None
        self._provisioner = None
        self._writer = None
        if sink is not None:
            sink.close()

    def _save(self, messages: list[LogMessage]) -> None:
        provisioner = self._provisioner
        writer = self._writer
        if provisioner is None or writer is None:
            raise InvocationError(
                f"Logger is not open, {len(messages)} messages were not saved",
                code="NOT_OPENED",
            )

        index = self.index_name()
        provisioner.ensure_index(index, force=False)
        writer.write(index, messages)

    def __enter__(self) -> ElasticsearchLogger:
        self.open()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(index={self._options.index!r}, "
            f"state={self._state.value}, level={self._level.name})"
        )
