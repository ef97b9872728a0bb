"""Standard logging integration for bulklog."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bulklog.levels import LogLevel

if TYPE_CHECKING:
    from bulklog.cached_logger import CachedLogger

_INTERNAL_LOGGER = "bulklog"


def to_log_level(levelno: int) -> LogLevel:
    """Map a standard logging level number to a LogLevel."""
    if levelno >= logging.CRITICAL:
        return LogLevel.FATAL
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARN
    if levelno >= logging.INFO:
        return LogLevel.INFO
    if levelno >= logging.DEBUG:
        return LogLevel.DEBUG
    return LogLevel.TRACE


class BulkLogHandler(logging.Handler):
    """Logging handler that forwards records to a bulklog logger.

    Records are appended to the logger cache and shipped by its background
    flush, so logging calls never wait on the backend. The record logger
    name becomes the message source, `extra={"correlation_id": ...}` the
    correlation id, and `exc_info` the attached error.

    Records emitted by bulklog itself are ignored, so the handler can be
    attached to the root logger without feeding flush errors back into the
    cache.

    Args:
        logger: Logger receiving the records.
        level: Minimum log level to handle. Defaults to NOTSET (all levels).
        close_logger: Close the logger when the handler is closed.
            Defaults to True.

    Example:
        import logging
        from bulklog import BulkLogHandler, ElasticsearchLogger

        es_logger = ElasticsearchLogger(config={"connection.uri": "http://localhost:9200"})
        es_logger.open()

        handler = BulkLogHandler(es_logger)
        logging.getLogger("myapp").addHandler(handler)

        logging.getLogger("myapp").warning(
            "Payment declined", extra={"correlation_id": "123"}
        )

        # Clean shutdown: flushes and closes the logger
        handler.close()
    """

    def __init__(
        self,
        logger: CachedLogger,
        level: int = logging.NOTSET,
        close_logger: bool = True,
    ) -> None:
        super().__init__(level=level)
        self._logger = logger
        self._close_logger = close_logger

    @property
    def logger(self) -> CachedLogger:
        return self._logger

    def emit(self, record: logging.LogRecord) -> None:
        """Append the record to the logger cache."""
        if record.name == _INTERNAL_LOGGER or record.name.startswith(_INTERNAL_LOGGER + "."):
            return

        try:
            level = to_log_level(record.levelno)
            if level > self._logger.level:
                return

            error = None
            if record.exc_info and record.exc_info[1] is not None:
                error = record.exc_info[1]

            correlation_id = getattr(record, "correlation_id", None)
            self._logger.write(
                level,
                str(correlation_id) if correlation_id is not None else None,
                error,
                record.getMessage(),
                source=record.name,
            )
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        """Save buffered messages now, if the logger is open."""
        try:
            self._logger.dump()
        except Exception as e:
            logging.getLogger(_INTERNAL_LOGGER).error("bulklog: Flush failed: %s", e)

    def close(self) -> None:
        """Close the wrapped logger, flushing remaining messages."""
        try:
            close = getattr(self._logger, "close", None)
            if self._close_logger and callable(close):
                close()
        finally:
            super().close()
