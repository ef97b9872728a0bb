"""bulklog: A buffered log shipper for Elasticsearch and OpenSearch.

bulklog keeps log messages in a bounded in-memory cache and writes them
to a search backend with the bulk API from a background timer, creating
the target index when needed and rotating it daily if configured.

Key Features:
    - Non-blocking: Logging only appends to a cache; I/O runs on a timer
    - Bounded: The cache drops the oldest messages when full
    - Daily indices: Optional date suffix with automatic index creation
    - Elasticsearch/OpenSearch support: Pick the backend in configuration
    - Standard logging bridge: Forward logging records with BulkLogHandler

Basic Usage:
    from bulklog import ElasticsearchLogger

    logger = ElasticsearchLogger(config={
        "connection.uri": "http://localhost:9200",
        "index": "myapp-log",
        "daily": True,
        "level": "debug",
        "source": "myapp",
    })
    logger.open()

    logger.info("123", "Processing order %s", order_id)
    try:
        ...
    except Exception as err:
        logger.error("123", err, "Order %s failed", order_id)

    # Clean shutdown: final flush, then disconnect
    logger.close()

With Standard Logging:
    import logging
    from bulklog import BulkLogHandler

    logging.getLogger("myapp").addHandler(BulkLogHandler(logger))

Custom Sink:
    from bulklog.sinks import Sink

    class MySink(Sink):
        def index_exists(self, name):
            ...

        def create_index(self, name, settings, mappings):
            ...

        def bulk(self, operations):
            ...
"""

from bulklog.bulk import BulkWriteAdapter
from bulklog.cache import LogCache
from bulklog.cached_logger import CachedLogger
from bulklog.config import ClientOptions, ConfigParams, ConnectionParams, ConnectionResolver
from bulklog.elasticsearch_logger import ElasticsearchLogger, LoggerState
from bulklog.errors import ConfigError, InvocationError, LoggerError, ProvisioningError
from bulklog.handler import BulkLogHandler
from bulklog.levels import LogLevel
from bulklog.message import ErrorDescription, LogMessage
from bulklog.naming import current_index_name
from bulklog.provisioner import IndexProvisioner
from bulklog.serializer import serialize_message
from bulklog.sinks import ElasticsearchSink, OpenSearchSink, Sink
from bulklog.worker import FlushTimer

__version__ = "0.1.0"

__all__ = [
    # Loggers
    "CachedLogger",
    "ElasticsearchLogger",
    "LoggerState",
    "BulkLogHandler",
    # Messages
    "LogLevel",
    "LogMessage",
    "ErrorDescription",
    # Configuration
    "ConfigParams",
    "ConnectionParams",
    "ConnectionResolver",
    "ClientOptions",
    # Errors
    "LoggerError",
    "ConfigError",
    "ProvisioningError",
    "InvocationError",
    # Sink interface and implementations
    "Sink",
    "ElasticsearchSink",
    "OpenSearchSink",
    # Building blocks
    "LogCache",
    "FlushTimer",
    "IndexProvisioner",
    "BulkWriteAdapter",
    "current_index_name",
    "serialize_message",
    # Version
    "__version__",
]
