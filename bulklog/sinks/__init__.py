"""Sink implementations for bulklog."""

from bulklog.errors import ConfigError
from bulklog.sinks.base import LEGACY_TYPE_NAME, Sink, log_mappings
from bulklog.sinks.elasticsearch_sink import ElasticsearchSink
from bulklog.sinks.opensearch_sink import OpenSearchSink

_SINKS: dict[str, type[Sink]] = {
    "elasticsearch": ElasticsearchSink,
    "opensearch": OpenSearchSink,
}


def create_sink(backend: str) -> Sink:
    """Create a sink for a backend name ("elasticsearch" or "opensearch")."""
    try:
        return _SINKS[backend.lower()]()
    except KeyError:
        raise ConfigError(f"Unsupported backend '{backend}'", code="INVALID_VALUE") from None


__all__ = [
    "Sink",
    "ElasticsearchSink",
    "OpenSearchSink",
    "LEGACY_TYPE_NAME",
    "create_sink",
    "log_mappings",
]
