"""OpenSearch sink implementation for bulklog."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from bulklog.errors import InvocationError
from bulklog.sinks.base import Sink

if TYPE_CHECKING:
    from opensearchpy import OpenSearch

    from bulklog.config import ClientOptions, ConnectionParams

_logger = logging.getLogger("bulklog")


def _create_opensearch_client(connection: ConnectionParams, options: ClientOptions) -> OpenSearch:
    """Create an OpenSearch client for the resolved connection."""
    try:
        from opensearchpy import OpenSearch
    except ImportError as e:
        raise ImportError(
            "OpenSearch client not installed. Install with: pip install bulklog[opensearch]"
        ) from e

    kwargs: dict[str, Any] = {
        "hosts": [
            {"host": connection.host, "port": connection.port, "scheme": connection.protocol}
        ],
        "timeout": options.timeout,
        "max_retries": options.max_retries,
        "retry_on_timeout": True,
        "dead_timeout": options.reconnect,
        "use_ssl": connection.protocol == "https",
        "verify_certs": options.verify_certs,
    }

    if connection.username and connection.password:
        kwargs["http_auth"] = (connection.username, connection.password)
    elif connection.api_key:
        kwargs["headers"] = {"Authorization": f"ApiKey {connection.api_key}"}

    return OpenSearch(**kwargs)


class OpenSearchSink(Sink):
    """OpenSearch sink using opensearch-py.

    Args:
        client: OpenSearch client instance. If not provided, one is created
            from the connection the logger resolves when it opens, and closed
            again when the sink closes.

    Example:
        sink = OpenSearchSink()
        logger = ElasticsearchLogger(sink=sink, config=config)

        # Or select it through configuration
        logger = ElasticsearchLogger(config={"options.backend": "opensearch", ...})
    """

    def __init__(self, client: OpenSearch | None = None) -> None:
        self._client = client
        self._owns_client = client is None

    def open(self, connection: ConnectionParams, options: ClientOptions) -> None:
        """Create the client if one was not injected."""
        if self._client is None:
            self._client = _create_opensearch_client(connection, options)
            self._owns_client = True
            _logger.debug("bulklog: Connected to OpenSearch at %s", connection.uri)

    def _get_client(self) -> OpenSearch:
        if self._client is None:
            raise InvocationError("OpenSearch sink is not open", code="NOT_OPENED")
        return self._client

    def index_exists(self, name: str) -> bool:
        return bool(self._get_client().indices.exists(index=name))

    def create_index(self, name: str, settings: dict[str, Any], mappings: dict[str, Any]) -> None:
        body = {"settings": settings, "mappings": mappings}
        self._get_client().indices.create(index=name, body=body)
        _logger.debug("bulklog: Created index '%s'", name)

    def bulk(self, operations: list[dict[str, Any]]) -> dict[str, Any]:
        return self._get_client().bulk(body=operations, refresh=False)

    def close(self) -> None:
        """Close the OpenSearch client if we own it."""
        if self._owns_client and self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                _logger.debug("bulklog: Error closing OpenSearch client: %s", e)
            self._client = None
