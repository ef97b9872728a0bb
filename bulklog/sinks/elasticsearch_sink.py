"""Elasticsearch sink implementation for bulklog."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from bulklog.errors import InvocationError
from bulklog.sinks.base import Sink

if TYPE_CHECKING:
    from elasticsearch import Elasticsearch

    from bulklog.config import ClientOptions, ConnectionParams

_logger = logging.getLogger("bulklog")


def _create_es_client(connection: ConnectionParams, options: ClientOptions) -> Elasticsearch:
    """Create an Elasticsearch client for the resolved connection."""
    from elasticsearch import Elasticsearch

    kwargs: dict[str, Any] = {
        "hosts": [connection.uri],
        "request_timeout": options.timeout,
        "max_retries": options.max_retries,
        "retry_on_timeout": True,
        "max_dead_node_backoff": options.reconnect,
        "verify_certs": options.verify_certs,
    }

    if connection.api_key:
        kwargs["api_key"] = connection.api_key
    elif connection.username and connection.password:
        kwargs["basic_auth"] = (connection.username, connection.password)

    return Elasticsearch(**kwargs)


class ElasticsearchSink(Sink):
    """Elasticsearch sink using the official client.

    Args:
        client: Elasticsearch client instance. If not provided, one is
            created from the connection the logger resolves when it opens,
            and closed again when the sink closes.

    Note:
        For Elastic Cloud deployments, create and pass your own client:
            client = Elasticsearch(cloud_id="...", api_key="...")
            logger = ElasticsearchLogger(sink=ElasticsearchSink(client=client))

    Example:
        sink = ElasticsearchSink()
        logger = ElasticsearchLogger(sink=sink, config=config)
    """

    def __init__(self, client: Elasticsearch | None = None) -> None:
        self._client = client
        self._owns_client = client is None

    def open(self, connection: ConnectionParams, options: ClientOptions) -> None:
        """Create the client if one was not injected."""
        if self._client is None:
            self._client = _create_es_client(connection, options)
            self._owns_client = True
            _logger.debug("bulklog: Connected to Elasticsearch at %s", connection.uri)

    def _get_client(self) -> Elasticsearch:
        if self._client is None:
            raise InvocationError("Elasticsearch sink is not open", code="NOT_OPENED")
        return self._client

    def index_exists(self, name: str) -> bool:
        return bool(self._get_client().indices.exists(index=name))

    def create_index(self, name: str, settings: dict[str, Any], mappings: dict[str, Any]) -> None:
        self._get_client().indices.create(index=name, settings=settings, mappings=mappings)
        _logger.debug("bulklog: Created index '%s'", name)

    def bulk(self, operations: list[dict[str, Any]]) -> dict[str, Any]:
        response = self._get_client().bulk(operations=operations, refresh=False)
        return dict(response.body) if hasattr(response, "body") else dict(response)

    def close(self) -> None:
        """Close the Elasticsearch client if we own it."""
        if self._owns_client and self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                _logger.debug("bulklog: Error closing Elasticsearch client: %s", e)
            self._client = None
