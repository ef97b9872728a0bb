"""Integration tests for ElasticsearchLogger.

These tests require running Elasticsearch and/or OpenSearch instances and
are skipped when none is reachable.

Run these tests with:
    BULKLOG_TEST_ES_HOST=http://localhost:9200 \
    BULKLOG_TEST_OPENSEARCH_HOST=http://localhost:9201 \
    pytest tests/test_elasticsearch_integration.py -v -m integration
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from typing import Any

import pytest

from bulklog import BulkLogHandler, ElasticsearchLogger

ES_HOST = os.environ.get("BULKLOG_TEST_ES_HOST", "http://localhost:9200")
OPENSEARCH_HOST = os.environ.get("BULKLOG_TEST_OPENSEARCH_HOST", "http://localhost:9201")

pytestmark = pytest.mark.integration


def is_elasticsearch_available() -> bool:
    """Check if Elasticsearch is available."""
    try:
        from elasticsearch import Elasticsearch

        client = Elasticsearch([ES_HOST], verify_certs=False, ssl_show_warn=False)
        info = client.info()
        client.close()
        # OpenSearch answers info() too
        return "lucene_version" in info.get("version", {})
    except Exception:
        return False


def is_opensearch_available() -> bool:
    """Check if OpenSearch is available."""
    try:
        from opensearchpy import OpenSearch

        client = OpenSearch([OPENSEARCH_HOST], verify_certs=False, ssl_show_warn=False)
        info = client.info()
        client.close()
        return "version" in info
    except Exception:
        return False


elasticsearch_available = pytest.mark.skipif(
    not is_elasticsearch_available(),
    reason="Elasticsearch not available at " + ES_HOST,
)

opensearch_available = pytest.mark.skipif(
    not is_opensearch_available(),
    reason="OpenSearch not available at " + OPENSEARCH_HOST,
)


@pytest.fixture
def es_client():
    """Create an Elasticsearch client for testing."""
    from elasticsearch import Elasticsearch

    client = Elasticsearch([ES_HOST], verify_certs=False, ssl_show_warn=False)
    yield client
    client.close()


@pytest.fixture
def opensearch_client():
    """Create an OpenSearch client for testing."""
    from opensearchpy import OpenSearch

    client = OpenSearch([OPENSEARCH_HOST], verify_certs=False, ssl_show_warn=False)
    yield client
    client.close()


@pytest.fixture
def unique_index() -> str:
    """Generate a unique index name for each test."""
    return f"bulklog-test-{uuid.uuid4().hex[:8]}"


def wait_for_docs(
    client: Any,
    index_pattern: str,
    expected_count: int,
    timeout: float = 10.0,
) -> list[dict]:
    """Wait for documents to appear in an index."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            client.indices.refresh(index=index_pattern)
            response = client.search(
                index=index_pattern,
                body={"query": {"match_all": {}}, "size": 100},
            )
            hits = response["hits"]["hits"]
            if len(hits) >= expected_count:
                return [hit["_source"] for hit in hits]
        except Exception:
            pass
        time.sleep(0.5)

    raise TimeoutError(
        f"Expected {expected_count} docs in {index_pattern}, timed out after {timeout}s"
    )


def cleanup_indices(client: Any, index_pattern: str) -> None:
    """Delete test indices."""
    try:
        client.indices.delete(index=index_pattern, ignore_unavailable=True)
    except Exception:
        pass


def make_config(host: str, index: str, **extra: Any) -> dict[str, Any]:
    return {
        "connection.uri": host,
        "index": index,
        "interval": 200,
        "level": "trace",
        "options.verify_certs": False,
        **extra,
    }


@elasticsearch_available
class TestElasticsearchLoggerIntegration:
    """Integration tests against Elasticsearch."""

    def test_open_creates_index_with_mappings(self, es_client, unique_index):
        """Test that open provisions the index."""
        logger = ElasticsearchLogger(config=make_config(ES_HOST, unique_index))
        try:
            logger.open()

            assert es_client.indices.exists(index=unique_index)
            mapping = es_client.indices.get_mapping(index=unique_index)
            properties = mapping[unique_index]["mappings"]["properties"]
            assert properties["level"]["type"] == "keyword"
            assert properties["message"]["index"] is False
        finally:
            logger.close()
            cleanup_indices(es_client, unique_index)

    def test_write_and_close(self, es_client, unique_index):
        """Test that buffered messages are shipped on close."""
        logger = ElasticsearchLogger(config=make_config(ES_HOST, unique_index))
        try:
            logger.open()
            logger.error("123", ValueError("bad"), "boom")
            for i in range(5):
                logger.info(None, "message %d", i)
            logger.close()

            docs = wait_for_docs(es_client, unique_index, 6)
            assert len(docs) == 6
            error_doc = next(d for d in docs if d["level"] == "Error")
            assert error_doc["correlation_id"] == "123"
            assert error_doc["message"] == "boom"
            assert error_doc["error"]["type"] == "ValueError"
        finally:
            logger.close()
            cleanup_indices(es_client, unique_index)

    def test_timer_flush(self, es_client, unique_index):
        """Test that the background timer ships messages."""
        logger = ElasticsearchLogger(config=make_config(ES_HOST, unique_index))
        try:
            logger.open()
            logger.info(None, "shipped by the timer")

            docs = wait_for_docs(es_client, unique_index, 1)
            assert docs[0]["message"] == "shipped by the timer"
        finally:
            logger.close()
            cleanup_indices(es_client, unique_index)

    def test_daily_index(self, es_client, unique_index):
        """Test that daily mode writes to a dated index."""
        logger = ElasticsearchLogger(config=make_config(ES_HOST, unique_index, daily=True))
        try:
            logger.open()
            expected = logger.index_name()
            logger.info(None, "dated")
            logger.close()

            assert expected.startswith(unique_index + "-")
            docs = wait_for_docs(es_client, expected, 1)
            assert docs[0]["message"] == "dated"
        finally:
            logger.close()
            cleanup_indices(es_client, f"{unique_index}-*")

    def test_reopen_after_index_deleted(self, es_client, unique_index):
        """Test that open recreates an index deleted while closed."""
        logger = ElasticsearchLogger(config=make_config(ES_HOST, unique_index))
        try:
            logger.open()
            logger.close()
            cleanup_indices(es_client, unique_index)

            logger.open()

            assert es_client.indices.exists(index=unique_index)
        finally:
            logger.close()
            cleanup_indices(es_client, unique_index)

    def test_handler(self, es_client, unique_index):
        """Test logging through the standard logging handler."""
        es_logger = ElasticsearchLogger(config=make_config(ES_HOST, unique_index))
        es_logger.open()
        handler = BulkLogHandler(es_logger)
        std_logger = logging.getLogger(f"test.integration.{unique_index}")
        std_logger.addHandler(handler)
        std_logger.setLevel(logging.DEBUG)
        try:
            std_logger.warning("Payment declined", extra={"correlation_id": "abc"})
            handler.close()

            docs = wait_for_docs(es_client, unique_index, 1)
            assert docs[0]["level"] == "Warn"
            assert docs[0]["correlation_id"] == "abc"
            assert docs[0]["source"] == std_logger.name
        finally:
            std_logger.removeHandler(handler)
            handler.close()
            cleanup_indices(es_client, unique_index)


@opensearch_available
class TestOpenSearchLoggerIntegration:
    """Integration tests against OpenSearch."""

    def test_write_and_close(self, opensearch_client, unique_index):
        """Test the full lifecycle with the OpenSearch backend."""
        config = make_config(OPENSEARCH_HOST, unique_index, **{"options.backend": "opensearch"})
        logger = ElasticsearchLogger(config=config)
        try:
            logger.open()
            assert opensearch_client.indices.exists(index=unique_index)

            for i in range(3):
                logger.warn("42", None, "message %d", i)
            logger.close()

            docs = wait_for_docs(opensearch_client, unique_index, 3)
            assert sorted(d["message"] for d in docs) == [f"message {i}" for i in range(3)]
            assert all(d["level"] == "Warn" for d in docs)
        finally:
            logger.close()
            cleanup_indices(opensearch_client, unique_index)
