"""Base sink interface for bulklog."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bulklog.config import ClientOptions, ConnectionParams

LEGACY_TYPE_NAME = "log_message"


class Sink(ABC):
    """Abstract base class for backend implementations.

    A sink wraps the client of a search backend and exposes the three
    calls the logger needs: index existence, index creation and bulk
    writes. It is opened and closed by the logger that owns it.

    To implement a custom sink:
        1. Subclass this class
        2. Implement `index_exists`, `create_index` and `bulk` (required)
        3. Optionally override `open` and `close`

    Example:
        class MySink(Sink):
            def open(self, connection, options) -> None:
                self.session = requests.Session()
                self.base = connection.uri

            def index_exists(self, name: str) -> bool:
                return self.session.head(f"{self.base}/{name}").ok

            def create_index(self, name, settings, mappings) -> None:
                body = {"settings": settings, "mappings": mappings}
                self.session.put(f"{self.base}/{name}", json=body).raise_for_status()

            def bulk(self, operations) -> dict[str, Any]:
                ...

            def close(self) -> None:
                self.session.close()
    """

    def open(self, connection: ConnectionParams, options: ClientOptions) -> None:
        """Connect to the backend.

        Called once per logger open. The default implementation does nothing.
        """

    @abstractmethod
    def index_exists(self, name: str) -> bool:
        """Return True if the index exists on the backend."""

    @abstractmethod
    def create_index(self, name: str, settings: dict[str, Any], mappings: dict[str, Any]) -> None:
        """Create an index with the given settings and mappings.

        Implementations let backend errors propagate, including the error
        raised when the index already exists.
        """

    @abstractmethod
    def bulk(self, operations: list[dict[str, Any]]) -> dict[str, Any]:
        """Send a bulk request and return the backend response.

        Args:
            operations: Alternating action and document dictionaries.

        Returns:
            The parsed response; at least `errors` and `items` are read.
        """

    def close(self) -> None:
        """Release the connection.

        Called when the logger closes. The default implementation does nothing.
        """


def log_mappings(index_message: bool = False, include_type_name: bool = False) -> dict[str, Any]:
    """Build the index mappings for shipped log documents.

    Args:
        index_message: Index the free-text `message` field. Disabled by
            default to save index size.
        include_type_name: Wrap the mappings under the `log_message` type,
            as backends before 7.x expect.
    """
    mappings: dict[str, Any] = {
        "properties": {
            "time": {"type": "date", "index": True},
            "source": {"type": "keyword", "index": True},
            "level": {"type": "keyword", "index": True},
            "correlation_id": {"type": "text", "index": True},
            "error": {
                "type": "object",
                "properties": {
                    "type": {"type": "keyword", "index": True},
                    "category": {"type": "keyword", "index": True},
                    "status": {"type": "integer", "index": False},
                    "code": {"type": "keyword", "index": True},
                    "message": {"type": "text", "index": False},
                    "details": {"type": "object"},
                    "correlation_id": {"type": "text", "index": False},
                    "cause": {"type": "text", "index": False},
                    "stack_trace": {"type": "text", "index": False},
                },
            },
            "message": {"type": "text", "index": index_message},
        }
    }

    if include_type_name:
        return {LEGACY_TYPE_NAME: mappings}
    return mappings
