"""Bulk write adapter for bulklog."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from bulklog.errors import InvocationError
from bulklog.serializer import serialize_message
from bulklog.sinks.base import LEGACY_TYPE_NAME

if TYPE_CHECKING:
    from bulklog.message import LogMessage
    from bulklog.sinks.base import Sink

_logger = logging.getLogger("bulklog")


def generate_id() -> str:
    """Return a new unique document id."""
    return uuid.uuid4().hex


class BulkWriteAdapter:
    """Turns a batch of log messages into a single bulk request.

    Each message becomes one index operation routed to the given index,
    with a freshly generated document id. Messages keep their order.

    Args:
        sink: Sink the bulk request is sent to.
        include_type_name: Add the legacy `_type` to each operation.
        id_generator: Function returning unique document ids. Defaults to
            random UUID hex strings.
    """

    def __init__(
        self,
        sink: Sink,
        include_type_name: bool = False,
        id_generator: Callable[[], str] | None = None,
    ) -> None:
        self._sink = sink
        self._include_type_name = include_type_name
        self._id_generator = id_generator or generate_id

    def build_operations(self, index: str, messages: Sequence[LogMessage]) -> list[dict[str, Any]]:
        """Build alternating action/document pairs for the bulk API."""
        operations: list[dict[str, Any]] = []
        for message in messages:
            action: dict[str, Any] = {"_index": index, "_id": self._id_generator()}
            if self._include_type_name:
                action["_type"] = LEGACY_TYPE_NAME
            operations.append({"index": action})
            operations.append(serialize_message(message))
        return operations

    def write(self, index: str, messages: Sequence[LogMessage]) -> int:
        """Write messages to `index` in one bulk call.

        Transport errors raised by the sink propagate unchanged.

        Returns:
            Number of documents sent.

        Raises:
            InvocationError: If the backend rejected some of the documents.
        """
        if not messages:
            return 0

        response = self._sink.bulk(self.build_operations(index, messages))

        if response.get("errors"):
            errors: list[str] = []
            for item in response.get("items", []):
                result = item.get("index", {})
                if "error" in result:
                    errors.append(str(result["error"]))

            for error in errors[:10]:
                _logger.warning("bulklog: Bulk item rejected: %s", error)

            raise InvocationError(
                f"Backend rejected {len(errors)} of {len(messages)} log documents",
                code="BULK_REJECTED",
                details={"index": index, "rejected": len(errors), "total": len(messages)},
            )

        _logger.debug("bulklog: Wrote %d documents to '%s'", len(messages), index)
        return len(messages)
