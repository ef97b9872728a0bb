"""Index provisioning for bulklog."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from bulklog.errors import ProvisioningError
from bulklog.sinks.base import log_mappings

if TYPE_CHECKING:
    from bulklog.sinks.base import Sink

_logger = logging.getLogger("bulklog")

_ALREADY_EXISTS_MARKERS = ("resource_already_exists", "already exists")


def is_already_exists_error(error: BaseException) -> bool:
    """Return True if a backend error means the index already exists.

    Both official clients expose the backend error type as `error`
    (e.g. "resource_already_exists_exception"); the message is checked too
    so transport-specific wrappers are recognized.
    """
    candidates = [str(getattr(error, "error", "") or ""), str(error)]
    return any(
        marker in text.lower() for text in candidates for marker in _ALREADY_EXISTS_MARKERS
    )


class IndexProvisioner:
    """Makes sure the index logs are written to exists.

    Remembers the last index it ensured, so the check costs nothing on
    flushes until the index name changes (daily rotation) or a forced
    check is requested (logger open).

    Args:
        sink: Sink used to query and create indices.
        index_message: Index the `message` field of log documents.
        include_type_name: Use the legacy typed mappings.
        number_of_shards: Shards of created indices. Defaults to 1.
    """

    def __init__(
        self,
        sink: Sink,
        index_message: bool = False,
        include_type_name: bool = False,
        number_of_shards: int = 1,
    ) -> None:
        self._sink = sink
        self._settings: dict[str, Any] = {"number_of_shards": number_of_shards}
        self._mappings = log_mappings(
            index_message=index_message, include_type_name=include_type_name
        )
        self._current_index: str | None = None
        self._lock = threading.Lock()

    @property
    def current_index(self) -> str | None:
        """Return the last index successfully ensured, if any."""
        return self._current_index

    @property
    def mappings(self) -> dict[str, Any]:
        return self._mappings

    def ensure_index(self, name: str, force: bool = False, correlation_id: str | None = None) -> None:
        """Create the index unless it is known to exist.

        Args:
            name: Index name.
            force: Query the backend even if `name` was ensured before.
            correlation_id: Optional transaction id for raised errors.

        Raises:
            ProvisioningError: If the existence check or the creation fails
                for any reason other than the index already existing.
        """
        with self._lock:
            previous = self._current_index
        if not force and name == previous:
            return

        try:
            exists = self._sink.index_exists(name)
        except Exception as e:
            raise ProvisioningError(
                f"Could not check index '{name}': {e}",
                correlation_id=correlation_id,
                code="INDEX_CHECK_FAILED",
                details={"index": name},
                cause=e,
            ) from e

        if not exists:
            try:
                self._sink.create_index(name, settings=self._settings, mappings=self._mappings)
                _logger.debug("bulklog: Provisioned index '%s'", name)
            except Exception as e:
                if not is_already_exists_error(e):
                    raise ProvisioningError(
                        f"Could not create index '{name}': {e}",
                        correlation_id=correlation_id,
                        code="INDEX_CREATE_FAILED",
                        details={"index": name},
                        cause=e,
                    ) from e
                _logger.debug("bulklog: Index '%s' was created concurrently", name)

        with self._lock:
            # Another call recorded a newer name while the backend was queried
            if self._current_index == previous:
                self._current_index = name
