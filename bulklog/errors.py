"""Error types raised by bulklog."""

from __future__ import annotations

from typing import Any


class LoggerError(Exception):
    """Base class for all bulklog errors.

    Carries the structured fields that end up in the `error` object of a
    shipped log document, so errors raised by the library can be logged
    through the library without losing information.

    Args:
        message: Human readable description.
        correlation_id: Optional transaction id to trace the call chain.
        code: Machine readable error code. Defaults to "UNKNOWN".
        details: Arbitrary key/value details.
        cause: Underlying exception, if any.
    """

    category: str = "Unknown"
    status: int = 500

    def __init__(
        self,
        message: str,
        correlation_id: str | None = None,
        code: str = "UNKNOWN",
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id
        self.code = code
        self.details = details or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ConfigError(LoggerError):
    """Missing or invalid configuration. Raised from configure() and open()."""

    category = "Misconfiguration"


class ProvisioningError(LoggerError):
    """Index existence check or creation failed."""

    category = "Failed Invocation"


class InvocationError(LoggerError):
    """A call to the backend failed or returned an unusable response."""

    category = "Failed Invocation"
