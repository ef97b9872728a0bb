"""Log message model for bulklog."""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from bulklog.errors import LoggerError
from bulklog.levels import LogLevel


def _cause_chain(error: BaseException) -> str | None:
    """Render the __cause__/__context__ chain of an exception as text."""
    causes: list[str] = []
    seen = {id(error)}
    current = error.__cause__ or error.__context__

    while current is not None and id(current) not in seen:
        seen.add(id(current))
        causes.append(f"{type(current).__name__}: {current}")
        current = current.__cause__ or current.__context__

    return "\n".join(causes) if causes else None


@dataclass(frozen=True)
class ErrorDescription:
    """Serializable description of an exception attached to a log message.

    Attributes:
        type: Exception class name.
        category: Broad error category, e.g. "Misconfiguration".
        status: Numeric status, HTTP-like.
        code: Machine readable error code.
        message: Exception message.
        correlation_id: Transaction id the error belongs to.
        cause: Cause chain rendered as text.
        stack_trace: Formatted traceback.
        details: Arbitrary key/value details.
    """

    type: str
    category: str = "Unknown"
    status: int = 500
    code: str = "UNKNOWN"
    message: str = ""
    correlation_id: str | None = None
    cause: str | None = None
    stack_trace: str | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(
        cls, error: BaseException, correlation_id: str | None = None
    ) -> ErrorDescription:
        """Build a description from any exception.

        Structured fields are read from LoggerError subclasses; other
        exceptions get generic values.
        """
        stack_trace = None
        if error.__traceback__ is not None:
            stack_trace = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        if isinstance(error, LoggerError):
            return cls(
                type=type(error).__name__,
                category=error.category,
                status=error.status,
                code=error.code,
                message=error.message,
                correlation_id=error.correlation_id or correlation_id,
                cause=_cause_chain(error),
                stack_trace=stack_trace,
                details=dict(error.details),
            )

        return cls(
            type=type(error).__name__,
            message=str(error),
            correlation_id=correlation_id,
            cause=_cause_chain(error),
            stack_trace=stack_trace,
        )


@dataclass(frozen=True)
class LogMessage:
    """A single log entry held by the cache until it is flushed."""

    time: datetime
    level: LogLevel
    source: str | None
    correlation_id: str | None
    message: str
    error: ErrorDescription | None = None
