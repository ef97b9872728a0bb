"""Log message serialization for bulklog."""

from __future__ import annotations

from typing import Any

from bulklog.message import ErrorDescription, LogMessage


def _json_safe(value: Any) -> Any:
    """Coerce a detail value to something the JSON encoder accepts."""
    if isinstance(value, str | int | float | bool | type(None)):
        return value
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, list | tuple | set):
        return [_json_safe(v) for v in value]
    try:
        return str(value)
    except Exception:
        return repr(value)


def serialize_error(error: ErrorDescription) -> dict[str, Any]:
    """Serialize an ErrorDescription to the `error` object of a document."""
    return {
        "type": error.type,
        "category": error.category,
        "status": error.status,
        "code": error.code,
        "message": error.message,
        "correlation_id": error.correlation_id,
        "cause": error.cause,
        "stack_trace": error.stack_trace,
        "details": _json_safe(dict(error.details)),
    }


def serialize_message(message: LogMessage) -> dict[str, Any]:
    """Serialize a LogMessage to a document matching the index mappings.

    The `error` field is omitted when the message carries no error.

    Example:
        data = serialize_message(message)
        # data = {
        #     "time": "2024-03-05T10:15:00+00:00",
        #     "source": "orders",
        #     "level": "Error",
        #     "correlation_id": "123",
        #     "message": "boom",
        #     "error": {"type": "ValueError", ...},
        # }
    """
    data: dict[str, Any] = {
        "time": message.time.isoformat(),
        "source": message.source,
        "level": message.level.label,
        "correlation_id": message.correlation_id,
        "message": message.message,
    }

    if message.error is not None:
        data["error"] = serialize_error(message.error)

    return data
