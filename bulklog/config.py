"""Configuration parameters and connection resolution for bulklog."""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from bulklog.errors import ConfigError
from bulklog.naming import compile_date_format

_logger = logging.getLogger("bulklog")

ENV_ES_URI = "BULKLOG_ES_URI"
ENV_ES_USERNAME = "BULKLOG_ES_USERNAME"
ENV_ES_PASSWORD = "BULKLOG_ES_PASSWORD"
ENV_ES_API_KEY = "BULKLOG_ES_API_KEY"

DEFAULT_PORT = 9200
DEFAULT_PROTOCOL = "http"
SUPPORTED_PROTOCOLS = ("http", "https")
SUPPORTED_BACKENDS = ("elasticsearch", "opensearch")

_TRUE_VALUES = {"true", "1", "yes", "y", "on", "t"}
_FALSE_VALUES = {"false", "0", "no", "n", "off", "f"}


class ConfigParams(dict[str, str]):
    """Flat key/value configuration with dotted keys.

    Values are stored as strings and converted on access. Keys are
    case-insensitive on lookup through the typed getters.

    Example:
        config = ConfigParams.from_string(
            "index=app-log;daily=true;connection.host=localhost;connection.port=9200"
        )
        config.get_as_boolean_with_default("daily", False)  # True
        config.get_section("connection")  # {"host": "localhost", "port": "9200"}
    """

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        if values:
            for key, value in values.items():
                if value is not None:
                    self[str(key)] = self._to_text(value)

    @staticmethod
    def _to_text(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    @classmethod
    def from_tuples(cls, *tuples: Any) -> ConfigParams:
        """Create from alternating keys and values."""
        if len(tuples) % 2:
            raise ConfigError("Config tuples must come in key/value pairs", code="INVALID_VALUE")
        return cls(dict(zip(tuples[0::2], tuples[1::2], strict=True)))

    @classmethod
    def from_string(cls, text: str | None) -> ConfigParams:
        """Parse "key1=value1;key2=value2" into config params."""
        values: dict[str, str] = {}
        for item in (text or "").split(";"):
            item = item.strip()
            if not item:
                continue
            key, sep, value = item.partition("=")
            if not sep:
                raise ConfigError(
                    f"Invalid config item '{item}', expected key=value",
                    code="INVALID_VALUE",
                )
            values[key.strip()] = value.strip()
        return cls(values)

    @classmethod
    def from_value(cls, value: ConfigParams | Mapping[str, Any] | str | None) -> ConfigParams:
        """Accept config params, a mapping or a config string."""
        if isinstance(value, ConfigParams):
            return value
        if isinstance(value, str):
            return cls.from_string(value)
        return cls(value)

    def _lookup(self, key: str) -> str | None:
        if key in self:
            return self[key]
        lowered = key.lower()
        for existing, value in self.items():
            if existing.lower() == lowered:
                return value
        return None

    def get_as_string(self, key: str) -> str | None:
        return self._lookup(key)

    def get_as_string_with_default(self, key: str, default: str) -> str:
        value = self._lookup(key)
        return default if value is None or value == "" else value

    def get_as_integer(self, key: str) -> int | None:
        value = self._lookup(key)
        if value is None or value.strip() == "":
            return None
        try:
            return int(float(value)) if "." in value else int(value)
        except ValueError:
            raise ConfigError(
                f"Config key '{key}' expects an integer, got '{value}'",
                code="INVALID_VALUE",
                details={"key": key, "value": value},
            ) from None

    def get_as_integer_with_default(self, key: str, default: int) -> int:
        value = self.get_as_integer(key)
        return default if value is None else value

    def get_as_float_with_default(self, key: str, default: float) -> float:
        value = self._lookup(key)
        if value is None or value.strip() == "":
            return default
        try:
            return float(value)
        except ValueError:
            raise ConfigError(
                f"Config key '{key}' expects a number, got '{value}'",
                code="INVALID_VALUE",
                details={"key": key, "value": value},
            ) from None

    def get_as_boolean(self, key: str) -> bool | None:
        value = self._lookup(key)
        if value is None or value.strip() == "":
            return None
        text = value.strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigError(
            f"Config key '{key}' expects a boolean, got '{value}'",
            code="INVALID_VALUE",
            details={"key": key, "value": value},
        )

    def get_as_boolean_with_default(self, key: str, default: bool) -> bool:
        value = self.get_as_boolean(key)
        return default if value is None else value

    def get_section(self, section: str) -> ConfigParams:
        """Return the keys under `section.` with the prefix stripped."""
        prefix = section.lower() + "."
        return ConfigParams(
            {key[len(prefix) :]: value for key, value in self.items() if key.lower().startswith(prefix)}
        )


@dataclass(frozen=True)
class ClientOptions:
    """Options applied to the backend client when a sink is opened.

    Attributes:
        timeout: Request timeout in seconds.
        reconnect: Seconds before a failed node is retried.
        max_retries: Retries performed by the client on connection errors
            and timeouts.
        verify_certs: Verify TLS certificates.
    """

    timeout: float = 30.0
    reconnect: float = 60.0
    max_retries: int = 3
    verify_certs: bool = True


@dataclass(frozen=True)
class LoggerOptions:
    """Settings of an ElasticsearchLogger.

    Durations are in milliseconds, as they appear in configuration.
    """

    index: str = "log"
    date_format: str = "yyyyMMdd"
    daily: bool = False
    reconnect: int = 60000
    timeout: int = 30000
    max_retries: int = 3
    index_message: bool = False
    include_type_name: bool = False
    backend: str = "elasticsearch"
    verify_certs: bool = True

    @classmethod
    def from_config(cls, config: ConfigParams, base: LoggerOptions | None = None) -> LoggerOptions:
        """Read options from config, falling back to `base` for missing keys.

        Raises:
            ConfigError: If any value is malformed or out of range.
        """
        base = base or cls()
        options = dataclasses.replace(
            base,
            index=config.get_as_string_with_default("index", base.index),
            date_format=config.get_as_string_with_default("date_format", base.date_format),
            daily=config.get_as_boolean_with_default("daily", base.daily),
            reconnect=config.get_as_integer_with_default("options.reconnect", base.reconnect),
            timeout=config.get_as_integer_with_default("options.timeout", base.timeout),
            max_retries=config.get_as_integer_with_default("options.max_retries", base.max_retries),
            index_message=config.get_as_boolean_with_default(
                "options.index_message", base.index_message
            ),
            include_type_name=config.get_as_boolean_with_default(
                "options.include_type_name", base.include_type_name
            ),
            backend=config.get_as_string_with_default("options.backend", base.backend).lower(),
            verify_certs=config.get_as_boolean_with_default(
                "options.verify_certs", base.verify_certs
            ),
        )
        options.validate()
        return options

    def validate(self) -> None:
        if not self.index.strip():
            raise ConfigError("Index name must not be empty", code="INVALID_VALUE")
        if self.timeout <= 0:
            raise ConfigError("options.timeout must be positive", code="INVALID_VALUE")
        if self.reconnect <= 0:
            raise ConfigError("options.reconnect must be positive", code="INVALID_VALUE")
        if self.max_retries < 0:
            raise ConfigError("options.max_retries must not be negative", code="INVALID_VALUE")
        if self.backend not in SUPPORTED_BACKENDS:
            raise ConfigError(
                f"Unsupported backend '{self.backend}'",
                code="INVALID_VALUE",
                details={"backend": self.backend, "supported": list(SUPPORTED_BACKENDS)},
            )
        # Surfaces malformed patterns now rather than on the first flush.
        compile_date_format(self.date_format)

    def client_options(self) -> ClientOptions:
        return ClientOptions(
            timeout=self.timeout / 1000.0,
            reconnect=self.reconnect / 1000.0,
            max_retries=self.max_retries,
            verify_certs=self.verify_certs,
        )


@dataclass(frozen=True)
class ConnectionParams:
    """Where and how to reach the backend."""

    host: str
    port: int = DEFAULT_PORT
    protocol: str = DEFAULT_PROTOCOL
    username: str | None = None
    password: str | None = None
    api_key: str | None = None

    @property
    def uri(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"


def _parse_port(value: str | int | None, correlation_id: str | None) -> int:
    if value is None or value == "":
        return DEFAULT_PORT
    try:
        port = int(value)
    except (TypeError, ValueError):
        port = -1
    if not 0 < port < 65536:
        raise ConfigError(
            f"Invalid connection port '{value}'",
            correlation_id=correlation_id,
            code="INVALID_PORT",
        )
    return port


def _check_protocol(protocol: str, correlation_id: str | None) -> str:
    protocol = protocol.lower()
    if protocol not in SUPPORTED_PROTOCOLS:
        raise ConfigError(
            f"Unsupported connection protocol '{protocol}'",
            correlation_id=correlation_id,
            code="INVALID_PROTOCOL",
            details={"protocol": protocol},
        )
    return protocol


class ConnectionResolver:
    """Resolves backend connection parameters from configuration.

    Recognized keys:
        connection.uri: Full URI, e.g. "https://es.example.com:9243".
        connection.host / connection.port / connection.protocol: Used when
            no URI is given. Port defaults to 9200, protocol to "http".
        credential.username / credential.password: Basic auth.
        credential.api_key: API key auth.

    Environment Variables (used when no connection is configured):
        BULKLOG_ES_URI: Backend URI
        BULKLOG_ES_USERNAME: Basic auth username
        BULKLOG_ES_PASSWORD: Basic auth password
        BULKLOG_ES_API_KEY: API key
    """

    def __init__(self) -> None:
        self._connection = ConfigParams()
        self._credential = ConfigParams()

    def configure(self, config: ConfigParams) -> None:
        connection = config.get_section("connection")
        credential = config.get_section("credential")
        if connection:
            self._connection = connection
        if credential:
            self._credential = credential

    def resolve(self, correlation_id: str | None = None) -> ConnectionParams | None:
        """Return connection parameters, or None when nothing is configured.

        Raises:
            ConfigError: If the configured connection is malformed.
        """
        uri = self._connection.get_as_string("uri")
        host = self._connection.get_as_string("host")

        username = self._credential.get_as_string("username")
        password = self._credential.get_as_string("password")
        api_key = self._credential.get_as_string("api_key")

        if not uri and not host:
            uri = os.environ.get(ENV_ES_URI)
            if not uri:
                return None
            _logger.debug("bulklog: Using connection from %s", ENV_ES_URI)
            username = username or os.environ.get(ENV_ES_USERNAME)
            password = password or os.environ.get(ENV_ES_PASSWORD)
            api_key = api_key or os.environ.get(ENV_ES_API_KEY)

        if uri:
            parts = urlsplit(uri)
            if not parts.scheme or not parts.hostname:
                raise ConfigError(
                    f"Invalid connection uri '{uri}'",
                    correlation_id=correlation_id,
                    code="INVALID_URI",
                )
            try:
                port = parts.port
            except ValueError:
                port = -1
            return ConnectionParams(
                host=parts.hostname,
                port=_parse_port(port, correlation_id),
                protocol=_check_protocol(parts.scheme, correlation_id),
                username=username or parts.username,
                password=password or parts.password,
                api_key=api_key,
            )

        return ConnectionParams(
            host=host or "",
            port=_parse_port(self._connection.get_as_string("port"), correlation_id),
            protocol=_check_protocol(
                self._connection.get_as_string_with_default("protocol", DEFAULT_PROTOCOL),
                correlation_id,
            ),
            username=username,
            password=password,
            api_key=api_key,
        )
