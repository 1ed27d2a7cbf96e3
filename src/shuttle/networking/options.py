"""Transport options and the resolved per-request option set.

Raw transport tuning is expressed through the closed ``TransportOption``
enumeration. Caller-supplied names are normalized case-insensitively, with
an optional ``CURLOPT_`` prefix and ``_``/``-`` separators ignored, so
``"timeout"``, ``"CURLOPT_TIMEOUT"`` and ``"Timeout"`` all name
``TransportOption.TIMEOUT``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping
from urllib.parse import urlsplit

from .errors import ConfigurationError
from .put_data import PutData


class HttpMethod(str, Enum):
    """Request methods with dedicated wiring."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"


class HttpAuth(str, Enum):
    """HTTP authentication schemes understood by the transport."""

    NONE = "none"
    BASIC = "basic"


class TransportOption(str, Enum):
    """Closed set of transport options a request can carry."""

    TIMEOUT = "timeout"
    CONNECT_TIMEOUT = "connect_timeout"
    FOLLOW_LOCATION = "follow_location"
    MAX_REDIRECTS = "max_redirects"
    SSL_VERIFY_PEER = "ssl_verify_peer"
    SSL_VERIFY_HOST = "ssl_verify_host"
    CA_INFO = "ca_info"
    PORT = "port"
    USER_AGENT = "user_agent"
    REFERER = "referer"
    COOKIE_FILE = "cookie_file"
    COOKIE_JAR = "cookie_jar"
    HTTP_AUTH = "http_auth"
    USERPWD = "userpwd"
    PROXY = "proxy"
    CUSTOM_REQUEST = "custom_request"
    NOBODY = "nobody"
    HEADER = "header"
    VERBOSE = "verbose"


def _compact(name: str) -> str:
    compact = name.strip().upper()
    if compact.startswith("CURLOPT_"):
        compact = compact[len("CURLOPT_") :]
    return compact.replace("_", "").replace("-", "")


_OPTION_ALIASES: dict[str, TransportOption] = {
    _compact(option.value): option for option in TransportOption
}
_OPTION_ALIASES.update(
    {
        "MAXREDIRS": TransportOption.MAX_REDIRECTS,
        "CAFILE": TransportOption.CA_INFO,
    }
)


def normalize_option_name(name: str | TransportOption) -> TransportOption:
    """Map a caller-supplied option name onto a ``TransportOption``.

    Raises:
        ConfigurationError: If the name does not denote a supported option.
    """
    if isinstance(name, TransportOption):
        return name
    if not isinstance(name, str):
        raise ConfigurationError(
            "transport option names must be strings, got "
            f"{type(name).__name__}"
        )
    try:
        return _OPTION_ALIASES[_compact(name)]
    except KeyError:
        raise ConfigurationError(
            f"unknown transport option: {name!r}"
        ) from None


def _as_flag(option: TransportOption, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1, 2):
        # cURL uses 2 for "verify host", treat any non-zero level as on
        return value != 0
    raise ConfigurationError(f"{option.name} expects a boolean, got {value!r}")


def _as_seconds(option: TransportOption, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(
            f"{option.name} expects seconds, got {value!r}"
        )
    if value <= 0:
        raise ConfigurationError(f"{option.name} must be > 0, got {value!r}")
    return value


def _as_redirect_limit(option: TransportOption, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(
            f"{option.name} expects a non-negative integer, got {value!r}"
        )
    return value


def _as_port(option: TransportOption, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            f"{option.name} expects an integer, got {value!r}"
        )
    if not 0 < value < 65536:
        raise ConfigurationError(f"{option.name} out of range: {value!r}")
    return value


def _as_text(option: TransportOption, value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise ConfigurationError(f"{option.name} expects a string, got {value!r}")


def _as_path(option: TransportOption, value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (str, os.PathLike)):
        return os.fspath(value)
    raise ConfigurationError(f"{option.name} expects a path, got {value!r}")


def _as_method(option: TransportOption, value: Any) -> str | None:
    text = _as_text(option, value)
    return text.upper() if text else None


def _as_auth(option: TransportOption, value: Any) -> HttpAuth:
    if value is False or value is None:
        return HttpAuth.NONE
    try:
        return HttpAuth(value.lower() if isinstance(value, str) else value)
    except ValueError:
        raise ConfigurationError(
            f"{option.name} expects one of "
            f"{[auth.value for auth in HttpAuth]}, got {value!r}"
        ) from None


_COERCERS: dict[TransportOption, Callable[[TransportOption, Any], Any]] = {
    TransportOption.TIMEOUT: _as_seconds,
    TransportOption.CONNECT_TIMEOUT: _as_seconds,
    TransportOption.FOLLOW_LOCATION: _as_flag,
    TransportOption.MAX_REDIRECTS: _as_redirect_limit,
    TransportOption.SSL_VERIFY_PEER: _as_flag,
    TransportOption.SSL_VERIFY_HOST: _as_flag,
    TransportOption.CA_INFO: _as_path,
    TransportOption.PORT: _as_port,
    TransportOption.USER_AGENT: _as_text,
    TransportOption.REFERER: _as_text,
    TransportOption.COOKIE_FILE: _as_path,
    TransportOption.COOKIE_JAR: _as_path,
    TransportOption.HTTP_AUTH: _as_auth,
    TransportOption.USERPWD: _as_text,
    TransportOption.PROXY: _as_text,
    TransportOption.CUSTOM_REQUEST: _as_method,
    TransportOption.NOBODY: _as_flag,
    TransportOption.HEADER: _as_flag,
    TransportOption.VERBOSE: _as_flag,
}


def coerce_option_value(option: TransportOption, value: Any) -> Any:
    """Validate ``value`` for ``option`` and return its canonical form.

    Raises:
        ConfigurationError: If the value has the wrong shape for the option.
    """
    return _COERCERS[option](option, value)


def normalize_options(
    options: Mapping[str | TransportOption, Any],
) -> dict[TransportOption, Any]:
    """Normalize a raw option mapping, validating every key and value."""
    normalized: dict[TransportOption, Any] = {}
    for name, value in options.items():
        option = normalize_option_name(name)
        normalized[option] = coerce_option_value(option, value)
    return normalized


def _frozen(mapping: Mapping[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class RequestOptions:
    """Resolved, validated parameters for one HTTP transaction.

    Instances are produced by ``OptionResolver`` and are immutable; mapping
    fields are frozen copies.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    transport_options: Mapping[TransportOption, Any] = field(
        default_factory=dict
    )
    query_string: str | None = None
    post_body: str | None = None
    put_body: PutData | None = None
    debug: bool = False
    capture_headers: bool = False
    owns_put_body: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", _frozen(self.headers))
        object.__setattr__(
            self, "transport_options", _frozen(self.transport_options)
        )

    @property
    def scheme(self) -> str:
        return urlsplit(self.url).scheme.lower()

    @property
    def host(self) -> str | None:
        return urlsplit(self.url).hostname

    @property
    def port(self) -> int | None:
        """Port the request targets: explicit, option-provided or default."""
        explicit = urlsplit(self.url).port
        if explicit is not None:
            return explicit
        option_port = self.transport_options.get(TransportOption.PORT)
        if option_port is not None:
            return option_port
        return {"http": 80, "https": 443}.get(self.scheme)

    def get(self, option: TransportOption, default: Any = None) -> Any:
        """Return the resolved value of a transport option."""
        return self.transport_options.get(option, default)

    def close(self) -> None:
        """Release stream resources created while resolving this request."""
        if self.owns_put_body and self.put_body is not None:
            self.put_body.close()
