"""Public interface of the Shuttle networking layer."""

from .client import HttpClient
from .config import (
    DEFAULT_COOKIE_FILE,
    DEFAULT_TIMEOUT_SECONDS,
    HttpClientConfig,
)
from .errors import (
    ConfigurationError,
    HttpClientError,
    InvalidRequestError,
    RequestTimeoutError,
    TransportError,
)
from .options import HttpAuth, HttpMethod, RequestOptions, TransportOption
from .put_data import PutData
from .query import build_query, create_get_url
from .resolver import OptionResolver
from .response import ResponseModel, ResponseParser
from .transport import (
    RawResponse,
    RequestsTransport,
    TransportAdapter,
    TransportErrorCode,
    TransportFailure,
)

__all__ = [
    "DEFAULT_COOKIE_FILE",
    "DEFAULT_TIMEOUT_SECONDS",
    "ConfigurationError",
    "HttpAuth",
    "HttpClient",
    "HttpClientConfig",
    "HttpClientError",
    "HttpMethod",
    "InvalidRequestError",
    "OptionResolver",
    "PutData",
    "RawResponse",
    "RequestOptions",
    "RequestTimeoutError",
    "RequestsTransport",
    "ResponseModel",
    "ResponseParser",
    "TransportAdapter",
    "TransportError",
    "TransportErrorCode",
    "TransportFailure",
    "TransportOption",
    "build_query",
    "create_get_url",
]
