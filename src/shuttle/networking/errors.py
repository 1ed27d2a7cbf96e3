"""Error types raised by the Shuttle networking layer."""

from __future__ import annotations


class HttpClientError(Exception):
    """Base class for all HttpClient errors."""


class InvalidRequestError(HttpClientError, ValueError):
    """Raised when a request's method and body do not agree."""


class ConfigurationError(HttpClientError, ValueError):
    """Raised for raw transport options that cannot be mapped or applied."""


class TransportError(HttpClientError):
    """Raised when the transport could not complete the transaction.

    Carries the transport's diagnostic message and numeric code verbatim.
    """

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message, code)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return f"{self.message} (code {self.code})"


class RequestTimeoutError(TransportError):
    """Raised when the transport gave up waiting for the server."""
