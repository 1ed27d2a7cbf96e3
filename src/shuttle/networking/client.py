"""Synchronous HTTP client interface for the Shuttle networking layer.

This module defines the public facade used by application code. Each call
runs the same linear pipeline: resolve options from the client
configuration, execute them through the transport, and parse the raw
result into a ``ResponseModel``.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping

from .config import CookieFileSetting, HttpClientConfig
from .errors import RequestTimeoutError, TransportError
from .options import (
    TransportOption,
    coerce_option_value,
    normalize_option_name,
)
from .query import QueryVars
from .resolver import OptionResolver, PutPayload
from .response import ResponseModel, ResponseParser
from .transport import (
    RequestsTransport,
    TransportAdapter,
    TransportErrorCode,
    TransportFailure,
)
from .user_agent import compose_user_agent

logger = logging.getLogger(__name__)


class HttpClient:
    """Core HTTP client interface (sync).

    Client-level settings (headers, cookie file, referer, user agent,
    redirect policy, SSL policy, credentials and raw transport options)
    apply to every request made through the client. Verb methods return a
    ``ResponseModel``; failures raise ``InvalidRequestError`` or
    ``TransportError``.
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        *,
        transport: TransportAdapter | None = None,
        resolver: OptionResolver | None = None,
        parser: ResponseParser | None = None,
    ) -> None:
        """Create a new HttpClient.

        Args:
            config: Client-level settings. A User-Agent is composed from the
                environment when the config does not carry one.
            transport: Adapter that performs the network exchange; defaults
                to ``RequestsTransport``.
            resolver: Option resolver; mostly useful to tests.
            parser: Response parser; mostly useful to tests.
        """
        config = config or HttpClientConfig()
        if config.user_agent is None:
            config = replace(config, user_agent=compose_user_agent())
        self._config = config
        self._transport = transport or RequestsTransport()
        self._resolver = resolver or OptionResolver()
        self._parser = parser or ResponseParser()
        self._last_info: Mapping[str, Any] = {}

    @property
    def config(self) -> HttpClientConfig:
        """Current configuration snapshot."""
        return self._config

    def _update(self, **changes: Any) -> None:
        self._config = replace(self._config, **changes)

    def get_user_agent(self) -> str | None:
        return self._config.user_agent

    def set_user_agent(self, user_agent: str) -> None:
        self._update(user_agent=user_agent)

    def get_referer(self) -> str | None:
        return self._config.referer

    def set_referer(self, referer: str | None) -> None:
        self._update(referer=referer)

    def get_headers(self) -> dict[str, str]:
        return dict(self._config.default_headers)

    def set_headers(self, headers: Mapping[str, str]) -> None:
        """Replace all client-level headers."""
        self._update(default_headers=headers)

    def set_header(self, name: str, value: str) -> None:
        """Set one client-level header, replacing any previous value."""
        headers = dict(self._config.default_headers)
        headers[name] = value
        self._update(default_headers=headers)

    def get_options(self) -> dict[TransportOption, Any]:
        return dict(self._config.raw_options)

    def set_options(
        self, options: Mapping[str | TransportOption, Any]
    ) -> None:
        """Set several raw transport options; existing ones are kept."""
        raw_options = dict(self._config.raw_options)
        for name, value in options.items():
            option = normalize_option_name(name)
            raw_options[option] = coerce_option_value(option, value)
        self._update(raw_options=raw_options)

    def set_option(self, name: str | TransportOption, value: Any) -> None:
        """Set a raw transport option.

        Raw options are applied after every structured setting and so take
        precedence over them.

        Raises:
            ConfigurationError: If the name or value cannot be mapped.
        """
        self.set_options({name: value})

    def get_follow_redirects(self) -> bool:
        return self._config.follow_redirects

    def set_follow_redirects(self, follow_redirects: bool) -> None:
        self._update(follow_redirects=follow_redirects)

    def get_cookie_file(self) -> str | None:
        return self._config.cookie_file  # type: ignore[return-value]

    def set_cookie_file(self, cookie_file: CookieFileSetting = None) -> None:
        """Set the file cookies are read from and written to.

        Args:
            cookie_file: A path, ``True`` for the default location next to
                this package, or a falsy value to disable the cookie file.
        """
        self._update(cookie_file=cookie_file)

    def get_validate_ssl(self) -> bool:
        return self._config.validate_ssl

    def set_validate_ssl(self, validate_ssl: bool) -> None:
        self._update(validate_ssl=validate_ssl)

    def set_auth(
        self, username: str | None, password: str | None = None
    ) -> HttpClient:
        """Set HTTP basic auth credentials.

        Passing ``None`` or ``"none"`` as the username clears them, which
        disables HTTP auth for subsequent requests.
        """
        self._update(credentials=(username, password))
        return self

    def get_request_info(self) -> dict[str, Any]:
        """Return transport metadata of the most recent transaction."""
        return dict(self._last_info)

    def get(self, url: str, vars: QueryVars = None) -> ResponseModel:
        """Perform an HTTP GET request.

        Args:
            url: Absolute URL to request.
            vars: Query variables, as a mapping or a pre-encoded string.

        Returns:
            The parsed response.
        """
        return self.request("GET", url, query_vars=vars)

    def head(self, url: str, vars: QueryVars = None) -> ResponseModel:
        """Perform an HTTP HEAD request; the response body is empty."""
        return self.request("HEAD", url, query_vars=vars)

    def delete(self, url: str, vars: QueryVars = None) -> ResponseModel:
        """Perform an HTTP DELETE request with optional query variables."""
        return self.request("DELETE", url, query_vars=vars)

    def post(self, url: str, vars: QueryVars) -> ResponseModel:
        """Perform an HTTP POST request.

        Args:
            url: Absolute URL to request.
            vars: Form body, as a mapping or a pre-encoded string. Required.

        Raises:
            InvalidRequestError: If ``vars`` is empty.
        """
        return self.request("POST", url, post_vars=vars)

    def put(
        self, url: str, put_data: PutPayload, vars: QueryVars = None
    ) -> ResponseModel:
        """Perform an HTTP PUT request.

        Args:
            url: Absolute URL to request.
            put_data: Upload body: a string or bytes, a mapping (form
                encoded), a binary file object or a ``PutData``. Required.
            vars: Query variables appended to the URL.
        """
        return self.request("PUT", url, put_data=put_data, query_vars=vars)

    def request(
        self,
        method: str,
        url: str,
        post_vars: QueryVars = None,
        put_data: PutPayload = None,
        *,
        query_vars: QueryVars = None,
    ) -> ResponseModel:
        """Perform an HTTP request of any method.

        Args:
            method: HTTP method, case-insensitive.
            url: Absolute URL to request.
            post_vars: POST body; required for, and only allowed with, POST.
            put_data: PUT body; required for, and only allowed with, PUT.
            query_vars: Query variables appended to the URL.

        Returns:
            The parsed response; 4xx and 5xx statuses are responses too.

        Raises:
            InvalidRequestError: If the body does not match the method.
            TransportError: If the transport could not complete the request.
        """
        options = self._resolver.resolve(
            method, url, query_vars, post_vars, put_data, self._config
        )
        try:
            logger.debug("Dispatching %s %s", options.method, options.url)
            result = self._transport.execute(options)
            self._last_info = dict(result.meta)
            if not result.ok:
                raise self._to_error(result.error)
            response = self._parser.parse(result.value, options)
        finally:
            options.close()
        logger.debug(
            "Completed %s %s with status %d",
            options.method,
            options.url,
            response.status_code,
        )
        return response

    @staticmethod
    def _to_error(failure: TransportFailure) -> TransportError:
        """Map a transport failure to the error raised to callers."""
        if failure.code == TransportErrorCode.OPERATION_TIMEDOUT:
            return RequestTimeoutError(failure.message, failure.code)
        return TransportError(failure.message, failure.code)
