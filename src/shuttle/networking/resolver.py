"""Resolution of client settings and call arguments into RequestOptions."""

from __future__ import annotations

from typing import Any, BinaryIO, Mapping, Union
from urllib.parse import urlsplit

import certifi

from .config import HttpClientConfig
from .errors import InvalidRequestError, TransportError
from .options import (
    HttpAuth,
    HttpMethod,
    RequestOptions,
    TransportOption,
)
from .put_data import PutData
from .query import QueryVars, build_query, create_get_url, encode_vars
from .transport import TransportErrorCode

PutPayload = Union[
    PutData, BinaryIO, str, bytes, Mapping[str, Any], None
]

_BODYLESS_METHODS = frozenset(
    {HttpMethod.HEAD.value, HttpMethod.OPTIONS.value}
)
_NATIVE_METHODS = frozenset(
    {
        HttpMethod.GET.value,
        HttpMethod.HEAD.value,
        HttpMethod.POST.value,
        HttpMethod.PUT.value,
    }
)


class OptionResolver:
    """Turn a logical request description into validated RequestOptions.

    Structured settings from the config are applied first, then the
    config's raw transport options, which may override any of them.
    """

    def resolve(
        self,
        method: str,
        url: str,
        query_vars: QueryVars,
        post_vars: QueryVars,
        put_data: PutPayload,
        config: HttpClientConfig,
    ) -> RequestOptions:
        """Build the RequestOptions for one call.

        Raises:
            InvalidRequestError: If the body does not match the method.
            TransportError: If the URL cannot be parsed (code 3).
        """
        method = method.upper()
        query_string = encode_vars(query_vars)
        request_url = create_get_url(url, query_string)
        self._check_url(request_url)
        post_body = self._post_body(method, post_vars)
        put_body, owns_put_body = self._put_body(method, put_data)

        transport_options: dict[TransportOption, Any] = {}
        self._apply_method(transport_options, method)
        self._apply_ssl(transport_options, request_url, config)
        self._apply_defaults(transport_options, config)
        self._apply_auth(transport_options, config)
        transport_options.update(config.raw_options)

        return RequestOptions(
            method=method,
            url=request_url,
            headers=config.default_headers,
            transport_options=transport_options,
            query_string=query_string,
            post_body=post_body,
            put_body=put_body,
            debug=config.debug,
            capture_headers=config.capture_headers,
            owns_put_body=owns_put_body,
        )

    @staticmethod
    def _check_url(url: str) -> None:
        try:
            urlsplit(url).port
        except ValueError as exc:
            raise TransportError(
                f"URL using bad/illegal format or missing URL: {exc}",
                TransportErrorCode.URL_MALFORMAT,
            ) from exc

    @staticmethod
    def _post_body(method: str, post_vars: QueryVars) -> str | None:
        body = encode_vars(post_vars)
        if body:
            if method != HttpMethod.POST.value:
                raise InvalidRequestError("POST vars not allowed")
            return body
        if method == HttpMethod.POST.value:
            raise InvalidRequestError("POST vars required")
        return None

    @staticmethod
    def _put_body(
        method: str, put_data: PutPayload
    ) -> tuple[PutData | None, bool]:
        if put_data is None:
            if method == HttpMethod.PUT.value:
                raise InvalidRequestError("PUT data required")
            return None, False
        if method != HttpMethod.PUT.value:
            raise InvalidRequestError("PUT data not allowed")
        if isinstance(put_data, PutData):
            return put_data, False
        if isinstance(put_data, Mapping):
            return PutData.from_string(build_query(put_data)), True
        if isinstance(put_data, (str, bytes)):
            return PutData.from_string(put_data), True
        # Caller-provided file object; the caller keeps ownership.
        return PutData(put_data), False

    @staticmethod
    def _apply_method(
        options: dict[TransportOption, Any], method: str
    ) -> None:
        if method in _BODYLESS_METHODS:
            options[TransportOption.NOBODY] = True
        if method not in _NATIVE_METHODS:
            options[TransportOption.CUSTOM_REQUEST] = method

    @staticmethod
    def _apply_ssl(
        options: dict[TransportOption, Any],
        url: str,
        config: HttpClientConfig,
    ) -> None:
        parts = urlsplit(url)
        if parts.scheme.lower() != "https":
            return
        options[TransportOption.PORT] = parts.port or 443
        if config.validate_ssl:
            options[TransportOption.SSL_VERIFY_PEER] = True
            options[TransportOption.SSL_VERIFY_HOST] = True
            options[TransportOption.CA_INFO] = (
                config.ca_bundle or certifi.where()
            )
        else:
            options[TransportOption.SSL_VERIFY_PEER] = False
            options[TransportOption.SSL_VERIFY_HOST] = False

    @staticmethod
    def _apply_defaults(
        options: dict[TransportOption, Any], config: HttpClientConfig
    ) -> None:
        options[TransportOption.HEADER] = config.headers_in_body
        options[TransportOption.TIMEOUT] = config.timeout_seconds
        options[TransportOption.USER_AGENT] = config.user_agent
        options[TransportOption.FOLLOW_LOCATION] = config.follow_redirects
        options[TransportOption.VERBOSE] = config.debug or (
            config.capture_headers and not config.headers_in_body
        )
        if config.cookie_file:
            options[TransportOption.COOKIE_FILE] = config.cookie_file
            options[TransportOption.COOKIE_JAR] = config.cookie_file
        if config.referer:
            options[TransportOption.REFERER] = config.referer

    @staticmethod
    def _apply_auth(
        options: dict[TransportOption, Any], config: HttpClientConfig
    ) -> None:
        if config.credentials is None:
            options[TransportOption.HTTP_AUTH] = HttpAuth.NONE
            return
        username, password = config.credentials
        options[TransportOption.HTTP_AUTH] = HttpAuth.BASIC
        options[TransportOption.USERPWD] = f"{username}:{password or ''}"
