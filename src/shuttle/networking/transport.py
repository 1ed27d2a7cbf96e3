"""Transport adapters that execute resolved requests against the network.

The client depends only on the ``TransportAdapter`` protocol. The shipped
``RequestsTransport`` performs each transaction with a fresh
``requests.Session`` and reports failures with cURL's error numbering so
callers see the same codes regardless of the networking backend.
"""

from __future__ import annotations

import logging
import os
import socket
from dataclasses import dataclass, field
from enum import IntEnum
from http.cookiejar import LoadError, MozillaCookieJar
from typing import Any, Mapping, Protocol
from urllib.parse import urlsplit, urlunsplit

import requests
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase, HTTPBasicAuth
from urllib3.exceptions import NameResolutionError

from .options import HttpAuth, RequestOptions, TransportOption
from .trace import header_block, hops, render_trace
from .types import Err, Ok, Result

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


class TransportErrorCode(IntEnum):
    """Failure codes, numbered as cURL numbers them."""

    UNSUPPORTED_PROTOCOL = 1
    URL_MALFORMAT = 3
    COULDNT_RESOLVE_PROXY = 5
    COULDNT_RESOLVE_HOST = 6
    COULDNT_CONNECT = 7
    WRITE_ERROR = 23
    READ_ERROR = 26
    OPERATION_TIMEDOUT = 28
    SSL_CONNECT_ERROR = 35
    TOO_MANY_REDIRECTS = 47
    RECV_ERROR = 56
    PEER_FAILED_VERIFICATION = 60


@dataclass(frozen=True)
class TransportFailure:
    """Diagnostic for a transaction the transport could not complete."""

    message: str
    code: int


@dataclass(frozen=True)
class RawResponse:
    """Unparsed transport output for one transaction."""

    body: bytes
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    reason: str = ""
    url: str = ""
    encoding: str | None = None
    verbose: str | None = None


class TransportAdapter(Protocol):
    """Executes fully-resolved requests."""

    def execute(
        self, options: RequestOptions
    ) -> Result[RawResponse, TransportFailure]:
        """Perform one transaction.

        Implementations must release every network resource they acquire
        before returning, on success and on failure alike.
        """
        ...


class _NoAuth(AuthBase):
    """Auth that adds nothing; stops requests from consulting ``.netrc``."""

    def __call__(
        self, request: requests.PreparedRequest
    ) -> requests.PreparedRequest:
        return request


class _HostnameUncheckedAdapter(HTTPAdapter):
    """Verifies the peer certificate chain but not the hostname."""

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        kwargs["assert_hostname"] = False
        super().init_poolmanager(*args, **kwargs)


def _apply_port(url: str, port: int | None) -> str:
    """Return ``url`` addressed to ``port`` when it differs from the URL."""
    if port is None:
        return url
    parts = urlsplit(url)
    if parts.port == port:
        return url
    if parts.port is None and _DEFAULT_PORTS.get(parts.scheme) == port:
        return url
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    userinfo, _, _ = parts.netloc.rpartition("@")
    netloc = f"{host}:{port}"
    if userinfo:
        netloc = f"{userinfo}@{netloc}"
    return urlunsplit(parts._replace(netloc=netloc))


def content_charset(content_type: str | None) -> str | None:
    """Return the ``charset`` parameter of a Content-Type header, if any."""
    if not content_type:
        return None
    for part in content_type.split(";")[1:]:
        name, _, value = part.partition("=")
        if name.strip().lower() == "charset":
            return value.strip().strip("\"'") or None
    return None


def _caused_by(
    error: BaseException, kinds: tuple[type[BaseException], ...]
) -> bool:
    """Return True when ``error`` or anything it wraps is one of ``kinds``."""
    seen: set[int] = set()
    pending: list[Any] = [error]
    while pending:
        current = pending.pop()
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, kinds):
            return True
        pending.extend(current.args)
        pending.append(getattr(current, "reason", None))
        pending.extend((current.__cause__, current.__context__))
    return False


class RequestsTransport:
    """TransportAdapter backed by ``requests``."""

    def execute(
        self, options: RequestOptions
    ) -> Result[RawResponse, TransportFailure]:
        method = options.get(TransportOption.CUSTOM_REQUEST) or options.method
        url = _apply_port(options.url, options.get(TransportOption.PORT))
        timeout = self._get_timeout(options)
        nobody = bool(options.get(TransportOption.NOBODY, False))

        with requests.Session() as session:
            failure = self._prepare_session(session, options)
            if failure is not None:
                meta = self._build_meta(
                    method, url, None, timeout, "LoadError"
                )
                return Err(failure, meta=meta)
            try:
                response = session.request(
                    method,
                    url,
                    headers=self._build_headers(options),
                    data=self._build_body(options),
                    auth=self._build_auth(options),
                    timeout=timeout,
                    allow_redirects=bool(
                        options.get(TransportOption.FOLLOW_LOCATION, True)
                    ),
                    verify=self._get_verify(options),
                    stream=nobody,
                )
                if nobody:
                    response.close()
                    content = b""
                else:
                    content = response.content
            except requests.exceptions.RequestException as exc:
                return Err(
                    self._map_exception(exc, url),
                    meta=self._build_meta(
                        method, url, exc.response, timeout, type(exc).__name__
                    ),
                )

            failure = self._save_cookies(session, options)
            if failure is not None:
                meta = self._build_meta(
                    method, url, response, timeout, "OSError"
                )
                return Err(failure, meta=meta)

        if options.get(TransportOption.HEADER, False):
            blocks = "".join(header_block(hop) for hop in hops(response))
            content = blocks.encode("latin-1", errors="replace") + content

        verbose = None
        if options.get(TransportOption.VERBOSE, False):
            verbose = render_trace(response, notes=[f"Trying {method} {url}"])

        return Ok(
            RawResponse(
                body=content,
                status_code=response.status_code,
                headers=dict(response.headers),
                reason=response.reason or "",
                url=response.url or url,
                encoding=content_charset(response.headers.get("Content-Type")),
                verbose=verbose,
            ),
            meta=self._build_meta(method, url, response, timeout),
        )

    @staticmethod
    def _get_timeout(
        options: RequestOptions,
    ) -> float | tuple[float, float] | None:
        """Resolve the (connect, read) timeout pair or a single timeout."""
        timeout = options.get(TransportOption.TIMEOUT)
        connect_timeout = options.get(TransportOption.CONNECT_TIMEOUT)
        if connect_timeout is not None:
            return (connect_timeout, timeout)
        return timeout

    @staticmethod
    def _get_verify(options: RequestOptions) -> bool | str:
        if not options.get(TransportOption.SSL_VERIFY_PEER, True):
            return False
        return options.get(TransportOption.CA_INFO) or True

    @staticmethod
    def _build_headers(options: RequestOptions) -> dict[str, str]:
        headers: dict[str, str] = {}
        user_agent = options.get(TransportOption.USER_AGENT)
        if user_agent is not None:
            headers["User-Agent"] = user_agent
        referer = options.get(TransportOption.REFERER)
        if referer:
            headers["Referer"] = referer
        headers.update(options.headers)
        if options.post_body is not None:
            headers.setdefault(
                "Content-Type", "application/x-www-form-urlencoded"
            )
        if options.put_body is not None:
            headers["Content-Length"] = str(options.put_body.size)
        return headers

    @staticmethod
    def _build_body(options: RequestOptions) -> Any:
        if options.post_body is not None:
            return options.post_body
        if options.put_body is not None:
            return options.put_body.stream
        return None

    @staticmethod
    def _build_auth(options: RequestOptions) -> AuthBase:
        userpwd = options.get(TransportOption.USERPWD)
        basic = options.get(TransportOption.HTTP_AUTH) == HttpAuth.BASIC
        if basic and userpwd:
            username, _, password = userpwd.partition(":")
            return HTTPBasicAuth(username, password)
        return _NoAuth()

    def _prepare_session(
        self, session: requests.Session, options: RequestOptions
    ) -> TransportFailure | None:
        max_redirects = options.get(TransportOption.MAX_REDIRECTS)
        if max_redirects is not None:
            session.max_redirects = max_redirects
        proxy = options.get(TransportOption.PROXY)
        if proxy:
            session.proxies = {"http": proxy, "https": proxy}
        verify_peer = options.get(TransportOption.SSL_VERIFY_PEER, True)
        verify_host = options.get(TransportOption.SSL_VERIFY_HOST, True)
        if verify_peer and not verify_host:
            session.mount("https://", _HostnameUncheckedAdapter())

        cookie_file = options.get(TransportOption.COOKIE_FILE)
        if cookie_file and os.path.exists(cookie_file):
            jar = MozillaCookieJar(cookie_file)
            try:
                jar.load(ignore_discard=True, ignore_expires=True)
            except (LoadError, OSError) as exc:
                return TransportFailure(
                    f"Failed to read cookie file {cookie_file}: {exc}",
                    TransportErrorCode.READ_ERROR,
                )
            session.cookies.update(jar)
            logger.debug("Loaded %d cookies from %s", len(jar), cookie_file)
        return None

    @staticmethod
    def _save_cookies(
        session: requests.Session, options: RequestOptions
    ) -> TransportFailure | None:
        cookie_jar = options.get(TransportOption.COOKIE_JAR)
        if not cookie_jar:
            return None
        jar = MozillaCookieJar(cookie_jar)
        for cookie in session.cookies:
            jar.set_cookie(cookie)
        try:
            jar.save(ignore_discard=True, ignore_expires=True)
        except OSError as exc:
            return TransportFailure(
                f"Failed to write cookie file {cookie_jar}: {exc}",
                TransportErrorCode.WRITE_ERROR,
            )
        logger.debug("Saved %d cookies to %s", len(jar), cookie_jar)
        return None

    @staticmethod
    def _map_exception(
        error: requests.exceptions.RequestException, url: str
    ) -> TransportFailure:
        """Map requests exceptions to cURL-numbered failures."""
        host = urlsplit(url).hostname or url
        exc = requests.exceptions
        resolution = (NameResolutionError, socket.gaierror)

        if isinstance(error, exc.SSLError):
            if "CERTIFICATE_VERIFY_FAILED" in str(error):
                return TransportFailure(
                    "SSL peer certificate or SSH remote key was not OK: "
                    f"{error}",
                    TransportErrorCode.PEER_FAILED_VERIFICATION,
                )
            return TransportFailure(
                f"SSL connect error: {error}",
                TransportErrorCode.SSL_CONNECT_ERROR,
            )
        if isinstance(error, exc.ProxyError):
            if _caused_by(error, resolution):
                return TransportFailure(
                    f"Could not resolve proxy: {error}",
                    TransportErrorCode.COULDNT_RESOLVE_PROXY,
                )
            return TransportFailure(
                f"Failed to connect to proxy: {error}",
                TransportErrorCode.COULDNT_CONNECT,
            )
        if isinstance(error, exc.Timeout):
            return TransportFailure(
                f"Operation timed out: {error}",
                TransportErrorCode.OPERATION_TIMEDOUT,
            )
        if isinstance(error, exc.ConnectionError):
            if _caused_by(error, resolution):
                return TransportFailure(
                    f"Could not resolve host: {host}",
                    TransportErrorCode.COULDNT_RESOLVE_HOST,
                )
            return TransportFailure(
                f"Failed to connect to {host}: {error}",
                TransportErrorCode.COULDNT_CONNECT,
            )
        if isinstance(error, exc.TooManyRedirects):
            return TransportFailure(
                f"Maximum redirects followed: {error}",
                TransportErrorCode.TOO_MANY_REDIRECTS,
            )
        if isinstance(error, exc.InvalidSchema):
            return TransportFailure(
                f"Protocol not supported: {error}",
                TransportErrorCode.UNSUPPORTED_PROTOCOL,
            )
        if isinstance(error, (exc.MissingSchema, exc.InvalidURL)):
            return TransportFailure(
                f"URL using bad/illegal format or missing URL: {error}",
                TransportErrorCode.URL_MALFORMAT,
            )
        # Generic fallback for other request exceptions
        return TransportFailure(
            f"Failure when receiving data from the peer: {error}",
            TransportErrorCode.RECV_ERROR,
        )

    @staticmethod
    def _build_meta(
        method: str,
        request_url: str,
        response: requests.Response | None,
        timeout: float | tuple[float, float] | None,
        final_error: str | None = None,
    ) -> dict[str, Any]:
        """Construct metadata dictionary from the response."""
        meta: dict[str, Any] = {}
        meta["method"] = method
        meta["url"] = request_url
        meta["timeout_s"] = timeout

        if response is not None:
            meta["status_code"] = response.status_code
            meta["url"] = response.url or request_url
            meta["reason"] = response.reason
            meta["redirect_count"] = len(response.history)
            try:
                meta["elapsed_s"] = response.elapsed.total_seconds()
            except AttributeError:
                pass  # elapsed is missing on hand-built responses
        if final_error is not None:
            meta["final_error"] = final_error

        return meta
