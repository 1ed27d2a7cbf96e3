"""cURL-style rendering of request/response exchanges.

The verbose trace uses cURL's line prefixes: ``* `` for informational
lines, ``> `` for request headers sent and ``< `` for response headers
received. A bare ``>`` or ``<`` closes a header block.
"""

from __future__ import annotations

from typing import Iterable, Iterator
from urllib.parse import urlsplit

import requests

INFO_PREFIX = "* "
REQUEST_PREFIX = "> "
RESPONSE_PREFIX = "< "

_HTTP_VERSIONS = {9: "0.9", 10: "1.0", 11: "1.1", 20: "2", 30: "3"}


def http_version(response: requests.Response) -> str:
    raw = getattr(response, "raw", None)
    return _HTTP_VERSIONS.get(getattr(raw, "version", 11), "1.1")


def status_line(response: requests.Response) -> str:
    line = f"HTTP/{http_version(response)} {response.status_code}"
    if response.reason:
        line = f"{line} {response.reason}"
    return line


def hops(response: requests.Response) -> list[requests.Response]:
    """Every response of the exchange, redirects first."""
    return [*response.history, response]


def header_block(response: requests.Response) -> str:
    """Render the raw header block of one response, as sent on the wire."""
    lines = [status_line(response)]
    lines.extend(
        f"{name}: {value}" for name, value in response.headers.items()
    )
    return "\r\n".join(lines) + "\r\n\r\n"


def _request_lines(response: requests.Response) -> Iterator[str]:
    request = response.request
    if request is None or request.url is None:
        return
    parts = urlsplit(request.url)
    port = parts.port or (443 if parts.scheme == "https" else 80)
    target = parts.path or "/"
    if parts.query:
        target = f"{target}?{parts.query}"
    yield f"{INFO_PREFIX}Connected to {parts.hostname} port {port}"
    version = http_version(response)
    yield f"{REQUEST_PREFIX}{request.method} {target} HTTP/{version}"
    yield f"{REQUEST_PREFIX}Host: {parts.netloc}"
    for name, value in request.headers.items():
        yield f"{REQUEST_PREFIX}{name}: {value}"
    yield REQUEST_PREFIX.rstrip()


def _response_lines(response: requests.Response) -> Iterator[str]:
    yield f"{RESPONSE_PREFIX}{status_line(response)}"
    for name, value in response.headers.items():
        yield f"{RESPONSE_PREFIX}{name}: {value}"
    yield RESPONSE_PREFIX.rstrip()


def render_trace(
    response: requests.Response, notes: Iterable[str] = ()
) -> str:
    """Render the verbose trace of a completed exchange."""
    lines = [f"{INFO_PREFIX}{note}" for note in notes]
    exchange = hops(response)
    for index, hop in enumerate(exchange):
        lines.extend(_request_lines(hop))
        lines.extend(_response_lines(hop))
        if index + 1 < len(exchange):
            location = hop.headers.get("Location", "")
            lines.append(
                f"{INFO_PREFIX}Issue another request to this URL: '{location}'"
            )
    host = urlsplit(response.url or "").hostname
    lines.append(f"{INFO_PREFIX}Connection to {host} closed")
    return "\n".join(lines) + "\n"
