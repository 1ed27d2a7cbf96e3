"""Response model and parsing of raw transport output."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

from .options import RequestOptions, TransportOption
from .trace import RESPONSE_PREFIX
from .transport import RawResponse

logger = logging.getLogger(__name__)

_STATUS_LINE = re.compile(r"^HTTP/(\d(?:\.\d)?)\s+(\d{3})(?:\s+(.*))?$")
_BLOCK_END = re.compile(r"\r?\n\r?\n")


@dataclass(frozen=True)
class ResponseModel:
    """Normalized result of one HTTP transaction."""

    status_code: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)
    debug_trace: str | None = None
    url: str = ""

    def __str__(self) -> str:
        return self.body


def parse_header_block(lines: Iterable[str]) -> dict[str, str]:
    """Parse a status line plus ``Name: value`` lines into a header map.

    The status line contributes the ``Http-Version``, ``Status-Code`` and
    ``Status`` pseudo-headers. Later duplicates of a header win.
    """
    headers: dict[str, str] = {}
    for line in lines:
        line = line.rstrip("\r")
        if not line:
            continue
        status = _STATUS_LINE.match(line)
        if status is not None:
            version, code, reason = status.groups()
            headers["Http-Version"] = version
            headers["Status-Code"] = code
            headers["Status"] = f"{code} {reason}" if reason else code
            continue
        name, sep, value = line.partition(":")
        if sep:
            headers[name.strip()] = value.strip()
    return headers


def split_header_blocks(payload: str) -> tuple[str | None, str]:
    """Strip leading header blocks from ``payload``.

    Redirects and interim ``100 Continue`` responses each contribute a
    block; the last one describes the final response.

    Returns:
        The last header block (``None`` if there was none) and the body.
    """
    last_block = None
    while _STATUS_LINE.match(payload.split("\n", 1)[0].rstrip("\r")):
        end = _BLOCK_END.search(payload)
        if end is None:
            return payload, ""
        last_block = payload[: end.start()]
        payload = payload[end.end() :]
    return last_block, payload


def headers_from_trace(trace: str) -> dict[str, str]:
    """Parse the final response header block out of a verbose trace."""
    block: list[str] = []
    for line in trace.splitlines():
        if not line.startswith(RESPONSE_PREFIX):
            continue
        content = line[len(RESPONSE_PREFIX) :]
        if _STATUS_LINE.match(content):
            block = []
        block.append(content)
    return parse_header_block(block)


def decode_body(body: bytes, charset: str | None) -> str:
    """Decode ``body`` with ``charset``, falling back to UTF-8.

    Undecodable bytes become U+FFFD rather than raising.
    """
    if charset:
        try:
            return body.decode(charset, errors="replace")
        except LookupError:
            logger.debug("Unknown charset %r, decoding as utf-8", charset)
    return body.decode("utf-8", errors="replace")


class ResponseParser:
    """Convert raw transport output into a ResponseModel."""

    def parse(
        self, raw: RawResponse, options: RequestOptions
    ) -> ResponseModel:
        body = raw.body
        headers: dict[str, str] = {}

        if options.get(TransportOption.HEADER, False):
            # Header blocks are latin-1 on the wire; the body may not be.
            block, rest = split_header_blocks(body.decode("latin-1"))
            body = rest.encode("latin-1")
            if block is not None:
                headers = parse_header_block(block.splitlines())
        elif options.capture_headers:
            if raw.verbose:
                headers = headers_from_trace(raw.verbose)
            else:
                # Transports without a verbose stream report headers directly
                headers = dict(raw.headers)

        return ResponseModel(
            status_code=raw.status_code,
            body=decode_body(body, raw.encoding),
            headers=headers,
            debug_trace=raw.verbose if options.debug else None,
            url=raw.url,
        )
