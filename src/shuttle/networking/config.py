"""Configuration models for the HttpClient interface."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Union

from .options import TransportOption, normalize_options

DEFAULT_TIMEOUT_SECONDS = 30.0

# Cookie file used when ``cookie_file=True``.
DEFAULT_COOKIE_FILE = str(Path(__file__).with_name("shuttle_cookie.txt"))

CookieFileSetting = Union[str, os.PathLike, bool, None]


def _default_headers() -> Mapping[str, str]:
    """Return immutable empty default headers mapping."""

    return MappingProxyType({})


def _default_raw_options() -> Mapping[TransportOption, Any]:
    return MappingProxyType({})


def resolve_cookie_file(cookie_file: CookieFileSetting) -> str | None:
    """Map a cookie file setting onto a concrete path or ``None``.

    ``True`` selects the default location next to this module; ``False``,
    ``None`` and the empty string disable the cookie file.
    """
    if cookie_file is True:
        return DEFAULT_COOKIE_FILE
    if not cookie_file:
        return None
    return os.fspath(cookie_file)


@dataclass(frozen=True)
class HttpClientConfig:
    """Configuration for HttpClient behavior.

    A config is an immutable snapshot; ``HttpClient`` setters replace it
    with an updated copy.
    """

    user_agent: str | None = None
    default_headers: Mapping[str, str] = field(
        default_factory=_default_headers
    )
    raw_options: Mapping[Any, Any] = field(
        default_factory=_default_raw_options
    )
    cookie_file: CookieFileSetting = None
    follow_redirects: bool = True
    referer: str | None = None
    validate_ssl: bool = False
    ca_bundle: str | None = None
    credentials: tuple[str | None, str | None] | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    debug: bool = False
    capture_headers: bool = False
    headers_in_body: bool = False

    def __post_init__(self) -> None:
        if (
            isinstance(self.timeout_seconds, bool)
            or not isinstance(self.timeout_seconds, (int, float))
            or self.timeout_seconds <= 0
        ):
            raise ValueError("timeout_seconds must be > 0")
        if self.credentials is not None and len(self.credentials) != 2:
            raise ValueError("credentials must be a (username, password) pair")
        if self.credentials is not None and self.credentials[0] in (
            None,
            "none",
        ):
            # The username "none" switches HTTP auth off.
            object.__setattr__(self, "credentials", None)

        object.__setattr__(
            self, "cookie_file", resolve_cookie_file(self.cookie_file)
        )
        # Freeze copied mappings to avoid post-init mutation side effects.
        object.__setattr__(
            self,
            "default_headers",
            MappingProxyType(dict(self.default_headers)),
        )
        object.__setattr__(
            self,
            "raw_options",
            MappingProxyType(normalize_options(self.raw_options)),
        )
