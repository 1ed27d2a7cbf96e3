"""Default User-Agent composition."""

from __future__ import annotations

import os
import platform
import re
from typing import Mapping

import requests

from .. import __version__

_PYTHON_TOKEN = re.compile(r"Python/[\d.]+\s*")


def compose_user_agent(environ: Mapping[str, str] | None = None) -> str:
    """Compose the User-Agent sent when none is configured.

    The ``USER_AGENT`` environment variable, when present (even empty), is
    used verbatim. Otherwise the string names this library, ``requests``
    and the interpreter, followed by the hosting server software or, on a
    terminal, the terminal program, and the end user's agent if one is
    being relayed (``HTTP_USER_AGENT``).
    """
    if environ is None:
        environ = os.environ
    if "USER_AGENT" in environ:
        return environ["USER_AGENT"]

    system = platform.system() or "unknown"
    user_agent = (
        f"shuttle/{__version__} (requests/{requests.__version__}"
        f" Python/{platform.python_version()} ({system})"
    )

    server_software = environ.get("SERVER_SOFTWARE")
    if server_software:
        server_software = _PYTHON_TOKEN.sub("", server_software).strip()
        if server_software:
            user_agent += f" {server_software}"
    else:
        term_program = environ.get("TERM_PROGRAM")
        if term_program:
            user_agent += f" {term_program}"
            term_version = environ.get("TERM_PROGRAM_VERSION")
            if term_version:
                user_agent += f"/{term_version}"

    relayed = environ.get("HTTP_USER_AGENT")
    if relayed:
        user_agent += f" {relayed}"

    return user_agent + ")"
