"""Query string and form encoding."""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Union
from urllib.parse import quote_plus

QueryVars = Union[Mapping[str, Any], str, None]


def _scalar(value: Any) -> str | bytes:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, bytes):
        return value
    return str(value)


def _pairs(prefix: str, value: Any) -> Iterator[tuple[str, str | bytes]]:
    if value is None:
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            yield from _pairs(f"{prefix}[{key}]", item)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            yield from _pairs(f"{prefix}[{index}]", item)
    else:
        yield prefix, _scalar(value)


def build_query(variables: Mapping[str, Any]) -> str:
    """Form-encode ``variables`` as ``key=value`` pairs joined by ``&``.

    Nested mappings and sequences use the ``key[sub]=value`` form, booleans
    encode as ``1``/``0`` and ``None`` values are left out.
    """
    return "&".join(
        f"{quote_plus(name)}={quote_plus(value)}"
        for key, item in variables.items()
        for name, value in _pairs(str(key), item)
    )


def encode_vars(variables: QueryVars) -> str | None:
    """Encode caller-supplied vars; strings pass through verbatim."""
    if not variables:
        return None
    if isinstance(variables, str):
        return variables
    return build_query(variables) or None


def create_get_url(url: str, variables: QueryVars = None) -> str:
    """Append ``variables`` to ``url`` as a query string.

    Uses ``&`` when ``url`` already carries a query, ``?`` otherwise.
    """
    query = encode_vars(variables)
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"
