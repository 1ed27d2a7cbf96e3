"""Upload payloads with a known byte length."""

from __future__ import annotations

import io
import os
from typing import BinaryIO


class PutData:
    """A readable byte stream paired with its length in bytes.

    The transport streams ``PutData`` as a request body and announces
    ``size`` as the ``Content-Length``.
    """

    def __init__(self, stream: BinaryIO, size: int | None = None) -> None:
        if size is None:
            size = _remaining_size(stream)
        if size < 0:
            raise ValueError("size must be >= 0")
        self._stream = stream
        self._size = size

    @classmethod
    def from_string(
        cls, data: str | bytes, encoding: str = "utf-8"
    ) -> PutData:
        """Wrap an in-memory payload."""
        if isinstance(data, str):
            data = data.encode(encoding)
        return cls(io.BytesIO(data), len(data))

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> PutData:
        """Open ``path`` for reading; the caller owns closing it."""
        size = os.path.getsize(path)
        return cls(open(path, "rb"), size)

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    @property
    def size(self) -> int:
        return self._size

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def close(self) -> None:
        self._stream.close()

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"PutData(size={self._size})"


def _remaining_size(stream: BinaryIO) -> int:
    try:
        position = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(position)
    except (AttributeError, OSError, io.UnsupportedOperation) as exc:
        raise ValueError(
            "size is required for streams that cannot seek"
        ) from exc
    return end - position
