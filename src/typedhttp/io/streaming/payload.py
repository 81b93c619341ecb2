"""Byte sink: serves an encoded request body in bounded chunks.

`PayloadStream` holds one immutable buffer and a cursor. Each pull returns
the next slice of at most `chunk_size` bytes; once the cursor reaches the
end of the buffer the stream is ended, and stays ended.

    >>> stream = PayloadStream([b"ab", "cd"], chunk_size=3)
    >>> stream.read(), stream.read(), stream.read()
    (b'abc', b'd', None)
    >>> stream.ended
    True
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Union

DEFAULT_CHUNK_SIZE = 16 * 1024

PayloadData = Union[str, bytes, bytearray, memoryview, Sequence[Union[str, bytes]]]


def _to_bytes(data: PayloadData, encoding: str) -> bytes:
    match data:
        case str():
            return data.encode(encoding)
        case bytes():
            return data
        case bytearray() | memoryview():
            return bytes(data)
        case Sequence():
            return b"".join(_to_bytes(part, encoding) for part in data)
        case _:
            raise TypeError(f"Cannot stream payload of type {type(data).__name__}")


class PayloadStream:
    """Async iterator over one in-memory payload.

    Args:
        data: Text, bytes, or a sequence of either (joined once here)
        chunk_size: Upper bound on the size of each yielded chunk
        encoding: Encoding applied to text parts
    """

    __slots__ = ("_data", "_position", "_chunk_size", "_ended")

    def __init__(self, data: PayloadData, *, chunk_size: int = DEFAULT_CHUNK_SIZE, encoding: str = "utf-8") -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._data = _to_bytes(data, encoding)
        self._chunk_size = chunk_size
        self._position = 0
        self._ended = False

    @property
    def position(self) -> int:
        return self._position

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def ended(self) -> bool:
        return self._ended

    def read(self) -> bytes | None:
        """Next chunk, or None once the buffer is exhausted."""
        if self._position >= len(self._data):
            self._ended = True
            return None
        end = min(self._position + self._chunk_size, len(self._data))
        chunk = self._data[self._position:end]
        self._position = end
        return chunk

    def __aiter__(self) -> PayloadStream:
        return self

    async def __anext__(self) -> bytes:
        if (chunk := self.read()) is None:
            raise StopAsyncIteration
        return chunk

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"PayloadStream(position={self._position}, size={len(self._data)}, ended={self._ended})"
