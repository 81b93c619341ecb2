"""Byte source: accumulates a response body, then decodes it.

`ChunkAccumulator` keeps every chunk it is given and joins them once, when
the body is collected. `read_payload` is the full response path: accumulate,
parse JSON, decode with a codec.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from typedhttp.foundation.errors import ResponseDecodeError, ResponseJsonError

from .codec import JSONDecodeError, decode_json

if TYPE_CHECKING:
    from collections.abc import AsyncIterable

    from typedhttp.foundation.codecs import Codec

T = TypeVar("T")


class ChunkAccumulator:
    """Append-only chunk buffer with a running length."""

    __slots__ = ("_chunks", "_length")

    def __init__(self) -> None:
        self._chunks: list[bytes] = []
        self._length = 0

    def write(self, chunk: bytes | str, encoding: str = "utf-8") -> None:
        data = chunk.encode(encoding) if isinstance(chunk, str) else bytes(chunk)
        self._chunks.append(data)
        self._length += len(data)

    def collect(self) -> bytes:
        """Join the chunks. Zero chunks give b"", a single chunk is returned as-is."""
        if not self._chunks:
            return b""
        if len(self._chunks) > 1:
            self._chunks = [b"".join(self._chunks)]
        return self._chunks[0]

    async def consume(self, source: AsyncIterable[bytes]) -> bytes:
        """Drain an async byte stream into this buffer and return the joined body."""
        async for chunk in source:
            self.write(chunk)
        return self.collect()

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    def __len__(self) -> int:
        return self._length


async def read_body(source: AsyncIterable[bytes]) -> bytes:
    """Accumulate a whole async byte stream."""
    return await ChunkAccumulator().consume(source)


async def read_payload(source: AsyncIterable[bytes], codec: Codec[T]) -> T:
    """Accumulate a body, parse it as JSON and decode it with `codec`.

    Raises:
        ResponseJsonError: The body is not valid JSON text
        ResponseDecodeError: The JSON value does not satisfy the codec
    """
    body = await read_body(source)
    try:
        wire = decode_json(body)
    except JSONDecodeError as exc:
        raise ResponseJsonError(exc) from exc

    def _reject(issues: list) -> T:
        raise ResponseDecodeError(issues, codec_name=codec.name)

    return codec.decode(wire).unwrap_or_else(_reject)
