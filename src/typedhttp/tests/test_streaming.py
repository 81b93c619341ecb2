"""Tests for the payload stream, chunk accumulator and JSON body decoding."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from pydantic import BaseModel

from typedhttp.foundation.codecs import codec
from typedhttp.foundation.errors import ResponseDecodeError, ResponseJsonError
from typedhttp.io.streaming import (
    DEFAULT_CHUNK_SIZE,
    ChunkAccumulator,
    PayloadStream,
    decode_json,
    encode_json,
    read_body,
    read_payload,
)


class Item(BaseModel):
    id: int
    label: str


async def _chunks(*parts: bytes) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


async def _collect(stream: PayloadStream) -> list[bytes]:
    return [chunk async for chunk in stream]


# ─────────────────────────────────────────────────────────────────────────────
# PayloadStream
# ─────────────────────────────────────────────────────────────────────────────


class TestPayloadStream:
    @pytest.mark.asyncio
    async def test_yields_bounded_consecutive_chunks(self) -> None:
        data = bytes(range(256)) * 40
        chunks = await _collect(PayloadStream(data, chunk_size=1000))

        assert all(len(c) <= 1000 for c in chunks)
        assert [len(c) for c in chunks[:-1]] == [1000] * (len(chunks) - 1)
        assert b"".join(chunks) == data

    @pytest.mark.asyncio
    async def test_empty_buffer_ends_without_yielding(self) -> None:
        stream = PayloadStream(b"")
        assert await _collect(stream) == []
        assert stream.ended

    def test_end_is_signalled_once_and_sticks(self) -> None:
        stream = PayloadStream(b"abc", chunk_size=2)
        assert not stream.ended
        assert stream.read() == b"ab"
        assert stream.read() == b"c"
        assert not stream.ended
        assert stream.read() is None
        assert stream.ended
        assert stream.read() is None
        assert stream.position == stream.size == 3

    def test_cursor_only_moves_forward(self) -> None:
        stream = PayloadStream(b"x" * 10, chunk_size=3)
        positions = [stream.position]
        while stream.read() is not None:
            positions.append(stream.position)
        assert positions == sorted(positions)
        assert positions[-1] == 10

    def test_text_and_sequences_are_joined_once(self) -> None:
        stream = PayloadStream(["héllo ", b"world"])
        assert len(stream) == len("héllo world".encode())
        assert stream.read() == "héllo world".encode()

    def test_default_chunk_size(self) -> None:
        stream = PayloadStream(b"a" * (DEFAULT_CHUNK_SIZE + 1))
        assert len(stream.read() or b"") == DEFAULT_CHUNK_SIZE
        assert stream.read() == b"a"

    def test_rejects_non_positive_chunk_size(self) -> None:
        with pytest.raises(ValueError):
            PayloadStream(b"abc", chunk_size=0)

    def test_rejects_unstreamable_data(self) -> None:
        with pytest.raises(TypeError):
            PayloadStream([1, 2, 3])  # type: ignore[list-item]


# ─────────────────────────────────────────────────────────────────────────────
# ChunkAccumulator
# ─────────────────────────────────────────────────────────────────────────────


class TestChunkAccumulator:
    def test_zero_chunks_collect_to_empty_bytes(self) -> None:
        acc = ChunkAccumulator()
        assert acc.collect() == b""
        assert len(acc) == 0

    def test_single_chunk_is_returned_as_is(self) -> None:
        acc = ChunkAccumulator()
        chunk = b"only"
        acc.write(chunk)
        assert acc.collect() is chunk

    def test_joins_in_order_and_tracks_length(self) -> None:
        acc = ChunkAccumulator()
        for part in (b"a", "é", b"c"):
            acc.write(part)
        assert len(acc) == 4
        assert acc.chunk_count == 3
        assert acc.collect() == "aéc".encode()
        assert acc.chunk_count == 1

    @pytest.mark.asyncio
    async def test_consume_drains_source(self) -> None:
        assert await ChunkAccumulator().consume(_chunks(b"ab", b"", b"cd")) == b"abcd"
        assert await read_body(_chunks()) == b""


# ─────────────────────────────────────────────────────────────────────────────
# read_payload
# ─────────────────────────────────────────────────────────────────────────────


class TestReadPayload:
    @pytest.mark.asyncio
    async def test_decodes_split_json(self) -> None:
        item = await read_payload(_chunks(b'{"id": 1, ', b'"label": "x"}'), codec(Item))
        assert item == Item(id=1, label="x")

    @pytest.mark.asyncio
    async def test_malformed_json(self) -> None:
        with pytest.raises(ResponseJsonError) as exc_info:
            await read_payload(_chunks(b"{not json"), codec(Item))
        assert exc_info.value.message.startswith("Error parsing response payload as JSON")
        assert exc_info.value.__cause__ is not None

    @pytest.mark.asyncio
    async def test_empty_body_is_not_json(self) -> None:
        with pytest.raises(ResponseJsonError):
            await read_payload(_chunks(), codec(Item))

    @pytest.mark.asyncio
    async def test_codec_rejection_carries_issues(self) -> None:
        with pytest.raises(ResponseDecodeError) as exc_info:
            await read_payload(_chunks(b'{"id": "nope"}'), codec(Item))
        err = exc_info.value
        assert err.issues
        assert {issue.loc for issue in err.issues} == {("id",), ("label",)}
        assert err.codec_name == "Item"


def test_json_codec_uses_compact_utf8() -> None:
    assert encode_json({"a": [1, "é"]}) == '{"a":[1,"é"]}'.encode()
    assert decode_json('{"a": null}') == {"a": None}
