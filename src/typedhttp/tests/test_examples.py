"""Tests for the worked webtask client."""

from __future__ import annotations

import pytest

from typedhttp.examples import PutWebtaskRequest, PutWebtaskResponse, UnexpectedStatusError, WebtaskClient
from typedhttp.foundation.errors import InvalidPayloadError

from .conftest import reply_json

TASK = {"code": "module.exports = cb => cb(null, 'abcd')", "meta": {"owner": "ops"}, "secrets": {}}


class TestWebtaskClient:
    @pytest.mark.asyncio
    async def test_put_webtask(self, serve) -> None:
        server = await serve(reply_json({"name": "hello", "meta": {"owner": "ops"}, "container": "sandbox"}))
        client = WebtaskClient(server.base_url)

        task = await client.put_webtask("sandbox", "hello", TASK)
        assert task == PutWebtaskResponse(name="hello", meta={"owner": "ops"})
        assert server.last.method == "PUT"
        assert server.last.path == "/sandbox/hello"
        assert server.last.json() == TASK

    @pytest.mark.asyncio
    async def test_accepts_model_payload(self, serve) -> None:
        server = await serve(reply_json({"name": "hello", "meta": {}}))
        client = WebtaskClient(server.base_url)

        await client.put_webtask("sandbox", "hello", PutWebtaskRequest(**TASK))
        assert server.last.json() == TASK

    @pytest.mark.asyncio
    async def test_code_must_match(self, serve) -> None:
        server = await serve(reply_json({"name": "hello", "meta": {}}))
        client = WebtaskClient(server.base_url)

        with pytest.raises(InvalidPayloadError):
            await client.put_webtask("sandbox", "hello", {**TASK, "code": "nothing to see"})
        assert server.connections == 0

    @pytest.mark.asyncio
    async def test_non_200_raises(self, serve) -> None:
        server = await serve(reply_json({"name": "hello", "meta": {}}, status=201))
        client = WebtaskClient(server.base_url)

        with pytest.raises(UnexpectedStatusError, match="201") as exc_info:
            await client.put_webtask("sandbox", "hello", TASK)
        assert exc_info.value.status_code == 201
