"""Tests for agents and the event-emitting client request."""

from __future__ import annotations

import httpx
import pytest

from typedhttp.client.lifecycle import response_received, socket_assigned, socket_connected
from typedhttp.foundation.errors import ConnectionRefused, TransportError
from typedhttp.transport import Agent, DefaultAgents, default_agents

from .conftest import Reply


class TestDefaultAgents:
    @pytest.mark.asyncio
    async def test_one_agent_per_scheme(self) -> None:
        agents = DefaultAgents()
        http = agents.get("http")
        assert agents.get("http") is http
        assert agents.get("https") is not http
        assert len(agents) == 2
        await agents.aclose()
        assert len(agents) == 0
        assert http.closed

    @pytest.mark.asyncio
    async def test_recreated_after_close(self) -> None:
        first = default_agents.get("http")
        await default_agents.aclose()
        assert default_agents.get("http") is not first

    def test_unknown_scheme(self) -> None:
        with pytest.raises(ValueError):
            DefaultAgents().get("ftp")


class TestAgent:
    @pytest.mark.asyncio
    async def test_pool_has_no_limits_or_timeouts(self) -> None:
        async with Agent() as agent:
            pool = agent.client
            assert pool.timeout == httpx.Timeout(None)
            assert not pool.follow_redirects
        assert agent.closed

    @pytest.mark.asyncio
    async def test_caller_client_is_left_open(self) -> None:
        client = httpx.AsyncClient()
        async with Agent(client) as agent:
            assert agent.client is client
        assert not client.is_closed
        await client.aclose()


class TestClientRequest:
    @pytest.mark.asyncio
    async def test_events_and_state_for_a_new_connection(self, serve) -> None:
        server = await serve(lambda request: Reply(200, {"a": 1}))
        async with Agent() as agent:
            request = agent.request("POST", f"{server.base_url}/x", {"Content-Type": "application/json"}, 7)
            socket = await socket_assigned(request)
            assert not socket.reused
            await socket_connected(socket)
            assert socket.connected
            assert socket.peer_address == server.base_url.removeprefix("http://")

            await request.write(b'{"a":')
            await request.write(b"1}")
            await request.end()
            response = await response_received(request)
            assert response.status_code == 200
            assert response.headers["content-length"] == "7"
            assert b"".join([chunk async for chunk in response.aiter_bytes()]) == b'{"a":1}'
            await response.aclose()

            assert server.last.body == b'{"a":1}'
            with pytest.raises(RuntimeError):
                await request.write(b"more")

    @pytest.mark.asyncio
    async def test_pooled_connection_is_marked_reused(self, serve) -> None:
        server = await serve(lambda request: Reply(204))
        async with Agent() as agent:
            for expected in (False, True):
                request = agent.request("GET", server.base_url, {})
                socket = await socket_connected(await socket_assigned(request))
                assert socket.reused is expected
                response = await response_received(request)
                await response.drain()
                await response.aclose()
        assert server.connections == 1

    @pytest.mark.asyncio
    async def test_refused_is_recorded_on_request_and_socket(self, refused_url: str) -> None:
        async with Agent() as agent:
            request = agent.request("GET", refused_url, {})
            with pytest.raises(ConnectionRefused):
                await socket_connected(await socket_assigned(request))
            assert isinstance(request.error, ConnectionRefused)
            assert request.socket is None or request.socket.error is request.error

    @pytest.mark.asyncio
    async def test_destroy_aborts_and_records_error(self, serve) -> None:
        server = await serve(lambda request: Reply(204))
        async with Agent() as agent:
            request = agent.request("PUT", server.base_url, {}, 10)
            await socket_connected(await socket_assigned(request))
            cause = TransportError("body failed")
            request.destroy(cause)
            with pytest.raises(TransportError, match="body failed"):
                await response_received(request)
            with pytest.raises(TransportError):
                await request.write(b"late")
