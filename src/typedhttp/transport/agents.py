"""Connection agents.

An `Agent` owns one `httpx.AsyncClient`: a pool of persistent HTTP/1.1
connections with no connection limit, no redirects and no timeouts. Callers
who want a different pooling policy construct their own agent (or hand one
an `httpx.AsyncClient` they configured) and pass it to the request function.

`default_agents` holds the agents used when a caller supplies none: at most
one per scheme, created on first use and kept for the lifetime of the
process. `await default_agents.aclose()` releases them (tests do this
between event loops, since httpx pools are bound to the loop that opened
their connections).
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from types import TracebackType

import httpx

from .request import ClientRequest

SUPPORTED_SCHEMES: frozenset[str] = frozenset({"http", "https"})


def _pool_limits() -> httpx.Limits:
    return httpx.Limits(max_connections=None, max_keepalive_connections=None)


class Agent:
    """A connection pool that starts `ClientRequest`s.

    Args:
        client: Pre-configured httpx client to use instead of the default pool
    """

    __slots__ = ("_client", "_owns_client")

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            limits=_pool_limits(),
            http1=True,
            http2=False,
            follow_redirects=False,
            timeout=httpx.Timeout(None),
            trust_env=False,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        content_length: int | None = None,
    ) -> ClientRequest:
        """Start an exchange. Must be called from a running event loop."""
        return ClientRequest(self._client, method, url, headers, content_length=content_length).start()

    async def aclose(self) -> None:
        """Close the pool. A client passed in by the caller is left open."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Agent:
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"Agent(closed={self.closed})"


class DefaultAgents:
    """Lazily created agents, one per supported scheme."""

    __slots__ = ("_agents", "_lock")

    def __init__(self) -> None:
        self._agents: dict[str, Agent] = {}
        self._lock = threading.Lock()

    def get(self, scheme: str) -> Agent:
        """Agent for `scheme`, created on first use (or after aclose())."""
        if scheme not in SUPPORTED_SCHEMES:
            raise ValueError(f"No default agent for scheme {scheme!r}")
        with self._lock:
            agent = self._agents.get(scheme)
            if agent is None or agent.closed:
                agent = self._agents[scheme] = Agent()
            return agent

    def __contains__(self, scheme: object) -> bool:
        return scheme in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    async def aclose(self) -> None:
        with self._lock:
            agents = list(self._agents.values())
            self._agents.clear()
        for agent in agents:
            await agent.aclose()


default_agents = DefaultAgents()
