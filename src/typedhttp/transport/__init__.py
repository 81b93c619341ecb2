"""Transport: connection agents and event-emitting exchanges over httpx."""

from .agents import SUPPORTED_SCHEMES, Agent, DefaultAgents, default_agents
from .errors import classify_transport_error
from .request import ClientRequest, IncomingResponse, Socket

__all__ = [
    "Agent",
    "DefaultAgents",
    "default_agents",
    "SUPPORTED_SCHEMES",
    "ClientRequest",
    "IncomingResponse",
    "Socket",
    "classify_transport_error",
]
