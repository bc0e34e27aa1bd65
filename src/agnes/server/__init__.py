"""Server-side components of the Agnes runtime."""

from agnes.server.routing import AGENT_ID_HEADER, RequestRouter
from agnes.server.server import AgnesServer


__all__ = ['AGENT_ID_HEADER', 'AgnesServer', 'RequestRouter']
