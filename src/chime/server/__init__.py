"""HTTP/WebSocket server for Chime."""

from chime.server.app import ChimeServer, create_app
from chime.server.connections import ConnectionHub
from chime.server.runner import ServerRunner

__all__ = [
    "ChimeServer",
    "ConnectionHub",
    "ServerRunner",
    "create_app",
]
