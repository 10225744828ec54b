"""
Transport modules for the Dexter client.

This package provides the connections the ConnectionManager talks through:
a real WebSocket client and a simulated arm.
"""

from .base import Connection, Transport
from .mock_transport import MockDexterConnection, MockDexterTransport, MockRobotState
from .transport_factory import create_transport, is_simulation_mode
from .websocket_transport import WebSocketConnection, WebSocketTransport

__all__ = [
    "Connection",
    "Transport",
    "WebSocketConnection",
    "WebSocketTransport",
    "MockDexterConnection",
    "MockDexterTransport",
    "MockRobotState",
    "create_transport",
    "is_simulation_mode",
]
