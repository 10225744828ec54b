"""
Dexter Python Package

Bridges a block-programming host runtime to a Dexter robotic arm over a
local WebSocket connection.

Key components:
- DexterClient: Host-facing operations (motion commands and status queries)
- ConnectionManager: Owns the connection, instruction counter and status frame
- BlockDispatcher: Routes host block opcodes and arguments to DexterClient
- StatusFrame: Immutable decoded view of the 240-byte status frame
"""

from ._version import __version__
from .blocks import BlockDispatcher
from .client.connection import ConnectionManager
from .client.dexter_client import DexterClient
from .protocol.wire import StatusFrame

__all__ = [
    "__version__",
    "DexterClient",
    "ConnectionManager",
    "BlockDispatcher",
    "StatusFrame",
]
