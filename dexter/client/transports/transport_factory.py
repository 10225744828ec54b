"""
Transport factory for creating appropriate transport instances.

Selects between the real WebSocket transport and the simulated arm based on
configuration and environment.
"""

import logging
import os
from typing import Optional, Union

from dexter.client.transports.mock_transport import MockDexterTransport
from dexter.client.transports.websocket_transport import WebSocketTransport

logger = logging.getLogger(__name__)


def is_simulation_mode() -> bool:
    """
    Check if simulation mode is enabled.

    Returns:
        True if simulation mode is enabled via environment variable
    """
    fake_robot = str(os.getenv("DEXTER_FAKE_ROBOT", "0")).lower()
    return fake_robot in ("1", "true", "yes", "on")


def create_transport(
    transport_type: Optional[str] = None, **kwargs
) -> Union[WebSocketTransport, MockDexterTransport]:
    """
    Create an appropriate transport instance.

    Args:
        transport_type: 'websocket', 'mock', or None to auto-detect from DEXTER_FAKE_ROBOT
        **kwargs: Transport-specific parameters

    Returns:
        Transport instance
    """
    if transport_type is None:
        transport_type = "mock" if is_simulation_mode() else "websocket"

    if transport_type == "mock":
        logger.info("Creating MockDexterTransport for simulation")
        return MockDexterTransport(**kwargs)
    if transport_type == "websocket":
        logger.info("Creating WebSocketTransport")
        return WebSocketTransport(**kwargs)

    raise ValueError(f"Unknown transport type: {transport_type}")
