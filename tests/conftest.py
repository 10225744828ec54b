"""
Pytest configuration and shared fixtures for the Dexter bridge tests.

Provides a simulated arm transport, a manager/client wired to it, a
handler-recording transport for lifecycle tests and a status frame builder.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from dexter.client.connection import ConnectionManager
from dexter.client.dexter_client import DexterClient
from dexter.client.transports import MockDexterTransport
from dexter.protocol.wire import pack_status_frame

logger = logging.getLogger(__name__)

MOCK_URL = "ws://mock-dexter:3000"


# ============================================================================
# RECORDING TRANSPORT
# ============================================================================

@dataclass
class RecordedConnection:
    """Connection that only records; tests fire its handlers by hand."""

    url: str
    sent: list[str] = field(default_factory=list)
    closed: bool = False
    on_open: Callable[[], None] | None = None
    on_message: Callable[[bytes | str], None] | None = None
    on_close: Callable[[int], None] | None = None
    start_error: Exception | None = None

    def start(self, on_open, on_message, on_close) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.on_open = on_open
        self.on_message = on_message
        self.on_close = on_close

    def send(self, text: str) -> None:
        self.sent.append(text)

    def close(self) -> None:
        self.closed = True


class RecordingTransport:
    """Hands out RecordedConnection objects; optionally fails on demand."""

    def __init__(self) -> None:
        self.connections: list[RecordedConnection] = []
        self.fail_next: Exception | None = None
        self.fail_next_start: Exception | None = None

    def create_connection(self, url: str) -> RecordedConnection:
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc
        conn = RecordedConnection(url)
        if self.fail_next_start is not None:
            conn.start_error, self.fail_next_start = self.fail_next_start, None
        self.connections.append(conn)
        return conn


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def mock_url() -> str:
    return MOCK_URL


@pytest.fixture
def mock_transport() -> MockDexterTransport:
    """Simulated arm that answers every instruction with a status frame."""
    return MockDexterTransport()


@pytest.fixture
def manager(mock_transport) -> ConnectionManager:
    return ConnectionManager(mock_transport, url=MOCK_URL)


@pytest.fixture
def client(manager) -> DexterClient:
    return DexterClient(manager=manager)


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def recording_manager(recording_transport) -> ConnectionManager:
    return ConnectionManager(recording_transport, url=MOCK_URL)


@pytest.fixture
def make_frame() -> Callable[..., bytes]:
    """Build a 240-byte frame from {slot: value} keyword-free mappings."""

    def _make(slots: dict[int, int] | None = None) -> bytes:
        return pack_status_frame(slots or {})

    return _make
