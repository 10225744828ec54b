"""
Connection lifecycle for the Dexter client.

The ConnectionManager owns the single live connection, the instruction
counter and the latest status frame. Only its own event handlers mutate
them; callers read status through the decoding helpers on StatusFrame.
"""

import asyncio
import logging
from functools import partial

from .. import config as cfg
from ..config import TRACE
from ..protocol import wire
from ..protocol.types import ConnectionState, Oplet
from ..protocol.wire import StatusFrame
from ..utils.errors import MalformedFrameError
from .transports.base import Connection, Transport

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Owns one duplex connection to the job engine.

    - open() replaces the connection wholesale (the old one is closed).
    - ensure_open() reconnects lazily before each send.
    - Close codes other than 1006 trigger an automatic reconnect.
    - Every inbound binary message replaces the cached StatusFrame.
    """

    def __init__(self, transport: Transport, url: str | None = None) -> None:
        self.url = url or cfg.WS_URL
        self._transport = transport
        self._conn: Connection | None = None
        self._state = ConnectionState.DISCONNECTED
        self._count = 0
        self._frame = StatusFrame.empty()
        self._frame_version = 0
        self._frame_event = asyncio.Event()

    # --------------- Read-only views ---------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connection(self) -> Connection | None:
        return self._conn

    @property
    def sequence(self) -> int:
        """Sequence number the next numbered instruction will carry."""
        return self._count

    @property
    def frame(self) -> StatusFrame:
        return self._frame

    @property
    def frame_version(self) -> int:
        """Number of status frames accepted so far."""
        return self._frame_version

    # --------------- Lifecycle ---------------

    def open(self) -> None:
        """Close any previous connection and start a new one."""
        previous = self._conn
        self._conn = None
        if previous is not None:
            logger.debug(f"Closing previous connection to {previous.url}")
            previous.close()

        conn = self._transport.create_connection(self.url)
        self._conn = conn
        self._state = ConnectionState.CONNECTING
        logger.info(f"Connecting to {self.url}")
        try:
            conn.start(
                partial(self._on_open, conn),
                partial(self._on_message, conn),
                partial(self._on_close, conn),
            )
        except Exception:
            # A handle that never started must not block the next ensure_open()
            if self._conn is conn:
                self._conn = None
                self._state = ConnectionState.DISCONNECTED
            conn.close()
            raise

    def ensure_open(self) -> None:
        """Open a connection if there is no live handle; does not wait for readiness."""
        if self._conn is None:
            self.open()

    def reload(self) -> None:
        """Force a fresh connection; failures are logged, never raised."""
        logger.info("reload")
        try:
            self.open()
        except Exception as e:
            logger.warning(f"Reload failed: {e}")

    def close(self) -> None:
        """Shut down without reconnecting."""
        conn = self._conn
        self._conn = None
        if conn is not None:
            conn.close()
            self._state = ConnectionState.CLOSED_NORMAL
            logger.info(f"Connection to {conn.url} closed")

    # --------------- Sending ---------------

    def next_sequence(self) -> int:
        seq = self._count
        self._count += 1
        return seq

    def send_line(self, line: str) -> None:
        """Send one instruction line verbatim, reconnecting first if needed."""
        self.ensure_open()
        self._send(line)

    def send_instruction(self, opcode: str, payload: list[object] | str = ()) -> str:
        """Number, encode and send an instruction. Returns the line sent."""
        self.ensure_open()
        line = wire.encode_instruction(self.next_sequence(), opcode, payload)
        self._send(line)
        return line

    def _send(self, line: str) -> None:
        if self._conn is None:
            # Connection attempt already failed; the line is lost like on a closed socket
            logger.warning(f"Not connected to {self.url}, dropping: {line}")
            return
        logger.debug(f"-> {line}")
        self._conn.send(line)

    async def wait_for_frame(self, timeout: float | None = None, after: int | None = None) -> StatusFrame:
        """
        Wait until a frame newer than version `after` (default: the current
        version) has been accepted. Raises TimeoutError on timeout.
        """
        target = self._frame_version if after is None else after

        async def _wait() -> None:
            while self._frame_version <= target:
                self._frame_event.clear()
                await self._frame_event.wait()

        await asyncio.wait_for(_wait(), timeout=timeout)
        return self._frame

    # --------------- Event handlers ---------------

    def _on_open(self, conn: Connection) -> None:
        if conn is not self._conn:
            return
        self._state = ConnectionState.CONNECTED
        logger.info("connected")
        # Prime the status frame
        self.send_instruction(Oplet.GET_ROBOT_STATUS.value)

    def _on_message(self, conn: Connection, data: bytes | str) -> None:
        if conn is not self._conn:
            return
        if isinstance(data, str):
            logger.warning(f"Ignoring text message from {conn.url}: {data[:80]!r}")
            return
        try:
            frame = wire.unpack_status_frame(data)
        except MalformedFrameError as e:
            logger.warning(f"Keeping previous status frame: {e}")
            return
        if cfg.TRACE_ENABLED:
            logger.log(TRACE, f"<- frame {frame.to_bytes().hex()}")
        self._frame = frame
        self._frame_version += 1
        self._frame_event.set()
        logger.info(f"{frame.last_oplet()} errored: {frame.last_errored()}")

    def _on_close(self, conn: Connection, code: int) -> None:
        logger.info(f"closed ({code})")
        if conn is not self._conn:
            return
        try:
            if code != cfg.ABNORMAL_CLOSE_CODE:
                self._state = ConnectionState.CLOSED_NORMAL
                self.open()
            else:
                logger.info(f"disconnected ({cfg.ABNORMAL_CLOSE_CODE})")
                self._state = ConnectionState.CLOSED_ABNORMAL
                self._conn = None
        except Exception as e:
            logger.warning(f"disconnected: {e}")
            self._state = ConnectionState.DISCONNECTED
            self._conn = None
