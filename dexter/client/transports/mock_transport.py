"""
Mock transport for simulation and testing.

Simulates a Dexter job engine at the wire protocol level: instruction lines
go in, 240-byte status frames come out. All handlers are invoked
synchronously from start()/send()/drop(), so tests are deterministic and
need no event loop.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from dexter import config as cfg
from dexter.client.transports.base import CloseHandler, MessageHandler, OpenHandler
from dexter.protocol.types import Joint, JointData, LastValue, Oplet
from dexter.protocol.wire import (
    ERROR_SLOT,
    JOINT_BASE_SLOTS,
    JOINT_DATA_SLOTS,
    LAST_VALUE_SLOTS,
    OPLET_SLOT,
    decode_instruction,
    pack_status_frame,
)

logger = logging.getLogger(__name__)

_KNOWN_OPLETS = {o.value for o in Oplet}


@dataclass
class MockRobotState:
    """Internal state of the simulated arm."""

    slots: np.ndarray = field(default_factory=lambda: np.zeros((cfg.STATUS_SLOTS,), dtype=np.int64))
    job_number: int = 1
    # Monotonic tick used for start/end timestamps
    clock: int = 0
    queue_cleared: int = 0

    def record(self, sequence: int, opcode: str, errored: bool) -> None:
        self.clock += 1
        self.slots[LAST_VALUE_SLOTS[LastValue.JOB_NUMBER]] = self.job_number
        self.slots[LAST_VALUE_SLOTS[LastValue.INSTRUCTION_NUMBER]] = sequence
        self.slots[LAST_VALUE_SLOTS[LastValue.START_TIME]] = self.clock
        self.slots[LAST_VALUE_SLOTS[LastValue.END_TIME]] = self.clock + 1
        self.slots[OPLET_SLOT] = ord(opcode[0]) if opcode else 0
        self.slots[ERROR_SLOT] = 1 if errored else 0

    def set_joints(self, arcsec: list[int]) -> None:
        for joint, value in zip(Joint, arcsec):
            base = JOINT_BASE_SLOTS[joint]
            for data in (JointData.POSITION_AT, JointData.MEASURED_ANGLE, JointData.SENT_POSITION):
                self.slots[base + JOINT_DATA_SLOTS[data]] = value
            self.slots[base + JOINT_DATA_SLOTS[JointData.POSITION_DELTA]] = 0

    def frame(self) -> bytes:
        return pack_status_frame(self.slots.tolist())


class MockDexterConnection:
    """
    One simulated connection.

    Every line sent is recorded on the owning transport. When respond is set,
    each parsed instruction updates the simulated arm and a fresh status frame
    is delivered to on_message right away.
    """

    def __init__(self, transport: "MockDexterTransport", url: str):
        self.url = url
        self._transport = transport
        self._on_open: OpenHandler | None = None
        self._on_message: MessageHandler | None = None
        self._on_close: CloseHandler | None = None
        self.opened = False
        self.closed = False

    def start(self, on_open: OpenHandler, on_message: MessageHandler, on_close: CloseHandler) -> None:
        self._on_open = on_open
        self._on_message = on_message
        self._on_close = on_close
        if self._transport.fail_connect:
            logger.info(f"MockDexterConnection refusing {self.url}")
            self.closed = True
            on_close(cfg.ABNORMAL_CLOSE_CODE)
            return
        if self._transport.auto_open:
            self.accept()

    def accept(self) -> None:
        """Complete the handshake and fire on_open."""
        if self.opened or self.closed:
            return
        self.opened = True
        logger.info(f"MockDexterConnection connected to simulated arm: {self.url}")
        if self._on_open is not None:
            self._on_open()

    def send(self, text: str) -> None:
        if self.closed:
            logger.debug(f"MockDexterConnection dropping send after close: {text}")
            return
        self._transport.sent.append(text)
        if self._transport.respond and self.opened:
            self._transport.handle_instruction(text)
            self.push(self._transport.state.frame())

    def push(self, data: bytes | str) -> None:
        """Deliver an inbound message as if the arm had sent it."""
        if self.closed or self._on_message is None:
            return
        self._on_message(data)

    def drop(self, code: int) -> None:
        """Simulate the server closing the connection with the given code."""
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close(code)

    def close(self) -> None:
        self.closed = True


class MockDexterTransport:
    """
    Mock transport that simulates the Dexter job engine.

    Exposes the same create_connection() interface as WebSocketTransport.
    """

    def __init__(self, auto_open: bool = True, respond: bool = True, fail_connect: bool = False):
        self.auto_open = auto_open
        self.respond = respond
        self.fail_connect = fail_connect
        self.state = MockRobotState()
        self.connections: list[MockDexterConnection] = []
        self.sent: list[str] = []
        logger.info("MockDexterTransport initialized - simulation mode active")

    @property
    def current(self) -> MockDexterConnection | None:
        return self.connections[-1] if self.connections else None

    def create_connection(self, url: str) -> MockDexterConnection:
        conn = MockDexterConnection(self, url)
        self.connections.append(conn)
        return conn

    def handle_instruction(self, line: str) -> None:
        ins = decode_instruction(line)
        if ins is None:
            logger.warning(f"MockDexterTransport: ignoring unparsable line '{line}'")
            return
        opcode = ins["opcode"]
        errored = opcode not in _KNOWN_OPLETS

        if opcode in (Oplet.MOVE_ALL_JOINTS.value, Oplet.PID_MOVE_ALL_JOINTS.value):
            try:
                self.state.set_joints([int(t) for t in ins["payload"]])
            except ValueError:
                errored = True
        elif opcode == Oplet.EMPTY_INSTRUCTION_QUEUE.value:
            self.state.queue_cleared += 1

        self.state.record(ins["sequence"], opcode, errored)
        logger.debug(f"MockDexterTransport executed '{opcode}' seq={ins['sequence']} errored={errored}")
