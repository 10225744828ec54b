"""
Type definitions for the Dexter protocol.

Defines enums and TypedDicts used across the public API. Menu-driven
enums carry the exact strings the host runtime passes as block arguments.
"""

from enum import Enum
from typing import TypedDict


class Oplet(str, Enum):
    """Single-character instruction codes understood by the job engine."""

    MOVE_ALL_JOINTS = "a"
    PID_MOVE_ALL_JOINTS = "P"
    MOVE_TO = "M"
    GET_ROBOT_STATUS = "g"
    EMPTY_INSTRUCTION_QUEUE = "F"


class ConnectionState(Enum):
    """Lifecycle of the single connection owned by the ConnectionManager."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    CLOSED_NORMAL = "CLOSED_NORMAL"
    CLOSED_ABNORMAL = "CLOSED_ABNORMAL"


class LastValue(str, Enum):
    """Bookkeeping slots describing the last executed instruction."""

    JOB_NUMBER = "job number"
    INSTRUCTION_NUMBER = "instruction number"
    START_TIME = "start time"
    END_TIME = "end time"


class Joint(str, Enum):
    """The five main joints, in firmware order."""

    BASE = "base"
    PIVOT = "pivot"
    END = "end"
    ANGLE = "angle"
    ROT = "rot"


class JointData(str, Enum):
    """Per-joint telemetry kinds."""

    POSITION_AT = "position at"
    POSITION_DELTA = "position delta"
    POSITION_PID_DELTA = "position PID delta"
    POSITION_FORCE_DELTA = "position force delta"
    SIN = "sin"
    COS = "cos"
    MEASURED_ANGLE = "measured angle"
    SENT_POSITION = "sent position"


class Joint6Data(str, Enum):
    ANGLE = "angle"
    FORCE = "force"


class Joint7Data(str, Enum):
    POSITION = "position"
    FORCE = "force"


class DexterStatus(TypedDict):
    """Aggregate snapshot of a status frame."""

    job_number: int
    instruction_number: int
    start_time: int
    end_time: int
    oplet: str
    errored: bool
    joints: dict[str, dict[str, int]]  # joint name -> data kind -> raw value
    joint6: dict[str, int]
    joint7: dict[str, int]


class Instruction(TypedDict):
    """Parsed outbound instruction line."""

    sequence: int
    opcode: str
    payload: list[str]
