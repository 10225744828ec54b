"""
Wire protocol helpers for the Dexter job engine.

This module centralizes encoding of outbound instruction lines and decoding
of the fixed 240-byte status frame the arm streams back.
"""

import logging
from collections.abc import Mapping, Sequence

import numpy as np

from .. import config as cfg
from ..utils.errors import MalformedFrameError
from .types import (
    DexterStatus,
    Instruction,
    Joint,
    Joint6Data,
    Joint7Data,
    JointData,
    LastValue,
    Oplet,
)

logger = logging.getLogger(__name__)

# Status frames are little-endian signed 32-bit slots
_SLOT_DTYPE = np.dtype("<i4")

# Fixed header fields of every numbered instruction
_HEADER_PREFIX = "1"
_HEADER_MIDDLE = "1 undefined"
TERMINATOR = ";"

# Queue-clear always goes out with sequence "1", independent of the counter
EMPTY_QUEUE_INSTRUCTION = f"1 1 {_HEADER_MIDDLE} {Oplet.EMPTY_INSTRUCTION_QUEUE.value} {TERMINATOR}"

__all__ = [
    "EMPTY_QUEUE_INSTRUCTION",
    "StatusFrame",
    "encode_instruction",
    "encode_joint_angles",
    "encode_move_to",
    "encode_config_flag",
    "decode_instruction",
    "pack_status_frame",
    "unpack_status_frame",
    "LAST_VALUE_SLOTS",
    "OPLET_SLOT",
    "ERROR_SLOT",
    "JOINT_BASE_SLOTS",
    "JOINT_DATA_SLOTS",
    "JOINT6_SLOTS",
    "JOINT7_SLOTS",
]


# =========================
# Field offset table
# =========================

LAST_VALUE_SLOTS: dict[LastValue, int] = {
    LastValue.JOB_NUMBER: 0,
    LastValue.INSTRUCTION_NUMBER: 1,
    LastValue.START_TIME: 2,
    LastValue.END_TIME: 3,
}
OPLET_SLOT = 4
ERROR_SLOT = 5

JOINT_BASE_SLOTS: dict[Joint, int] = {
    Joint.BASE: 0,
    Joint.PIVOT: 10,
    Joint.END: 20,
    Joint.ANGLE: 30,
    Joint.ROT: 40,
}

JOINT_DATA_SLOTS: dict[JointData, int] = {
    JointData.POSITION_AT: 10,
    JointData.POSITION_DELTA: 11,
    JointData.POSITION_PID_DELTA: 12,
    JointData.POSITION_FORCE_DELTA: 13,
    JointData.SIN: 14,
    JointData.COS: 15,
    JointData.MEASURED_ANGLE: 16,
    JointData.SENT_POSITION: 17,
}

JOINT6_SLOTS: dict[Joint6Data, int] = {
    Joint6Data.ANGLE: 18,
    Joint6Data.FORCE: 28,
}

JOINT7_SLOTS: dict[Joint7Data, int] = {
    Joint7Data.POSITION: 38,
    Joint7Data.FORCE: 48,
}


# =========================
# Encoding helpers
# =========================


def _token(value: object) -> str:
    """Format one payload field; ints stay ints, everything else goes through str()."""
    if isinstance(value, (np.integer, int)) and not isinstance(value, bool):
        return str(int(value))
    return str(value)


def encode_instruction(sequence: int, opcode: str, payload: Sequence[object] | str = ()) -> str:
    """
    1 <seq> 1 undefined <opcode> <payload...> ;
    A string payload is inserted verbatim; a sequence is space-joined.
    """
    if isinstance(payload, str):
        body = payload
    else:
        body = " ".join(_token(v) for v in payload)
    parts = [_HEADER_PREFIX, str(sequence), _HEADER_MIDDLE, str(opcode)]
    if body:
        parts.append(body)
    parts.append(TERMINATOR)
    return " ".join(parts)


def encode_joint_angles(angles: Sequence[float]) -> list[int]:
    """
    Scale joint angles in degrees to integer arcseconds (deg * 3600).
    Values are rounded to the nearest integer; no range checks are applied.
    """
    arr = np.asarray(angles, dtype=np.float64)
    return [int(v) for v in np.rint(arr * cfg.JOINT_SCALE).astype(np.int64)]


def encode_config_flag(value: str, true_value: str) -> int:
    """1 when value equals the menu's 'true' entry, 0 for anything else."""
    return 1 if value == true_value else 0


def encode_move_to(
    xyz: Sequence[float],
    direction: Sequence[object],
    left_right: str,
    up_down: str,
    in_out: str,
) -> list[object]:
    """
    Payload for the M (move to) instruction:
      x y z (metres -> micrometres), x_dir y_dir z_dir (verbatim),
      right? up? out? (0/1 flags)
    """
    position = np.rint(np.asarray(xyz, dtype=np.float64) * cfg.POSITION_SCALE).astype(np.int64)
    payload: list[object] = [int(v) for v in position]
    payload.extend(str(d) for d in direction)
    payload.append(encode_config_flag(left_right, "right"))
    payload.append(encode_config_flag(up_down, "up"))
    payload.append(encode_config_flag(in_out, "out"))
    return payload


# =========================
# Decoding helpers
# =========================


def decode_instruction(line: str) -> Instruction | None:
    """
    Parse an instruction line back into sequence, opcode and payload tokens.
    Returns None when the line does not follow the instruction layout.
    """
    if not line:
        return None
    tokens = line.strip().split()
    if len(tokens) < 6 or tokens[-1] != TERMINATOR:
        logger.debug(f"decode_instruction: not an instruction line '{line}'")
        return None
    if tokens[0] != _HEADER_PREFIX or tokens[2] != "1" or tokens[3] != "undefined":
        logger.debug(f"decode_instruction: unexpected header in '{line}'")
        return None
    try:
        sequence = int(tokens[1])
    except ValueError:
        logger.warning(f"decode_instruction: non-integer sequence in '{line}'")
        return None
    return Instruction(sequence=sequence, opcode=tokens[4], payload=tokens[5:-1])


def pack_status_frame(slots: Mapping[int, int] | Sequence[int]) -> bytes:
    """
    Build a 240-byte status frame.

    Accepts either a full/partial sequence of slot values (missing trailing
    slots are zero) or a {slot_index: value} mapping.
    """
    arr = np.zeros(cfg.STATUS_SLOTS, dtype=_SLOT_DTYPE)
    if isinstance(slots, Mapping):
        for index, value in slots.items():
            arr[int(index)] = int(value)
    else:
        values = np.asarray(slots, dtype=np.int64)
        if len(values) > cfg.STATUS_SLOTS:
            raise ValueError(f"status frame holds {cfg.STATUS_SLOTS} slots, got {len(values)}")
        arr[: len(values)] = values
    return arr.tobytes()


def unpack_status_frame(data: bytes | bytearray | memoryview) -> "StatusFrame":
    """
    Interpret raw bytes as a status frame.

    Frames shorter than 240 bytes raise MalformedFrameError. Longer frames are
    truncated to the first 240 bytes.
    """
    mv = memoryview(data).cast("B")
    if len(mv) < cfg.STATUS_FRAME_BYTES:
        raise MalformedFrameError(
            f"expected {cfg.STATUS_FRAME_BYTES} bytes, got {len(mv)}"
        )
    if len(mv) > cfg.STATUS_FRAME_BYTES:
        logger.debug(
            f"unpack_status_frame: truncating {len(mv)}-byte frame to {cfg.STATUS_FRAME_BYTES}"
        )
    slots = np.frombuffer(mv[: cfg.STATUS_FRAME_BYTES], dtype=_SLOT_DTYPE).copy()
    return StatusFrame(slots)


class StatusFrame:
    """
    Immutable snapshot of the 60-slot status frame.

    Menu arguments may be given as enum members or as their menu strings;
    unknown strings raise ValueError.
    """

    __slots__ = ("_slots",)

    def __init__(self, slots: np.ndarray | None = None) -> None:
        if slots is None:
            slots = np.zeros(cfg.STATUS_SLOTS, dtype=_SLOT_DTYPE)
        if slots.shape != (cfg.STATUS_SLOTS,):
            raise MalformedFrameError(f"expected {cfg.STATUS_SLOTS} slots, got shape {slots.shape}")
        slots = slots.astype(_SLOT_DTYPE, copy=False)
        slots.flags.writeable = False
        self._slots = slots

    @classmethod
    def empty(cls) -> "StatusFrame":
        """All-zero frame held before the arm has reported anything."""
        return cls()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatusFrame):
            return NotImplemented
        return bool(np.array_equal(self._slots, other._slots))

    def __repr__(self) -> str:
        return f"StatusFrame(oplet={self.last_oplet()!r}, errored={self.last_errored()})"

    def to_bytes(self) -> bytes:
        return self._slots.tobytes()

    def slot(self, index: int) -> int:
        if not 0 <= index < cfg.STATUS_SLOTS:
            raise IndexError(f"status slot {index} out of range 0..{cfg.STATUS_SLOTS - 1}")
        return int(self._slots[index])

    def last_value(self, kind: LastValue | str) -> int:
        return self.slot(LAST_VALUE_SLOTS[LastValue(kind)])

    def last_oplet(self) -> str:
        # Character codes are 16-bit code units on the host side
        return chr(self.slot(OPLET_SLOT) & 0xFFFF)

    def last_errored(self) -> bool:
        return self.slot(ERROR_SLOT) > 0

    def joint_value(self, joint: Joint | str, data: JointData | str) -> int:
        return self.slot(JOINT_DATA_SLOTS[JointData(data)] + JOINT_BASE_SLOTS[Joint(joint)])

    # Two-entry menus: anything but the first entry reads the force slot
    def joint6_value(self, data: Joint6Data | str) -> int:
        if data != Joint6Data.ANGLE:
            data = Joint6Data.FORCE
        return self.slot(JOINT6_SLOTS[Joint6Data(data)])

    def joint7_value(self, data: Joint7Data | str) -> int:
        if data != Joint7Data.POSITION:
            data = Joint7Data.FORCE
        return self.slot(JOINT7_SLOTS[Joint7Data(data)])

    def to_status(self) -> DexterStatus:
        """Decode every named field into an aggregate dict."""
        return DexterStatus(
            job_number=self.last_value(LastValue.JOB_NUMBER),
            instruction_number=self.last_value(LastValue.INSTRUCTION_NUMBER),
            start_time=self.last_value(LastValue.START_TIME),
            end_time=self.last_value(LastValue.END_TIME),
            oplet=self.last_oplet(),
            errored=self.last_errored(),
            joints={
                joint.value: {data.value: self.joint_value(joint, data) for data in JointData}
                for joint in Joint
            },
            joint6={data.value: self.joint6_value(data) for data in Joint6Data},
            joint7={data.value: self.joint7_value(data) for data in Joint7Data},
        )
