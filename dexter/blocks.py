"""
Block registry for the host block-programming runtime.

The runtime invokes operations by block opcode with a dict of block
arguments (J1..J5, X, X_DIR, THING, ...). This module maps each opcode onto
the matching DexterClient method, fills in the block defaults and exposes
the menus the runtime offers for string arguments.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from dexter.client.dexter_client import DexterClient
from dexter.protocol.types import Joint, Joint6Data, Joint7Data, JointData, LastValue
from dexter.utils.errors import UnknownBlockError

logger = logging.getLogger(__name__)


MENUS: dict[str, list[str]] = {
    "dexDirDirs": ["-1", "0", "1"],
    "dexLeftRight": ["left", "right"],
    "dexUpDown": ["up", "down"],
    "dexInOut": ["in", "out"],
    "dexLastThing": [k.value for k in LastValue],
    "dexJointData": [d.value for d in JointData],
    "dexJointNames": [j.value for j in Joint],
    "dexJoint6Data": [d.value for d in Joint6Data],
    "dexJoint7Data": [d.value for d in Joint7Data],
}

_JOINT_DEFAULTS = {"J1": 0, "J2": 0, "J3": 135, "J4": 45, "J5": 0}


@dataclass(frozen=True)
class BlockSpec:
    """One host operation: block argument names -> client method parameters."""

    opcode: str
    method: str
    # Ordered (block argument, client parameter, default)
    arguments: tuple[tuple[str, str, Any], ...] = ()
    reporter: bool = False

    def bind(self, args: Mapping[str, Any] | None) -> dict[str, Any]:
        args = args or {}
        return {param: args.get(name, default) for name, param, default in self.arguments}


def _joint_args() -> tuple[tuple[str, str, Any], ...]:
    return tuple((name, name.lower(), default) for name, default in _JOINT_DEFAULTS.items())


BLOCKS: dict[str, BlockSpec] = {
    block.opcode: block
    for block in (
        BlockSpec("moveAllJoints", "move_all_joints", _joint_args()),
        BlockSpec(
            "moveTo",
            "move_to",
            (
                ("X", "x", 0),
                ("Y", "y", 0.5),
                ("Z", "z", 0.075),
                ("X_DIR", "x_dir", "0"),
                ("Y_DIR", "y_dir", "0"),
                ("Z_DIR", "z_dir", "-1"),
                ("LEFT_RIGHT", "left_right", "right"),
                ("UP_DOWN", "up_down", "up"),
                ("IN_OUT", "in_out", "out"),
            ),
        ),
        BlockSpec("pidMoveAllJoints", "pid_move_all_joints", _joint_args()),
        BlockSpec("getRobotStatus", "get_robot_status"),
        BlockSpec("getLast", "get_last", (("THING", "kind", LastValue.JOB_NUMBER.value),), reporter=True),
        BlockSpec("getLastOplet", "get_last_oplet", reporter=True),
        BlockSpec("getLastErrored", "get_last_errored", reporter=True),
        BlockSpec(
            "getJoint",
            "get_joint",
            (("JOINT", "joint", Joint.BASE.value), ("DATA", "data", JointData.SIN.value)),
            reporter=True,
        ),
        BlockSpec("getJoint6", "get_joint6", (("DATA", "data", Joint6Data.ANGLE.value),), reporter=True),
        BlockSpec("getJoint7", "get_joint7", (("DATA", "data", Joint7Data.POSITION.value),), reporter=True),
        BlockSpec("sendRaw", "send_raw", (("CMD", "opcode", "g"), ("PAYLOAD", "payload", ""))),
        BlockSpec("reload", "reload"),
        BlockSpec("emptyInstructionQueue", "empty_instruction_queue"),
    )
}
# Older hosts register the raw command block under the generic opcode name
BLOCKS["opcode"] = BLOCKS["sendRaw"]


@dataclass
class BlockDispatcher:
    """Routes host block invocations to a DexterClient."""

    client: DexterClient
    blocks: dict[str, BlockSpec] = field(default_factory=lambda: dict(BLOCKS))

    def list_blocks(self) -> list[str]:
        return sorted(self.blocks.keys())

    def invoke(self, opcode: str, args: Mapping[str, Any] | None = None) -> Any:
        """
        Run a block. Reporter blocks return the decoded value; command
        blocks return None.
        """
        block = self.blocks.get(opcode)
        if block is None:
            raise UnknownBlockError(opcode)
        kwargs = block.bind(args)
        logger.debug(f"block {opcode} -> {block.method}({kwargs})")
        result = getattr(self.client, block.method)(**kwargs)
        return result if block.reporter else None
