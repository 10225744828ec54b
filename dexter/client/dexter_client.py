"""
Host-facing client for the Dexter arm.

Motion/control commands: fire-and-forget instruction lines
Status queries: synchronous reads of the last cached status frame
"""

import logging
from collections.abc import Sequence

from ..protocol import wire
from ..protocol.types import Joint, Joint6Data, Joint7Data, JointData, LastValue, Oplet
from .connection import ConnectionManager
from .transports import create_transport
from .transports.base import Transport

logger = logging.getLogger(__name__)


class DexterClient:
    """
    One method per host operation.

    Commands return nothing; queries return the primitive value read from
    the most recent status frame (all zeros until the arm has reported).
    """

    def __init__(
        self,
        url: str | None = None,
        transport: Transport | None = None,
        manager: ConnectionManager | None = None,
    ) -> None:
        if manager is None:
            manager = ConnectionManager(transport or create_transport(), url=url)
        self._manager = manager

    @property
    def manager(self) -> ConnectionManager:
        return self._manager

    @property
    def url(self) -> str:
        return self._manager.url

    def connect(self) -> None:
        """Start the connection now instead of on the first command."""
        self._manager.ensure_open()

    def close(self) -> None:
        self._manager.close()

    # --------------- Motion / Control ---------------

    def move_all_joints(
        self,
        j1: float = 0,
        j2: float = 0,
        j3: float = 135,
        j4: float = 45,
        j5: float = 0,
    ) -> None:
        logger.debug(f"a {j1} {j2} {j3} {j4} {j5}")
        self._manager.send_instruction(
            Oplet.MOVE_ALL_JOINTS.value, wire.encode_joint_angles([j1, j2, j3, j4, j5])
        )

    def pid_move_all_joints(
        self,
        j1: float = 0,
        j2: float = 0,
        j3: float = 135,
        j4: float = 45,
        j5: float = 0,
    ) -> None:
        logger.debug(f"P {j1} {j2} {j3} {j4} {j5}")
        self._manager.send_instruction(
            Oplet.PID_MOVE_ALL_JOINTS.value, wire.encode_joint_angles([j1, j2, j3, j4, j5])
        )

    def move_to(
        self,
        x: float = 0,
        y: float = 0.5,
        z: float = 0.075,
        x_dir: str = "0",
        y_dir: str = "0",
        z_dir: str = "-1",
        left_right: str = "right",
        up_down: str = "up",
        in_out: str = "out",
    ) -> None:
        """
        Move the tool to (x, y, z) metres pointing along (x_dir, y_dir, z_dir).
        Direction components are sent verbatim; configuration strings other
        than right/up/out encode as 0.
        """
        logger.debug(f"M {x} {y} {z} {x_dir} {y_dir} {z_dir} {left_right} {up_down} {in_out}")
        self._manager.send_instruction(
            Oplet.MOVE_TO.value,
            wire.encode_move_to((x, y, z), (x_dir, y_dir, z_dir), left_right, up_down, in_out),
        )

    def get_robot_status(self) -> None:
        """Ask the arm to push a fresh status frame."""
        logger.debug("g")
        self._manager.send_instruction(Oplet.GET_ROBOT_STATUS.value)

    def send_raw(self, opcode: str = "g", payload: str = "") -> None:
        """Send an arbitrary instruction; opcode and payload are inserted verbatim."""
        logger.debug(f"raw {opcode} {payload}".rstrip())
        self._manager.send_instruction(opcode, payload)

    def empty_instruction_queue(self) -> None:
        logger.debug("F")
        self._manager.send_line(wire.EMPTY_QUEUE_INSTRUCTION)

    def reload(self) -> None:
        self._manager.reload()

    # --------------- Status queries ---------------

    def get_last(self, kind: LastValue | str = LastValue.JOB_NUMBER) -> int:
        return self._manager.frame.last_value(kind)

    def get_last_oplet(self) -> str:
        return self._manager.frame.last_oplet()

    def get_last_errored(self) -> bool:
        return self._manager.frame.last_errored()

    def get_joint(self, joint: Joint | str = Joint.BASE, data: JointData | str = JointData.SIN) -> int:
        return self._manager.frame.joint_value(joint, data)

    def get_joint6(self, data: Joint6Data | str = Joint6Data.ANGLE) -> int:
        return self._manager.frame.joint6_value(data)

    def get_joint7(self, data: Joint7Data | str = Joint7Data.POSITION) -> int:
        return self._manager.frame.joint7_value(data)

    # --------------- Async helpers ---------------

    async def wait_for_status(self, timeout: float | None = None) -> wire.StatusFrame:
        """Request a status frame and wait for the reply."""
        version = self._manager.frame_version
        self.get_robot_status()
        return await self._manager.wait_for_frame(timeout, after=version)
