"""
Central configuration for Dexter bridge tunables and shared constants.
"""

import logging
import os

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")
# Add Logger.trace if missing
if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

TRACE_ENABLED = str(os.getenv("DEXTER_TRACE", "0")).lower() in ("1", "true", "yes", "on")

logger = logging.getLogger(__name__)

# Endpoint served by the Dexter job engine on the local machine
WS_URL: str = os.getenv("DEXTER_WS_URL", "ws://localhost:3000")

# WebSocket close code reported when the connection dropped without a close frame
ABNORMAL_CLOSE_CODE: int = 1006

# Status frame layout: 60 little-endian signed 32-bit slots
STATUS_SLOTS: int = 60
SLOT_BYTES: int = 4
STATUS_FRAME_BYTES: int = STATUS_SLOTS * SLOT_BYTES

# Unit scaling applied by the encoder
JOINT_SCALE: int = 3600  # degrees -> arcseconds
POSITION_SCALE: int = 1_000_000  # metres -> micrometres

# Seconds the CLI waits for the first status frame after connecting
OPEN_TIMEOUT_S: float = float(os.getenv("DEXTER_OPEN_TIMEOUT_S", "3.0"))

LOG_LEVEL_DEFAULT: str = "INFO"