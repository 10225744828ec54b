"""
Async client quickstart for the Dexter bridge.
- Connects to a job engine (or the simulated arm with DEXTER_FAKE_ROBOT=1)
- Moves all joints, then reads a few values back from the status frame

Run from the repository root:
    DEXTER_FAKE_ROBOT=1 python examples/async_client_quickstart.py
"""

import asyncio

from dexter import DexterClient

URL = "ws://localhost:3000"


async def run_client() -> int:
    client = DexterClient(url=URL)
    try:
        client.connect()
        try:
            await client.manager.wait_for_frame(timeout=3.0, after=0)
        except TimeoutError:
            print(f"no status from {URL}")
            return 1
        print("connected, last oplet:", client.get_last_oplet())

        # Home-ish pose
        client.move_all_joints(0, 0, 135, 45, 0)
        frame = await client.wait_for_status(timeout=3.0)
        print("errored:", frame.last_errored())
        print("end measured angle (arcsec):", client.get_joint("end", "measured angle"))
        print("joint 6 angle:", client.get_joint6("angle"))

        client.empty_instruction_queue()
        return 0
    finally:
        client.close()


def main() -> None:
    raise SystemExit(asyncio.run(run_client()))


if __name__ == "__main__":
    main()
