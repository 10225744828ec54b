"""
CLI entry point for the dexter-console command.

Connects to the job engine, runs a single operation and prints the status
frame the arm reports afterwards.
"""

import argparse
import asyncio
import json
import logging
import sys

from dexter import config as cfg
from dexter.blocks import BlockDispatcher
from dexter.client.dexter_client import DexterClient
from dexter.client.transports import create_transport
from dexter.config import TRACE

logger = logging.getLogger(__name__)


def _parse_block_args(pairs: list[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"block argument must be KEY=VALUE, got '{pair}'")
        out[key.strip()] = value
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dexter-console", description="Dexter arm console")
    parser.add_argument("--url", default=None, help=f"Job engine WebSocket URL (default: {cfg.WS_URL})")
    parser.add_argument("--fake", action="store_true", help="Use the simulated arm instead of a socket")
    parser.add_argument("--timeout", type=float, default=cfg.OPEN_TIMEOUT_S,
                        help="Seconds to wait for status frames")

    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase verbosity; -v=INFO, -vv=DEBUG, -vvv=TRACE')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Enable quiet logging (WARNING level)')
    parser.add_argument('--log-level', choices=['TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Set specific log level')

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Request and print robot status")

    for name in ("move-joints", "pid-move-joints"):
        p = sub.add_parser(name, help="Move all five joints (degrees)")
        p.add_argument("angles", type=float, nargs=5, metavar="J")

    p = sub.add_parser("move-to", help="Move tool to x y z (metres)")
    p.add_argument("xyz", type=float, nargs=3, metavar="XYZ")
    p.add_argument("--dir", nargs=3, default=["0", "0", "-1"], metavar=("X_DIR", "Y_DIR", "Z_DIR"))
    p.add_argument("--config", nargs=3, default=["right", "up", "out"],
                   metavar=("LEFT_RIGHT", "UP_DOWN", "IN_OUT"))

    p = sub.add_parser("raw", help="Send a raw instruction")
    p.add_argument("opcode")
    p.add_argument("payload", nargs="?", default="")

    sub.add_parser("empty-queue", help="Empty the arm's instruction queue")

    p = sub.add_parser("block", help="Invoke a host block by opcode")
    p.add_argument("opcode")
    p.add_argument("args", nargs="*", metavar="KEY=VALUE")

    sub.add_parser("blocks", help="List block opcodes")
    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    if args.log_level:
        log_level = TRACE if args.log_level == 'TRACE' else getattr(logging, args.log_level)
    elif args.verbose >= 3:
        log_level = TRACE
    elif args.verbose >= 2:
        log_level = logging.DEBUG
    elif args.verbose == 1:
        log_level = logging.INFO
    elif args.quiet:
        log_level = logging.WARNING
    else:
        log_level = getattr(logging, cfg.LOG_LEVEL_DEFAULT)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


async def run(args: argparse.Namespace) -> int:
    transport = create_transport("mock" if args.fake else None)
    client = DexterClient(url=args.url, transport=transport)
    dispatcher = BlockDispatcher(client)

    if args.command == "blocks":
        for name in dispatcher.list_blocks():
            print(name)
        return 0

    try:
        client.connect()
        # on-open primes the frame with a status request
        await client.manager.wait_for_frame(timeout=args.timeout, after=0)

        result = None
        if args.command == "move-joints":
            client.move_all_joints(*args.angles)
        elif args.command == "pid-move-joints":
            client.pid_move_all_joints(*args.angles)
        elif args.command == "move-to":
            client.move_to(*args.xyz, *args.dir, *args.config)
        elif args.command == "raw":
            client.send_raw(args.opcode, args.payload)
        elif args.command == "empty-queue":
            client.empty_instruction_queue()
        elif args.command == "block":
            result = dispatcher.invoke(args.opcode, _parse_block_args(args.args))

        frame = await client.wait_for_status(timeout=args.timeout)
        if result is not None:
            print(json.dumps(result))
        else:
            print(json.dumps(frame.to_status(), indent=2))
        return 0
    except TimeoutError:
        logger.error(f"No status frame from {client.url} within {args.timeout}s")
        return 1
    except (KeyError, ValueError) as e:
        logger.error(f"Invalid request: {e}")
        return 2
    finally:
        client.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args)
    return asyncio.run(run(args))


def main_entry():
    """Entry point for the dexter-console command."""
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
