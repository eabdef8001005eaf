"""
Command-line interface for the GAN robot controller.

Usage:
    gan-robot scan
    gan-robot scramble [--num N]
    gan-robot move "<moves>"
    gan-robot repl [--debug]

Connection settings default to the GAN_ROBOT_* environment variables.
"""

import argparse
import asyncio
import logging
import sys

# Enable command history for the REPL (up/down arrows)
try:
    import readline  # noqa: F401 - import enables history for input()
except ImportError:
    pass  # readline not available on some platforms

from .commands import parse_raw_codes
from .config import LOG_DATEFMT, LOG_FORMAT, RobotConfig
from .errors import RobotError, TransportError
from .moves import format_moves, parse_moves
from .protocol import MAX_MOVES_PER_WRITE
from .robot import ConnectedRobot, UninitializedRobot, scan_for_robots

EXIT_COMMANDS = ("exit", "quit", "q")


def _config_from_args(args: argparse.Namespace) -> RobotConfig:
    return RobotConfig(
        name=args.name,
        move_characteristic=args.move_characteristic,
        status_characteristic=args.status_characteristic,
        scan_timeout=args.scan_timeout,
        adapter=args.adapter,
    )


async def _connect(args: argparse.Namespace) -> ConnectedRobot:
    config = _config_from_args(args)
    print(f"Connecting to {config.name}...")
    return await UninitializedRobot.from_config(config).connect()


async def cmd_scan(args: argparse.Namespace) -> int:
    """Scan for nearby BLE devices."""
    name = None if args.all else args.name
    scan_type = "all BLE devices" if args.all else f"'{args.name}'"
    print(f"Scanning for {scan_type} ({args.timeout}s)...")

    devices = await scan_for_robots(timeout=args.timeout, name=name, adapter=args.adapter)

    if not devices:
        if name:
            print("No robot found. Try --all to see all BLE devices.")
        else:
            print("No devices found.")
        return 1

    print(f"\nFound {len(devices)} device(s):\n")
    for i, device in enumerate(devices, 1):
        print(f"  {i}. {device.name or '(unnamed)'}")
        print(f"     Address: {device.address}")
        print()

    return 0


async def cmd_scramble(args: argparse.Namespace) -> int:
    """Scramble the cube with random moves."""
    if not 0 <= args.num <= MAX_MOVES_PER_WRITE:
        print(f"Error: Too many moves: {args.num}. Can only scramble with {MAX_MOVES_PER_WRITE} moves at a time")
        return 1

    async with await _connect(args) as robot:
        moves = await robot.scramble(args.num)
        print(f"Scrambled: {format_moves(moves)}")
    return 0


async def cmd_move(args: argparse.Namespace) -> int:
    """Perform a move sequence."""
    moves = parse_moves(args.moves)
    async with await _connect(args) as robot:
        await robot.do_moves(moves)
        print("Done.")
    return 0


async def cmd_repl(args: argparse.Namespace) -> int:
    """Read move sequences line by line."""
    async with await _connect(args) as robot:
        print("Connected! Type moves separated by spaces, or 'exit' to quit.")
        if args.debug:
            print("Debug mode: enter raw move codes (0-14), e.g. 0 3 7")
        print()

        while True:
            try:
                line = input("> ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nExiting.")
                break

            if not line:
                continue
            if line.lower() in EXIT_COMMANDS:
                break

            try:
                if args.debug:
                    await robot.do_moves_raw(parse_raw_codes(line))
                else:
                    await robot.do_moves(parse_moves(line))
                print("OK")
            except (RobotError, ValueError) as e:
                print(f"Error: {e}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    defaults = RobotConfig.from_env()

    parser = argparse.ArgumentParser(
        prog="gan-robot",
        description="Control a GAN cube robot over Bluetooth"
    )
    parser.add_argument("-n", "--name", default=defaults.name,
                        help=f"Advertised robot name (default: {defaults.name})")
    parser.add_argument("-m", "--move-characteristic", default=defaults.move_characteristic,
                        help="Move characteristic UUID")
    parser.add_argument("-s", "--status-characteristic", default=defaults.status_characteristic,
                        help="Status characteristic UUID")
    parser.add_argument("-t", "--scan-timeout", type=float, default=defaults.scan_timeout,
                        help="Give up scanning after this many seconds (default: scan until found)")
    parser.add_argument("--adapter", default=defaults.adapter,
                        help="Bluetooth adapter to use, e.g. hci0 (default: first available)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Scan command
    scan_parser = subparsers.add_parser("scan", help="Scan for nearby robots")
    scan_parser.add_argument("--timeout", type=float, default=10.0,
                             help="Scan duration in seconds (default: 10)")
    scan_parser.add_argument("-a", "--all", action="store_true",
                             help="Show all BLE devices, not just the robot")

    # Scramble command
    scramble_parser = subparsers.add_parser("scramble", help="Scramble the cube")
    scramble_parser.add_argument("--num", type=int, default=8,
                                 help="Number of random moves (default: 8)")

    # Move command
    move_parser = subparsers.add_parser("move", help="Perform a move sequence")
    move_parser.add_argument("moves",
                             help="Moves separated by whitespace, e.g. \"R F' D2 L2' B\"")

    # REPL command
    repl_parser = subparsers.add_parser("repl", help="Enter moves interactively")
    repl_parser.add_argument("-d", "--debug", action="store_true",
                             help="Enter raw move codes instead of move notation")

    return parser


def main() -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT
    )

    # Dispatch to async handler
    handlers = {
        "scan": cmd_scan,
        "scramble": cmd_scramble,
        "move": cmd_move,
        "repl": cmd_repl,
    }

    handler = handlers.get(args.command)
    if not handler:
        parser.print_help()
        return 1

    try:
        return asyncio.run(handler(args))
    except (RobotError, TransportError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
