"""
GAN Robot Controller

A Python library for driving the GAN cube robot over Bluetooth Low Energy.
Face rotations are sent in standard cube notation and each call waits until
the robot reports that it has finished.

Usage:
    from gan_robot import UninitializedRobot, parse_moves

    robot = await UninitializedRobot("GAN-a7f13").connect()
    async with robot:
        await robot.do_moves(parse_moves("R F' D2"))
        await robot.scramble(8)

Or use the CLI:
    gan-robot scramble --num 8
    gan-robot move "R F' D2"
    gan-robot repl
"""

from .commands import build_move_packet, expected_duration
from .config import RobotConfig
from .errors import (
    CharacteristicNotFoundError,
    DeviceNotFoundError,
    NoAdapterError,
    RobotError,
    TooManyMovesError,
    TransportError,
)
from .moves import FaceRotation, display, encode, parse, parse_moves, random_moves
from .protocol import Characteristics, DEFAULT_NAME, MAX_MOVES_PER_WRITE
from .robot import ConnectedRobot, UninitializedRobot, scan_for_robots

__version__ = "0.1.0"

__all__ = [
    # Robot session
    "UninitializedRobot",
    "ConnectedRobot",
    "RobotConfig",

    # Utility functions
    "scan_for_robots",

    # Move notation
    "FaceRotation",
    "parse",
    "parse_moves",
    "display",
    "encode",
    "random_moves",

    # Errors
    "RobotError",
    "NoAdapterError",
    "DeviceNotFoundError",
    "CharacteristicNotFoundError",
    "TooManyMovesError",
    "TransportError",

    # Low-level access
    "build_move_packet",
    "expected_duration",
    "Characteristics",
    "DEFAULT_NAME",
    "MAX_MOVES_PER_WRITE",
]
