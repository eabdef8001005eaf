"""
Face rotation vocabulary for the GAN robot.

Moves are written in standard cube notation: a face letter optionally
followed by ``2`` (half turn), ``2'`` (half turn, counter-clockwise) or
``'`` (counter-clockwise quarter turn). Parsing is case-insensitive.

The robot only distinguishes 15 motions, so both half turn spellings of a
face share one code.
"""

import random
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping

from .protocol import INVALID_CODE

# Motorised faces in device code order
FACES = ("R", "F", "D", "L", "B")

# (notation suffix, code offset within the face)
ORIENTATIONS = (
    ("", 0),     # quarter turn
    ("2", 1),    # half turn
    ("2'", 1),   # half turn, reversed
    ("'", 2),    # quarter turn, reversed
)


class FaceRotation(Enum):
    """A single face rotation. Values are the notation strings."""
    R = "R"
    R2 = "R2"
    R2_PRIME = "R2'"
    R_PRIME = "R'"
    F = "F"
    F2 = "F2"
    F2_PRIME = "F2'"
    F_PRIME = "F'"
    D = "D"
    D2 = "D2"
    D2_PRIME = "D2'"
    D_PRIME = "D'"
    L = "L"
    L2 = "L2"
    L2_PRIME = "L2'"
    L_PRIME = "L'"
    B = "B"
    B2 = "B2"
    B2_PRIME = "B2'"
    B_PRIME = "B'"
    INVALID = "(Invalid)"

    def __str__(self) -> str:
        return display(self)

    @property
    def code(self) -> int:
        """Device code for this move (``INVALID_CODE`` for INVALID)."""
        return encode(self)


def _build_move_codes() -> Dict[FaceRotation, int]:
    codes = {}
    for face_index, face in enumerate(FACES):
        for suffix, offset in ORIENTATIONS:
            codes[FaceRotation(face + suffix)] = face_index * 3 + offset
    return codes


# Canonical move -> code table, in notation order
MOVE_CODES: Mapping[FaceRotation, int] = MappingProxyType(_build_move_codes())

ALL_MOVES = tuple(MOVE_CODES)

_MOVES_BY_NOTATION = {move.value.lower(): move for move in MOVE_CODES}


def parse(token: str) -> FaceRotation:
    """
    Parse one notation token.

    Args:
        token: Move such as ``R``, ``f2'`` or ``L'``

    Returns:
        The matching move, or ``FaceRotation.INVALID`` if the token is not a move
    """
    return _MOVES_BY_NOTATION.get(token.strip().lower(), FaceRotation.INVALID)


def parse_moves(line: str) -> List[FaceRotation]:
    """Parse a whitespace separated move sequence, keeping INVALID entries."""
    return [parse(token) for token in line.split()]


def encode(move: FaceRotation) -> int:
    """Return the device code for a move."""
    return MOVE_CODES.get(move, INVALID_CODE)


def display(move: FaceRotation) -> str:
    """Return the notation string for a move."""
    return move.value


def format_moves(moves: Iterable[FaceRotation]) -> str:
    return " ".join(display(m) for m in moves)


def random_moves(n: int) -> List[FaceRotation]:
    """
    Pick ``n`` distinct moves at random.

    Draws without replacement from the 20 notation moves, so two picks can
    still share a device code (e.g. ``R2`` and ``R2'``). Asking for more
    than 20 returns all 20.

    Args:
        n: Number of moves

    Returns:
        List of moves in random order
    """
    if n < 0:
        raise ValueError(f"Move count must not be negative, got {n}")
    return random.SystemRandom().sample(ALL_MOVES, min(n, len(ALL_MOVES)))
