"""
Move packet builder for the GAN robot.

Each write carries up to 36 moves packed two per byte into a fixed 18-byte
payload, first move in the high nibble.
"""

import logging
from typing import List, Sequence

from .errors import TooManyMovesError
from .protocol import (
    HALF_TURN_DURATION,
    IDLE_BYTE,
    MAX_CODE,
    MAX_MOVES_PER_WRITE,
    PAYLOAD_SIZE,
    QUARTER_TURN_DURATION,
    UNUSED_SLOT,
)

logger = logging.getLogger(__name__)


def build_move_packet(codes: Sequence[int]) -> bytes:
    """
    Pack move codes into a move payload.

    Packet format: [code0 << 4 | code1][code2 << 4 | code3]...[0xff padding]
    An odd count leaves the last low nibble as 0xf.

    Args:
        codes: Device move codes (0-15), at most 36

    Returns:
        18-byte payload ready to write

    Raises:
        TooManyMovesError: More than 36 codes were given
        ValueError: A code does not fit in a nibble
    """
    if len(codes) > MAX_MOVES_PER_WRITE:
        raise TooManyMovesError(len(codes))
    for code in codes:
        if not 0 <= code <= MAX_CODE:
            raise ValueError(f"Move code out of range: {code}")

    packet = bytearray(PAYLOAD_SIZE)
    for i, code in enumerate(codes):
        byte_index = i // 2
        if i % 2 == 0:
            packet[byte_index] = code * 0x10
        else:
            packet[byte_index] += code

    if len(codes) % 2 == 1:
        packet[len(codes) // 2] += UNUSED_SLOT

    for i in range((len(codes) + 1) // 2, PAYLOAD_SIZE):
        packet[i] = IDLE_BYTE

    return bytes(packet)


def is_half_turn(code: int) -> bool:
    return code % 3 == 1


def move_duration(code: int) -> float:
    """Approximate seconds the robot needs for one move."""
    if is_half_turn(code):
        return HALF_TURN_DURATION
    return QUARTER_TURN_DURATION


def expected_duration(codes: Sequence[int]) -> float:
    """Approximate seconds the robot needs for a whole sequence."""
    return sum(move_duration(code) for code in codes)


def parse_raw_codes(line: str) -> List[int]:
    """
    Parse whitespace separated integer codes, skipping anything else.

    Used by the debug input modes that bypass move notation.
    """
    codes = []
    for token in line.split():
        try:
            codes.append(int(token))
        except ValueError:
            logger.warning(f"Ignoring non-numeric move code: {token}")
    return codes
