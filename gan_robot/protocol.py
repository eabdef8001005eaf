"""
Protocol constants for GAN robot communication.

The robot turns five faces of a cube (the sixth face sits in the cradle).
Moves are written as a nibble-packed payload to one characteristic and
progress is read back from another.
"""

# Advertised local name of the robot
DEFAULT_NAME = "GAN-a7f13"


# BLE Characteristic UUIDs
class Characteristics:
    """Default BLE GATT characteristic UUIDs for robot communication."""

    # Move payload channel (write without response)
    MOVE = "0000fff3-0000-1000-8000-00805f9b34fb"

    # Status channel, first byte is the number of moves still queued
    STATUS = "0000fff2-0000-1000-8000-00805f9b34fb"


# Move payload is a fixed 18 bytes, two moves per byte
PAYLOAD_SIZE = 18
MAX_MOVES_PER_WRITE = PAYLOAD_SIZE * 2

# Filler nibble for the unused half of the last byte
UNUSED_SLOT = 0x0F

# Filler byte for everything after the last move
IDLE_BYTE = 0xFF

# Code reserved for tokens that are not moves; never sent to the robot
INVALID_CODE = 0xFF

# Largest code that fits a payload nibble
MAX_CODE = 0x0F

# Rough motor timings in seconds
QUARTER_TURN_DURATION = 0.150
HALF_TURN_DURATION = 0.250

# Fraction of the expected duration to wait before polling status
SETTLE_RATIO = 0.75

# Delay between status reads while moves are still queued
POLL_INTERVAL = 0.1
