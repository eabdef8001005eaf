"""
Exceptions raised by the robot controller.

Failures from the BLE stack itself are not wrapped: they surface as
``bleak.exc.BleakError``, re-exported here as ``TransportError``.
"""

from bleak.exc import BleakError

from .protocol import MAX_MOVES_PER_WRITE

TransportError = BleakError


class RobotError(Exception):
    """Base class for robot controller errors."""


class NoAdapterError(RobotError):
    """No local Bluetooth adapter is available."""

    def __init__(self, detail: str = ""):
        message = "No Bluetooth adapter available"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DeviceNotFoundError(RobotError):
    """Scanning ended without seeing a device with the configured name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"GAN robot '{name}' not found")


class CharacteristicNotFoundError(RobotError):
    """A required characteristic is missing from the connected device."""

    def __init__(self, uuid: str):
        self.uuid = uuid
        super().__init__(f"Characteristic {uuid} not found")


class TooManyMovesError(RobotError):
    """More moves were requested than fit in a single write."""

    def __init__(self, count: int, limit: int = MAX_MOVES_PER_WRITE):
        self.count = count
        self.limit = limit
        super().__init__(
            f"Too many moves: {count}. Can only do {limit} moves at a time"
        )
