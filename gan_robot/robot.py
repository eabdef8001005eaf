"""
High-level GAN robot controller.

A robot session starts as an ``UninitializedRobot`` holding where to find the
device. ``connect()`` scans for it, connects and resolves the move and status
characteristics, returning a ``ConnectedRobot``. Only the connected robot can
move faces.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from bleak import BleakClient, BleakScanner
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.backends.device import BLEDevice
from bleak.exc import BleakBluetoothNotAvailableError, BleakError

from .commands import build_move_packet, expected_duration
from .config import RobotConfig
from .errors import CharacteristicNotFoundError, DeviceNotFoundError, NoAdapterError
from .moves import FaceRotation, encode, format_moves, random_moves
from .protocol import DEFAULT_NAME, POLL_INTERVAL, SETTLE_RATIO, Characteristics

logger = logging.getLogger(__name__)


def _adapter_kwargs(adapter: Optional[str]) -> Dict[str, str]:
    return {"adapter": adapter} if adapter else {}


class UninitializedRobot:
    """
    A robot that has not been found yet.

    Usage:
        robot = await UninitializedRobot("GAN-a7f13").connect()
        async with robot:
            await robot.scramble(8)
    """

    def __init__(
        self,
        name: str = DEFAULT_NAME,
        move_characteristic: str = Characteristics.MOVE,
        status_characteristic: str = Characteristics.STATUS,
        scan_timeout: Optional[float] = None,
        adapter: Optional[str] = None,
    ):
        """
        Initialize robot settings.

        Args:
            name: Advertised local name of the robot
            move_characteristic: UUID of the move write characteristic
            status_characteristic: UUID of the status read characteristic
            scan_timeout: Seconds to scan before giving up, None to scan until found
            adapter: Local Bluetooth adapter to use, None for the first available
        """
        self.config = RobotConfig(
            name=name,
            move_characteristic=move_characteristic,
            status_characteristic=status_characteristic,
            scan_timeout=scan_timeout,
            adapter=adapter,
        )
        self._consumed = False

    @classmethod
    def from_config(cls, config: RobotConfig) -> "UninitializedRobot":
        return cls(
            name=config.name,
            move_characteristic=config.move_characteristic,
            status_characteristic=config.status_characteristic,
            scan_timeout=config.scan_timeout,
            adapter=config.adapter,
        )

    @property
    def name(self) -> str:
        return self.config.name

    async def connect(self) -> "ConnectedRobot":
        """
        Find the robot, connect and resolve its characteristics.

        The uninitialized robot is used up by a successful connect.

        Returns:
            The connected robot

        Raises:
            NoAdapterError: No Bluetooth adapter is available
            DeviceNotFoundError: The scan ended or timed out without a match
            CharacteristicNotFoundError: A configured characteristic is missing
            BleakError: Any failure from the BLE stack
        """
        if self._consumed:
            raise RuntimeError("Robot is already connected")

        device = await self._find_device()

        client = BleakClient(device, **_adapter_kwargs(self.config.adapter))
        await client.connect()
        logger.info(f"Connected: {device.address} {self.name}")

        try:
            move_char = self._find_characteristic(client, self.config.move_characteristic)
            status_char = self._find_characteristic(client, self.config.status_characteristic)
        except CharacteristicNotFoundError:
            try:
                await client.disconnect()
            except BleakError as e:
                logger.warning(f"Disconnect after failed lookup failed: {e}")
            raise

        self._consumed = True
        return ConnectedRobot(client, move_char, status_char, name=self.name)

    async def _find_device(self) -> BLEDevice:
        """Scan until a device advertising the configured name shows up."""
        logger.info(f"Scanning for GAN robot '{self.name}'")
        try:
            return await asyncio.wait_for(self._scan(), timeout=self.config.scan_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Scan timed out after {self.config.scan_timeout}s")
            raise DeviceNotFoundError(self.name) from None

    async def _scan(self) -> BLEDevice:
        try:
            scanner = BleakScanner(**_adapter_kwargs(self.config.adapter))
            async with scanner:
                async for device, advertisement in scanner.advertisement_data():
                    if advertisement.local_name != self.name:
                        continue
                    logger.debug(f"Found {self.name} at {device.address}")
                    return device
        except BleakBluetoothNotAvailableError as e:
            raise NoAdapterError(str(e)) from e

        raise DeviceNotFoundError(self.name)

    @staticmethod
    def _find_characteristic(client: BleakClient, uuid: str) -> BleakGATTCharacteristic:
        characteristic = client.services.get_characteristic(uuid)
        if characteristic is None:
            raise CharacteristicNotFoundError(uuid)
        return characteristic


class ConnectedRobot:
    """
    A connected GAN robot.

    Moves are sent in one write of up to 36 moves; each call returns once the
    robot reports that no moves are left. Calls must not overlap.
    """

    def __init__(
        self,
        client: BleakClient,
        move_characteristic: BleakGATTCharacteristic,
        status_characteristic: BleakGATTCharacteristic,
        name: str = DEFAULT_NAME,
    ):
        self.name = name
        self._client: Optional[BleakClient] = client
        self._move_char = move_characteristic
        self._status_char = status_characteristic

    async def __aenter__(self) -> "ConnectedRobot":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - disconnects from the robot."""
        await self.disconnect()

    @property
    def is_connected(self) -> bool:
        """Check if the robot connection is still usable."""
        return self._client is not None and self._client.is_connected

    def _require_client(self) -> BleakClient:
        if self._client is None:
            raise RuntimeError("Not connected to robot")
        return self._client

    async def scramble(self, num_moves: int) -> List[FaceRotation]:
        """
        Scramble the cube with distinct random moves.

        Args:
            num_moves: Number of moves; more than 20 sends all 20 once

        Returns:
            The moves that were sent, in order
        """
        logger.info(f"Scrambling with {num_moves} moves")
        moves = random_moves(num_moves)
        await self.do_moves(moves)
        return moves

    async def do_moves(self, moves: Sequence[FaceRotation]) -> None:
        """
        Perform a move sequence and wait until the robot has finished it.

        INVALID entries are dropped without error.

        Args:
            moves: Moves to perform, at most 36 after dropping INVALID entries

        Raises:
            TooManyMovesError: More than 36 valid moves were given
        """
        logger.info(f"Doing moves: {format_moves(moves)}")
        codes = [encode(m) for m in moves if m is not FaceRotation.INVALID]
        await self.do_moves_raw(codes)

    async def do_moves_raw(self, codes: Sequence[int]) -> None:
        """
        Send device move codes directly and wait for completion.

        Args:
            codes: Device codes (0-15), at most 36

        Raises:
            TooManyMovesError: More than 36 codes were given
            ValueError: A code does not fit in a nibble
        """
        client = self._require_client()
        logger.debug(f"Move codes: {' '.join(str(c) for c in codes)}")

        packet = build_move_packet(codes)
        duration = expected_duration(codes)

        await client.write_gatt_char(self._move_char, packet, response=False)
        await asyncio.sleep(duration * SETTLE_RATIO)

        while await self.get_remaining_moves() > 0:
            await asyncio.sleep(POLL_INTERVAL)

    async def get_remaining_moves(self) -> int:
        """Read how many moves the robot still has queued."""
        client = self._require_client()
        status = await client.read_gatt_char(self._status_char)
        remaining = status[0] if status else 0
        logger.debug(f"Remaining moves: {remaining}")
        return remaining

    async def disconnect(self) -> None:
        """Disconnect from the robot. The robot cannot be used afterwards."""
        if self._client is None:
            return
        logger.info("Disconnecting from GAN robot")
        client, self._client = self._client, None
        await client.disconnect()


# Utility functions

async def scan_for_robots(
    timeout: float = 10.0,
    name: Optional[str] = DEFAULT_NAME,
    adapter: Optional[str] = None,
) -> List[BLEDevice]:
    """
    Scan for nearby BLE devices.

    Args:
        timeout: Scan duration in seconds
        name: Only return devices advertising exactly this name, None for all
        adapter: Local Bluetooth adapter to use, None for the default

    Returns:
        List of discovered devices
    """
    try:
        discovered = await BleakScanner.discover(
            timeout=timeout, return_adv=True, **_adapter_kwargs(adapter)
        )
    except BleakBluetoothNotAvailableError as e:
        raise NoAdapterError(str(e)) from e

    return [
        device
        for device, advertisement in discovered.values()
        if name is None or advertisement.local_name == name
    ]
