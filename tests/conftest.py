"""
Shared fixtures for the GAN robot tests.

BLE objects are replaced with unittest.mock stand-ins so no adapter or
robot is needed.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gan_robot.protocol import Characteristics
from gan_robot.robot import ConnectedRobot


# ============================================================================
# Helpers
# ============================================================================

def make_device(name, address="AA:BB:CC:DD:EE:FF"):
    """Build a discovered device and its advertisement."""
    device = SimpleNamespace(address=address, name=name)
    advertisement = SimpleNamespace(local_name=name)
    return device, advertisement


class FakeScanner:
    """Stand-in for BleakScanner that replays a fixed list of advertisements."""

    def __init__(self, advertisements, hang=False, error=None):
        self.advertisements = advertisements
        self.hang = hang
        self.error = error
        self.entered = False
        self.exited = False
        self.kwargs = {}

    def __call__(self, **kwargs):
        self.kwargs = kwargs
        return self

    async def __aenter__(self):
        if self.error:
            raise self.error
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    async def advertisement_data(self):
        for device, advertisement in self.advertisements:
            yield device, advertisement
        if self.hang:
            await asyncio.Event().wait()


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def characteristics():
    """Resolved move and status characteristics keyed by UUID."""
    return {
        Characteristics.MOVE: SimpleNamespace(uuid=Characteristics.MOVE),
        Characteristics.STATUS: SimpleNamespace(uuid=Characteristics.STATUS),
    }


@pytest.fixture
def mock_client(characteristics):
    """
    Provide a mock BleakClient exposing both robot characteristics.

    The status characteristic reports an idle robot unless overridden.
    """
    client = MagicMock()
    client.is_connected = True
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    client.write_gatt_char = AsyncMock()
    client.read_gatt_char = AsyncMock(return_value=bytearray([0]))
    client.services.get_characteristic = MagicMock(side_effect=characteristics.get)
    return client


@pytest.fixture
def connected_robot(mock_client, characteristics):
    """A ConnectedRobot wired to the mock client."""
    return ConnectedRobot(
        mock_client,
        characteristics[Characteristics.MOVE],
        characteristics[Characteristics.STATUS],
        name="GAN-test",
    )


@pytest.fixture
def fake_sleep():
    """Replace asyncio.sleep in the robot module and record requested delays."""
    with patch("gan_robot.robot.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep
