"""
Connection settings for the GAN robot.

Settings are passed around explicitly as a ``RobotConfig`` value. The
environment is only consulted when ``RobotConfig.from_env()`` is called.
"""

import os
import uuid
from dataclasses import dataclass
from typing import Mapping, Optional

from .protocol import DEFAULT_NAME, Characteristics

ENV_NAME = "GAN_ROBOT_NAME"
ENV_MOVE_CHARACTERISTIC = "GAN_ROBOT_MOVE_CHARACTERISTIC"
ENV_STATUS_CHARACTERISTIC = "GAN_ROBOT_STATUS_CHARACTERISTIC"
ENV_SCAN_TIMEOUT = "GAN_ROBOT_SCAN_TIMEOUT"
ENV_ADAPTER = "GAN_ROBOT_ADAPTER"

# Shared by the gan-robot and gan-robot-osc entry points
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S %z"


def normalize_uuid(value: str) -> str:
    """
    Return a UUID string in canonical lower-case form.

    Raises:
        ValueError: If the value is not a UUID
    """
    try:
        return str(uuid.UUID(value))
    except (ValueError, AttributeError, TypeError):
        raise ValueError(f"Invalid characteristic UUID: {value!r}") from None


@dataclass(frozen=True)
class RobotConfig:
    """
    Where to find the robot and how long to look for it.

    Attributes:
        name: Advertised local name to match exactly
        move_characteristic: UUID of the move write characteristic
        status_characteristic: UUID of the status read characteristic
        scan_timeout: Seconds to scan before giving up, None to scan forever
        adapter: Local adapter to scan with (e.g. "hci0"), None for the default
    """

    name: str = DEFAULT_NAME
    move_characteristic: str = Characteristics.MOVE
    status_characteristic: str = Characteristics.STATUS
    scan_timeout: Optional[float] = None
    adapter: Optional[str] = None

    def __post_init__(self) -> None:
        # frozen dataclass, so bypass __setattr__ to store normalized values
        object.__setattr__(self, "move_characteristic", normalize_uuid(self.move_characteristic))
        object.__setattr__(self, "status_characteristic", normalize_uuid(self.status_characteristic))
        if self.scan_timeout is not None and self.scan_timeout <= 0:
            raise ValueError(f"Scan timeout must be positive, got {self.scan_timeout}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RobotConfig":
        """
        Build a config from ``GAN_ROBOT_*`` environment variables.

        Unset variables fall back to the built-in defaults.

        Args:
            environ: Mapping to read instead of ``os.environ``
        """
        env = os.environ if environ is None else environ
        scan_timeout = env.get(ENV_SCAN_TIMEOUT)
        return cls(
            name=env.get(ENV_NAME, DEFAULT_NAME),
            move_characteristic=env.get(ENV_MOVE_CHARACTERISTIC, Characteristics.MOVE),
            status_characteristic=env.get(ENV_STATUS_CHARACTERISTIC, Characteristics.STATUS),
            scan_timeout=float(scan_timeout) if scan_timeout else None,
            adapter=env.get(ENV_ADAPTER) or None,
        )
