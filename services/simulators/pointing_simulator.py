"""
STARGAZER Pointing Simulator

Stands in for the device orientation and location sensors so the engine can
run without hardware: a device that sweeps slowly around the horizon with a
gentle altitude bob and optional sensor jitter, and a fixed observer location.

Both satisfy the scheduler's PointingProvider / LocationProvider protocols.
"""

import math
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from services.catalog.models import DevicePointing


class PointingMode(Enum):
    """Simulated device behaviour."""
    SWEEPING = "sweeping"      # Turning around the horizon
    HOLDING = "holding"        # Aimed at a fixed direction


@dataclass
class PointingSimulatorConfig:
    """Configuration for the pointing simulator."""
    start_azimuth: float = 180.0
    base_altitude: float = 35.0

    # Sweep (degrees per second) and altitude bob
    sweep_rate_deg_per_sec: float = 6.0
    bob_amplitude_deg: float = 10.0
    bob_period_sec: float = 20.0

    # Gaussian sensor noise (degrees, 1 sigma)
    jitter_deg: float = 0.0
    seed: Optional[int] = None


class PointingSimulator:
    """
    Simulated device pointing.

    The pointing is a function of elapsed clock time, so a test can drive it
    with a fake clock and get reproducible directions.
    """

    def __init__(self, config: Optional[PointingSimulatorConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config or PointingSimulatorConfig()
        self._clock = clock
        self._start = clock()
        self._rng = random.Random(self.config.seed)

        self._mode = PointingMode.SWEEPING
        self._hold: Tuple[float, float] = (self.config.start_azimuth, self.config.base_altitude)

    @property
    def mode(self) -> PointingMode:
        return self._mode

    def hold(self, azimuth: float, altitude: float) -> None:
        """Stop sweeping and aim at a fixed direction."""
        self._mode = PointingMode.HOLDING
        self._hold = (azimuth, altitude)

    def sweep(self) -> None:
        """Resume sweeping from the configured start direction."""
        self._mode = PointingMode.SWEEPING
        self._start = self._clock()

    def _jitter(self) -> float:
        if self.config.jitter_deg <= 0:
            return 0.0
        return self._rng.gauss(0.0, self.config.jitter_deg)

    @property
    def pointing(self) -> DevicePointing:
        """Current device pointing."""
        if self._mode == PointingMode.HOLDING:
            azimuth, altitude = self._hold
        else:
            elapsed = self._clock() - self._start
            azimuth = self.config.start_azimuth + self.config.sweep_rate_deg_per_sec * elapsed
            phase = 2.0 * math.pi * elapsed / self.config.bob_period_sec
            altitude = self.config.base_altitude + self.config.bob_amplitude_deg * math.sin(phase)

        return DevicePointing(azimuth + self._jitter(), altitude + self._jitter())

    def get_status(self) -> Dict[str, Any]:
        """Get simulator status."""
        current = self.pointing
        return {
            "mode": self._mode.value,
            "azimuth": current.azimuth,
            "altitude": current.altitude,
            "jitter_deg": self.config.jitter_deg,
        }


class StaticLocationProvider:
    """Fixed observer location; None simulates a location fix not yet available."""

    def __init__(self, latitude: Optional[float] = None, longitude: Optional[float] = None):
        if (latitude is None) != (longitude is None):
            raise ValueError("latitude and longitude must be given together")
        self._location = None if latitude is None else (latitude, longitude)

    @property
    def location(self) -> Optional[Tuple[float, float]]:
        """(latitude, longitude) in degrees, or None."""
        return self._location

    def set_location(self, latitude: float, longitude: float) -> None:
        self._location = (latitude, longitude)

    def clear(self) -> None:
        self._location = None
