"""
STARGAZER Simulators

Sensor stand-ins for running the engine without a device.
"""

from .pointing_simulator import (
    PointingMode,
    PointingSimulator,
    PointingSimulatorConfig,
    StaticLocationProvider,
)

__all__ = [
    "PointingMode",
    "PointingSimulator",
    "PointingSimulatorConfig",
    "StaticLocationProvider",
]
