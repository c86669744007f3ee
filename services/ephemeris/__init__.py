"""
STARGAZER Ephemeris Service

Low-precision planetary positions from mean orbital elements.
"""

from .planetary import (
    Planet,
    OrbitalElements,
    PlanetPosition,
    PLANET_MAGNITUDES,
    solve_kepler,
    heliocentric_position,
    obliquity,
    compute_planets,
    sun_position,
    planet_to_celestial_object,
    planet_objects,
)

__all__ = [
    "Planet",
    "OrbitalElements",
    "PlanetPosition",
    "PLANET_MAGNITUDES",
    "solve_kepler",
    "heliocentric_position",
    "obliquity",
    "compute_planets",
    "sun_position",
    "planet_to_celestial_object",
    "planet_objects",
]
