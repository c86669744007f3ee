"""
STARGAZER Planetary Ephemeris
Low-precision planet positions from mean orbital elements

This module computes geocentric RA/Dec and distance for the seven planets
Mercury through Neptune (Earth excluded) using:
- J2000 mean orbital elements with linear daily rates
- Kepler's equation solved by a fixed number of Newton-Raphson steps
- Heliocentric ecliptic -> geocentric equatorial rotation by the obliquity

Accuracy is on the order of a degree or better for the inner planets, which
is enough to place a label in the sky but not for pointing a telescope.
Apparent magnitudes are fixed per-planet approximations, not computed from
phase or distance.

Element values follow Paul Schlyter's "How to compute planetary positions".
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Tuple

from stargazer import constants
from services.astronomy.time_coordinates import (
    days_since_j2000,
    julian_date,
    normalize_degrees,
)
from services.catalog.models import CelestialObject, ObjectKind


class Planet(Enum):
    """Planets with ephemeris support, valued by their stable planet id."""
    MERCURY = 1
    VENUS = 2
    MARS = 3
    JUPITER = 4
    SATURN = 5
    URANUS = 6
    NEPTUNE = 7

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class OrbitalElements:
    """Mean orbital elements at one instant (angles in degrees, a in AU)."""
    N: float  # Longitude of the ascending node
    i: float  # Inclination
    w: float  # Argument of perihelion
    a: float  # Semi-major axis
    e: float  # Eccentricity
    M: float  # Mean anomaly


@dataclass(frozen=True)
class PlanetPosition:
    """Geocentric equatorial position of a planet."""
    id: int
    name: str
    ra: float            # Degrees [0, 360)
    dec: float           # Degrees [-90, 90]
    distance_au: float
    magnitude: float


# =============================================================================
# Orbital Elements (J2000 + rate per day)
# =============================================================================


def elements_mercury(d: float) -> OrbitalElements:
    return OrbitalElements(
        N=48.3313 + 3.24587e-5 * d,
        i=7.0047 + 5.00e-8 * d,
        w=29.1241 + 1.01444e-5 * d,
        a=0.387098,
        e=0.205635 + 5.59e-10 * d,
        M=168.6562 + 4.0923344368 * d,
    )


def elements_venus(d: float) -> OrbitalElements:
    return OrbitalElements(
        N=76.6799 + 2.46590e-5 * d,
        i=3.3946 + 2.75e-8 * d,
        w=54.8910 + 1.38374e-5 * d,
        a=0.723330,
        e=0.006773 - 1.302e-9 * d,
        M=48.0052 + 1.6021302244 * d,
    )


def elements_earth(d: float) -> OrbitalElements:
    # Schlyter tabulates the Sun's apparent orbit; Earth's perihelion is opposite
    return OrbitalElements(
        N=0.0,
        i=0.0,
        w=102.9404 + 4.70935e-5 * d,
        a=1.0,
        e=0.016709 - 1.151e-9 * d,
        M=356.0470 + 0.9856002585 * d,
    )


def elements_mars(d: float) -> OrbitalElements:
    return OrbitalElements(
        N=49.5574 + 2.11081e-5 * d,
        i=1.8497 - 1.78e-8 * d,
        w=286.5016 + 2.92961e-5 * d,
        a=1.523688,
        e=0.093405 + 2.516e-9 * d,
        M=18.6021 + 0.5240207766 * d,
    )


def elements_jupiter(d: float) -> OrbitalElements:
    return OrbitalElements(
        N=100.4542 + 2.76854e-5 * d,
        i=1.3030 - 1.557e-7 * d,
        w=273.8777 + 1.64505e-5 * d,
        a=5.20256,
        e=0.048498 + 4.469e-9 * d,
        M=19.8950 + 0.0830853001 * d,
    )


def elements_saturn(d: float) -> OrbitalElements:
    return OrbitalElements(
        N=113.6634 + 2.38980e-5 * d,
        i=2.4886 - 1.081e-7 * d,
        w=339.3939 + 2.97661e-5 * d,
        a=9.55475,
        e=0.055546 - 9.499e-9 * d,
        M=316.9670 + 0.0334442282 * d,
    )


def elements_uranus(d: float) -> OrbitalElements:
    return OrbitalElements(
        N=74.0005 + 1.3978e-5 * d,
        i=0.7733 + 1.9e-8 * d,
        w=96.6612 + 3.0565e-5 * d,
        a=19.18171 - 1.55e-8 * d,
        e=0.047318 + 7.45e-9 * d,
        M=142.5905 + 0.011725806 * d,
    )


def elements_neptune(d: float) -> OrbitalElements:
    return OrbitalElements(
        N=131.7806 + 3.0173e-5 * d,
        i=1.7700 - 2.55e-7 * d,
        w=272.8461 - 6.027e-6 * d,
        a=30.05826 + 3.313e-8 * d,
        e=0.008606 + 2.15e-9 * d,
        M=260.2471 + 0.005995147 * d,
    )


PLANET_ELEMENTS: Dict[Planet, Callable[[float], OrbitalElements]] = {
    Planet.MERCURY: elements_mercury,
    Planet.VENUS: elements_venus,
    Planet.MARS: elements_mars,
    Planet.JUPITER: elements_jupiter,
    Planet.SATURN: elements_saturn,
    Planet.URANUS: elements_uranus,
    Planet.NEPTUNE: elements_neptune,
}

# Typical apparent magnitudes
PLANET_MAGNITUDES: Dict[Planet, float] = {
    Planet.MERCURY: -0.2,
    Planet.VENUS: -4.0,
    Planet.MARS: 0.5,
    Planet.JUPITER: -2.0,
    Planet.SATURN: 0.6,
    Planet.URANUS: 5.7,
    Planet.NEPTUNE: 7.8,
}


# =============================================================================
# Orbit Solution
# =============================================================================


def solve_kepler(mean_anomaly: float, eccentricity: float,
                 iterations: int = constants.KEPLER_ITERATIONS) -> float:
    """Eccentric anomaly E (radians) satisfying E - e*sin(E) = M.

    Fixed Newton-Raphson iteration count with no convergence check; six steps
    are ample for solar-system eccentricities (e < 0.25).
    """
    m = mean_anomaly
    e = eccentricity
    ecc = m + e * math.sin(m) * (1.0 + e * math.cos(m))
    for _ in range(iterations):
        ecc -= (ecc - e * math.sin(ecc) - m) / (1.0 - e * math.cos(ecc))
    return ecc


def heliocentric_position(elements: OrbitalElements) -> Tuple[float, float, float]:
    """Heliocentric ecliptic (x, y, z) in AU for one set of elements."""
    m = math.radians(normalize_degrees(elements.M))
    e = elements.e
    ecc = solve_kepler(m, e)

    # Position in the orbital plane
    xv = elements.a * (math.cos(ecc) - e)
    yv = elements.a * (math.sqrt(1.0 - e * e) * math.sin(ecc))
    v = math.atan2(yv, xv)
    r = math.hypot(xv, yv)

    n = math.radians(elements.N)
    i = math.radians(elements.i)
    vw = v + math.radians(elements.w)

    x = r * (math.cos(n) * math.cos(vw) - math.sin(n) * math.sin(vw) * math.cos(i))
    y = r * (math.sin(n) * math.cos(vw) + math.cos(n) * math.sin(vw) * math.cos(i))
    z = r * (math.sin(vw) * math.sin(i))
    return x, y, z


def obliquity(d: float) -> float:
    """Obliquity of the ecliptic in degrees, d days after J2000."""
    return constants.OBLIQUITY_J2000_DEG - constants.OBLIQUITY_RATE_DEG_PER_DAY * d


def ecliptic_to_radec(x: float, y: float, z: float, obliquity_deg: float) -> Tuple[float, float]:
    """Rotate an ecliptic vector about x by the obliquity; return (RA, Dec)."""
    ecl = math.radians(obliquity_deg)
    xeq = x
    yeq = y * math.cos(ecl) - z * math.sin(ecl)
    zeq = y * math.sin(ecl) + z * math.cos(ecl)

    ra = normalize_degrees(math.degrees(math.atan2(yeq, xeq)))
    dec = math.degrees(math.atan2(zeq, math.hypot(xeq, yeq)))
    return ra, dec


def compute_planet(planet: Planet, d: float,
                   earth: Tuple[float, float, float]) -> PlanetPosition:
    """Geocentric position of one planet, d days after J2000."""
    hx, hy, hz = heliocentric_position(PLANET_ELEMENTS[planet](d))
    x, y, z = hx - earth[0], hy - earth[1], hz - earth[2]
    ra, dec = ecliptic_to_radec(x, y, z, obliquity(d))
    return PlanetPosition(
        id=planet.value,
        name=planet.display_name,
        ra=ra,
        dec=dec,
        distance_au=math.sqrt(x * x + y * y + z * z),
        magnitude=PLANET_MAGNITUDES[planet],
    )


def compute_planets(when: datetime) -> List[PlanetPosition]:
    """Positions of all seven planets at an instant, ordered by planet id."""
    d = days_since_j2000(julian_date(when))
    earth = heliocentric_position(elements_earth(d))
    return [compute_planet(planet, d, earth) for planet in Planet]


def sun_position(when: datetime) -> Tuple[float, float, float]:
    """Geocentric (RA, Dec, distance AU) of the Sun: Earth's vector reversed."""
    d = days_since_j2000(julian_date(when))
    ex, ey, ez = heliocentric_position(elements_earth(d))
    ra, dec = ecliptic_to_radec(-ex, -ey, -ez, obliquity(d))
    return ra, dec, math.sqrt(ex * ex + ey * ey + ez * ez)


def planet_to_celestial_object(position: PlanetPosition) -> CelestialObject:
    """Synthesize a catalog entry for a planet so it can join the candidate set."""
    return CelestialObject(
        id=constants.PLANET_ID_OFFSET - position.id,
        name=position.name,
        ra=position.ra,
        dec=position.dec,
        magnitude=position.magnitude,
        distance_ly=position.distance_au / constants.AU_PER_LIGHT_YEAR,
        spectral_type=constants.PLANET_SPECTRAL_TYPE,
        constellation=constants.PLANET_CONSTELLATION_LABEL,
        kind=ObjectKind.PLANET,
    )


def planet_objects(when: datetime) -> List[CelestialObject]:
    """All planets at an instant as catalog entries."""
    return [planet_to_celestial_object(p) for p in compute_planets(when)]
