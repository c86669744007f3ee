"""
STARGAZER Test Fixtures Package.

Builders for sky objects plus deterministic stand-ins for the clock and the
device sensors, so engine components can be tested without a device.

Available fixtures:
- make_star / make_visible: catalog and per-tick objects
- ORION_OBSERVER: observer (lat 40 N, lon 0) with Orion near the meridian
- aim_at: device pointing straight at an object for an observer
- FakeClock: manually advanced monotonic clock
- FixedPointing / FixedLocation: provider protocol stand-ins

Usage:
    from tests.fixtures import ORION_OBSERVER, aim_at, make_star

    def test_visible():
        star = make_star(1, ra=84.05, dec=-1.2)
        pointing = aim_at(ORION_OBSERVER, star)
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

from services.astronomy.time_coordinates import observer_altaz
from services.catalog.models import CelestialObject, DevicePointing, Observer, VisibleObject
from services.constellations.catalog import ConstellationDefinition, ConstellationLine

# LST at this instant is ~85 deg, so Orion (RA ~84 deg) transits
ORION_TIME = datetime(2024, 1, 15, 22, 0, tzinfo=timezone.utc)
ORION_OBSERVER = Observer(latitude=40.0, longitude=0.0, when=ORION_TIME)


def make_star(
    object_id: int,
    ra: float = 0.0,
    dec: float = 0.0,
    magnitude: float = 1.0,
    name: Optional[str] = None,
    **kwargs,
) -> CelestialObject:
    """Build a star with sensible defaults."""
    return CelestialObject(
        id=object_id,
        name=name or f"Star {object_id}",
        ra=ra,
        dec=dec,
        magnitude=magnitude,
        **kwargs,
    )


def make_visible(object_id: int, azimuth: float, altitude: float,
                 magnitude: float = 1.0) -> VisibleObject:
    """Build a visible object directly at an alt/az."""
    return VisibleObject(obj=make_star(object_id, magnitude=magnitude),
                         altitude=altitude, azimuth=azimuth)


def make_constellation(name: str, *pairs: Tuple[int, int]) -> ConstellationDefinition:
    return ConstellationDefinition(
        name=name,
        lines=tuple(ConstellationLine(a, b) for a, b in pairs),
    )


def aim_at(observer: Observer, obj: CelestialObject) -> DevicePointing:
    """Pointing straight at obj for this observer."""
    altitude, azimuth = observer_altaz(observer.latitude, observer.longitude,
                                       observer.when, obj.ra, obj.dec)
    return DevicePointing(azimuth=azimuth, altitude=altitude)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FixedPointing:
    """PointingProvider returning a settable pointing."""

    def __init__(self, pointing: DevicePointing):
        self.pointing = pointing


class FixedLocation:
    """LocationProvider returning a settable location (None = no fix)."""

    def __init__(self, location: Optional[Tuple[float, float]]):
        self.location = location


__all__ = [
    "ORION_TIME",
    "ORION_OBSERVER",
    "make_star",
    "make_visible",
    "make_constellation",
    "aim_at",
    "FakeClock",
    "FixedPointing",
    "FixedLocation",
]
