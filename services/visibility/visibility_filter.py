"""
STARGAZER Visibility Filter

Turns a candidate set, an observer and a device pointing into the list of
objects currently in view.

"In view" is an axis-aligned box in (azimuth, altitude) space around the
pointing, not a true angular cone. The box degrades near +/-90 degrees
altitude where azimuth becomes degenerate; that is a known limitation of the
model and callers should not rely on exact behaviour at the zenith.
"""

import math
from typing import Iterable, List

from services.astronomy.time_coordinates import (
    altaz_at,
    julian_date,
    local_sidereal_time,
)
from services.catalog.models import CelestialObject, DevicePointing, Observer, VisibleObject


def normalized_angle_delta(a: float, b: float) -> float:
    """Signed difference a - b wrapped into [-180, 180)."""
    return ((a - b + 540.0) % 360.0) - 180.0


def angular_separation(az_a: float, alt_a: float, az_b: float, alt_b: float) -> float:
    """Approximate separation in degrees between two alt/az directions.

    Euclidean distance in (wrapped azimuth, altitude) space. Good for ranking
    and proximity scoring over moderate separations; not a great-circle
    distance.
    """
    return math.hypot(normalized_angle_delta(az_a, az_b), alt_a - alt_b)


def separation_from_pointing(visible: VisibleObject, pointing: DevicePointing) -> float:
    return angular_separation(visible.azimuth, visible.altitude,
                              pointing.azimuth, pointing.altitude)


def is_within_view(azimuth: float, altitude: float,
                   pointing: DevicePointing, field_of_view: float) -> bool:
    """Box test: both axis offsets within half the field of view."""
    half = field_of_view / 2.0
    return (
        abs(normalized_angle_delta(azimuth, pointing.azimuth)) <= half
        and abs(altitude - pointing.altitude) <= half
    )


def visible_at_lst(
    latitude: float,
    lst: float,
    pointing: DevicePointing,
    field_of_view: float,
    min_altitude: float,
    candidates: Iterable[CelestialObject],
) -> List[VisibleObject]:
    """Visibility test against a precomputed local sidereal time."""
    visible = []
    for obj in candidates:
        alt, az = altaz_at(latitude, lst, obj.ra, obj.dec)
        if alt > min_altitude and is_within_view(az, alt, pointing, field_of_view):
            visible.append(VisibleObject(obj=obj, altitude=alt, azimuth=az))
    return visible


def compute_visible(
    observer: Observer,
    pointing: DevicePointing,
    field_of_view: float,
    min_altitude: float,
    candidates: Iterable[CelestialObject],
) -> List[VisibleObject]:
    """Objects above min_altitude and inside the view box, in candidate order.

    Julian date and sidereal time are computed once per call; per candidate
    only the horizontal transform runs.
    """
    lst = local_sidereal_time(julian_date(observer.utc), observer.longitude)
    return visible_at_lst(observer.latitude, lst, pointing, field_of_view,
                          min_altitude, candidates)

