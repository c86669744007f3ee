"""
STARGAZER Astronomy Service

Time scales and coordinate transforms used by every other service.
"""

from .time_coordinates import (
    normalize_degrees,
    julian_date,
    days_since_j2000,
    greenwich_sidereal_time,
    local_sidereal_time,
    hour_angle,
    equatorial_to_horizontal,
    horizontal_to_equatorial,
    radec_to_unit_vector,
    altaz_at,
    observer_altaz,
)

__all__ = [
    "normalize_degrees",
    "julian_date",
    "days_since_j2000",
    "greenwich_sidereal_time",
    "local_sidereal_time",
    "hour_angle",
    "equatorial_to_horizontal",
    "horizontal_to_equatorial",
    "radec_to_unit_vector",
    "altaz_at",
    "observer_altaz",
]
