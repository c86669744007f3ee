"""
STARGAZER Time and Coordinate Conversion

Pure functions relating civil time to Earth rotation and equatorial
coordinates to an observer's horizon:
- Julian Date from a UTC datetime
- Greenwich / local sidereal time
- Hour angle
- Equatorial (RA/Dec) <-> horizontal (Alt/Az) transforms

All angles are in degrees and every function returns values already
normalized into its documented domain. Degenerate geometry near the zenith,
nadir or the poles is clamped instead of producing NaN.
"""

import math
from datetime import datetime, timezone
from typing import Tuple

from stargazer import constants


def normalize_degrees(angle: float) -> float:
    """Normalize an angle into [0, 360)."""
    angle = angle % 360.0
    # -1e-17 % 360 rounds to 360.0
    return 0.0 if angle >= 360.0 else angle


def _clamp_unit(value: float) -> float:
    return max(-1.0, min(1.0, value))


def julian_date(when: datetime) -> float:
    """Julian Date of a datetime (naive values are taken as UTC).

    Uses the Meeus calendar formula with integer truncation of the year and
    month terms and the Gregorian century correction B = 2 - A + A // 4.
    """
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    when = when.astimezone(timezone.utc)

    year = when.year
    month = when.month
    if month <= 2:
        year -= 1
        month += 12

    a = year // 100
    b = 2 - a + a // 4

    seconds = when.second + when.microsecond / 1_000_000.0
    day_fraction = (when.hour + when.minute / 60.0 + seconds / 3600.0) / 24.0

    return (
        int(365.25 * (year + 4716))
        + int(30.6001 * (month + 1))
        + when.day
        + day_fraction
        + b
        - 1524.5
    )


def days_since_j2000(jd: float) -> float:
    return jd - constants.J2000_JD


def greenwich_sidereal_time(jd: float) -> float:
    """Greenwich mean sidereal time in degrees [0, 360)."""
    d = jd - constants.J2000_JD
    t = d / constants.DAYS_PER_JULIAN_CENTURY
    gst = (
        constants.GST_AT_J2000_DEG
        + constants.GST_RATE_DEG_PER_DAY * d
        + t * t * (constants.GST_T2_COEFF - t / constants.GST_T3_DIVISOR)
    )
    return normalize_degrees(gst)


def local_sidereal_time(jd: float, longitude: float) -> float:
    """Local sidereal time in degrees [0, 360). Longitude is east-positive."""
    return normalize_degrees(greenwich_sidereal_time(jd) + longitude)


def hour_angle(lst: float, ra: float) -> float:
    """Hour angle (degrees west of the meridian) in [0, 360)."""
    return normalize_degrees(lst - ra)


def equatorial_to_horizontal(
    latitude: float,
    declination: float,
    hour_angle_deg: float,
) -> Tuple[float, float]:
    """Convert (Dec, HA) to (altitude, azimuth) for an observer latitude.

    Azimuth is measured from north through east. When cos(alt)*cos(lat) is
    effectively zero (object at the zenith/nadir, or an observer at a pole)
    the azimuth is undefined and reported as 0.0.

    Returns:
        (altitude in [-90, 90], azimuth in [0, 360))
    """
    lat = math.radians(latitude)
    dec = math.radians(declination)
    ha = math.radians(hour_angle_deg)

    sin_alt = math.sin(dec) * math.sin(lat) + math.cos(dec) * math.cos(lat) * math.cos(ha)
    alt = math.asin(_clamp_unit(sin_alt))
    altitude = math.degrees(alt)
    if abs(altitude) < constants.HORIZON_SNAP_DEG:
        altitude = 0.0

    denominator = math.cos(alt) * math.cos(lat)
    if abs(denominator) < constants.AZIMUTH_DENOMINATOR_EPSILON:
        return altitude, 0.0

    cos_az = (math.sin(dec) - math.sin(alt) * math.sin(lat)) / denominator
    az = math.acos(_clamp_unit(cos_az))
    if math.sin(ha) > 0:
        az = 2.0 * math.pi - az

    return altitude, normalize_degrees(math.degrees(az))


def horizontal_to_equatorial(
    latitude: float,
    altitude: float,
    azimuth: float,
    lst: float,
) -> Tuple[float, float]:
    """Convert a horizontal direction to (RA, Dec) at a given LST.

    Returns:
        (ra in [0, 360), dec in [-90, 90])
    """
    lat = math.radians(latitude)
    alt = math.radians(altitude)
    az = math.radians(azimuth)

    sin_dec = math.sin(alt) * math.sin(lat) + math.cos(alt) * math.cos(lat) * math.cos(az)
    dec = math.asin(_clamp_unit(sin_dec))

    ha = math.atan2(
        -math.sin(az) * math.cos(alt),
        math.cos(lat) * math.sin(alt) - math.sin(lat) * math.cos(alt) * math.cos(az),
    )
    ra = normalize_degrees(lst - math.degrees(ha))
    return ra, math.degrees(dec)


def radec_to_unit_vector(ra: float, dec: float) -> Tuple[float, float, float]:
    """Equatorial direction as a unit vector (x to RA 0, z to the north pole)."""
    ra_rad = math.radians(ra)
    dec_rad = math.radians(dec)
    c = math.cos(dec_rad)
    return (c * math.cos(ra_rad), c * math.sin(ra_rad), math.sin(dec_rad))


def altaz_at(latitude: float, lst: float, ra: float, dec: float) -> Tuple[float, float]:
    """(altitude, azimuth) of an RA/Dec for a latitude and precomputed LST."""
    return equatorial_to_horizontal(latitude, dec, hour_angle(lst, ra))


def observer_altaz(
    latitude: float,
    longitude: float,
    when: datetime,
    ra: float,
    dec: float,
) -> Tuple[float, float]:
    """(altitude, azimuth) of one RA/Dec for an observer and instant."""
    lst = local_sidereal_time(julian_date(when), longitude)
    return altaz_at(latitude, lst, ra, dec)
