"""
STARGAZER Shared Constants

Centralizes the astronomical constants, detection thresholds and timing
defaults used across the sky engine.

Constants are organized by category:
    - Version and identity
    - Astronomical epochs and conversions
    - Numerical guards
    - Visibility defaults
    - Constellation detection (hysteresis) thresholds
    - Scheduler cadences
    - Catalog import defaults
"""

from typing import Final

# =============================================================================
# Version and Identity
# =============================================================================

STARGAZER_VERSION: Final[str] = "0.1.0"
STARGAZER_NAME: Final[str] = "STARGAZER"

# =============================================================================
# Astronomical Epochs and Conversions
# =============================================================================

J2000_JD: Final[float] = 2451545.0
DAYS_PER_JULIAN_CENTURY: Final[float] = 36525.0

# Greenwich mean sidereal time polynomial (degrees)
GST_AT_J2000_DEG: Final[float] = 280.46061837
GST_RATE_DEG_PER_DAY: Final[float] = 360.98564736629
GST_T2_COEFF: Final[float] = 0.000387933
GST_T3_DIVISOR: Final[float] = 38710000.0

# Obliquity of the ecliptic (degrees) and its daily drift
OBLIQUITY_J2000_DEG: Final[float] = 23.4393
OBLIQUITY_RATE_DEG_PER_DAY: Final[float] = 3.563e-7

AU_PER_LIGHT_YEAR: Final[float] = 63241.077
LIGHT_YEARS_PER_PARSEC: Final[float] = 3.26156

# Newton-Raphson iterations for Kepler's equation
KEPLER_ITERATIONS: Final[int] = 6

# =============================================================================
# Numerical Guards
# =============================================================================

# Below this, cos(alt)*cos(lat) is treated as zero and azimuth is undefined
AZIMUTH_DENOMINATOR_EPSILON: Final[float] = 1e-12

# Altitudes this close to zero are snapped to the horizon
HORIZON_SNAP_DEG: Final[float] = 1e-9

# =============================================================================
# Visibility Defaults
# =============================================================================

DEFAULT_FIELD_OF_VIEW_DEG: Final[float] = 60.0
DEFAULT_MIN_ALTITUDE_DEG: Final[float] = 0.0
DEFAULT_MAX_MAGNITUDE: Final[float] = 6.0

# Extra cone radius added by the candidate index prefilter
CANDIDATE_CONE_MARGIN_DEG: Final[float] = 0.5

# Reticle selection
DEFAULT_RETICLE_RADIUS_DEG: Final[float] = 7.5
DEFAULT_RETICLE_SIZE_PX: Final[float] = 48.0

# Sky dome radius used for 3D segment endpoints
SKY_DOME_RADIUS: Final[float] = 10.0

# =============================================================================
# Constellation Detection Thresholds
# =============================================================================

MIN_VISIBLE_LINE_FRACTION: Final[float] = 0.67
LINE_RATIO_WEIGHT: Final[float] = 0.75
PROXIMITY_WEIGHT: Final[float] = 0.25
PROXIMITY_FALLOFF_DEG: Final[float] = 25.0

# Hysteresis
KEEP_THRESHOLD: Final[float] = 0.45    # Keep current name with no raw detection
ADOPT_THRESHOLD: Final[float] = 0.67   # Adopt a name from the empty state
SWITCH_THRESHOLD: Final[float] = 0.75  # Minimum score to replace a name
SWITCH_MARGIN: Final[float] = 0.10     # Required lead over the current score

# Segment radius filters (degrees from pointing)
DETECTED_LINE_RADIUS_DEG: Final[float] = 90.0
NEARBY_LINE_RADIUS_DEG: Final[float] = 80.0
HYBRID_MAX_SEGMENTS: Final[int] = 140

# =============================================================================
# Scheduler Cadences (seconds)
# =============================================================================

CANDIDATE_REFRESH_SEC: Final[float] = 2.0
VISIBILITY_TICK_SEC: Final[float] = 0.1
DETECTION_INTERVAL_SEC: Final[float] = 0.45
DETECTION_CLOCK_TOLERANCE_SEC: Final[float] = 0.01

# =============================================================================
# Catalog Import Defaults
# =============================================================================

PLANET_ID_OFFSET: Final[int] = -1000
PLANET_SPECTRAL_TYPE: Final[str] = "P"
PLANET_CONSTELLATION_LABEL: Final[str] = "Planet"

HYG_ID_OFFSET: Final[int] = 20000
HYG_DEFAULT_LIMIT: Final[int] = 3000
