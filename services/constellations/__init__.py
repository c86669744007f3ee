"""
STARGAZER Constellation Service

Line-pattern catalog and the hysteresis-based constellation detector.
"""

from .catalog import (
    ConstellationLine,
    ConstellationDefinition,
    parse_constellations,
    load_constellations,
)

from .detector import (
    ConstellationDetector,
    ConstellationScore,
    DetectionState,
    DetectionResult,
    LineSegment,
    EMPTY_STATE,
    score_constellation,
    score_constellations,
    next_detection_state,
    sky_dome_position,
    build_segments,
    build_detected_segments,
    build_nearby_segments,
)

__all__ = [
    "ConstellationLine",
    "ConstellationDefinition",
    "parse_constellations",
    "load_constellations",
    "ConstellationDetector",
    "ConstellationScore",
    "DetectionState",
    "DetectionResult",
    "LineSegment",
    "EMPTY_STATE",
    "score_constellation",
    "score_constellations",
    "next_detection_state",
    "sky_dome_position",
    "build_segments",
    "build_detected_segments",
    "build_nearby_segments",
]
