"""
STARGAZER Constellation Detector

Picks the one constellation that best matches the current view and keeps
that choice stable while the device jitters.

Each detection cycle:
1. Scores every constellation by the fraction of its lines whose endpoints
   are both visible, plus a bonus for endpoints near the pointing.
2. Feeds the best raw score through a hysteresis transition: a name is
   adopted only on a strong score, kept through weak frames, and replaced
   only by a clearly better candidate.
3. Emits line segments for the renderer, filtered to the half of the sky the
   device is facing.

The transition is a pure function (next_detection_state) so it can be tested
without any timing. ConstellationDetector owns the only cross-tick state and
throttles cycles to the detection interval.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from stargazer import constants
from stargazer.config import ConstellationDrawMode, DetectionConfig
from services.astronomy.time_coordinates import altaz_at, julian_date, local_sidereal_time
from services.catalog.models import CelestialObject, DevicePointing, Observer, VisibleObject
from services.constellations.catalog import ConstellationDefinition
from services.visibility.visibility_filter import angular_separation, separation_from_pointing

logger = logging.getLogger("stargazer.constellations.detector")


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ConstellationScore:
    """Raw (pre-hysteresis) score of one constellation for one cycle."""
    name: str
    score: float
    fully_visible: int = 0
    total_lines: int = 0
    min_distance_deg: Optional[float] = None


@dataclass(frozen=True)
class DetectionState:
    """Currently selected constellation and its last score."""
    name: Optional[str] = None
    score: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.name is None


EMPTY_STATE = DetectionState()


@dataclass(frozen=True)
class LineSegment:
    """One constellation line ready for rendering.

    Endpoints are given both as (altitude, azimuth) and as positions on a
    sky dome of radius SKY_DOME_RADIUS (x east, y up, z toward south).
    """
    key: str
    constellation: str
    a_id: int
    b_id: int
    start_altaz: Tuple[float, float]
    end_altaz: Tuple[float, float]
    start: Tuple[float, float, float]
    end: Tuple[float, float, float]


@dataclass
class DetectionResult:
    """Output of one detection cycle."""
    state: DetectionState
    raw: Optional[ConstellationScore]
    mode: ConstellationDrawMode
    primary_segments: List[LineSegment] = field(default_factory=list)
    secondary_segments: List[LineSegment] = field(default_factory=list)

    @property
    def name(self) -> Optional[str]:
        return self.state.name


# =============================================================================
# Scoring
# =============================================================================


def score_constellation(
    constellation: ConstellationDefinition,
    visible_by_id: Mapping[int, VisibleObject],
    pointing: DevicePointing,
    config: DetectionConfig,
) -> Optional[ConstellationScore]:
    """Score one constellation, or None if too few of its lines are visible."""
    total = constellation.total_lines
    if total == 0:
        return None

    fully_visible = sum(
        1 for line in constellation.lines
        if line.a_id in visible_by_id and line.b_id in visible_by_id
    )
    required = max(1, math.ceil(total * config.min_line_fraction))
    if fully_visible < required:
        return None

    min_dist: Optional[float] = None
    for line in constellation.lines:
        for object_id in (line.a_id, line.b_id):
            endpoint = visible_by_id.get(object_id)
            if endpoint is None:
                continue
            d = separation_from_pointing(endpoint, pointing)
            if min_dist is None or d < min_dist:
                min_dist = d

    ratio = fully_visible / total
    proximity = 0.0
    if min_dist is not None:
        proximity = min(1.0, max(0.0, 1.0 - min_dist / config.proximity_falloff_deg))

    return ConstellationScore(
        name=constellation.name,
        score=ratio * config.ratio_weight + proximity * config.proximity_weight,
        fully_visible=fully_visible,
        total_lines=total,
        min_distance_deg=min_dist,
    )


def score_constellations(
    visible: Sequence[VisibleObject],
    pointing: DevicePointing,
    constellations: Iterable[ConstellationDefinition],
    config: Optional[DetectionConfig] = None,
) -> Optional[ConstellationScore]:
    """Best-scoring constellation for the visible set. Ties keep the first."""
    if not visible:
        return None
    config = config or DetectionConfig()
    visible_by_id = {v.id: v for v in visible}

    best: Optional[ConstellationScore] = None
    for constellation in constellations:
        candidate = score_constellation(constellation, visible_by_id, pointing, config)
        if candidate is not None and (best is None or candidate.score > best.score):
            best = candidate
    return best


def next_detection_state(
    current: DetectionState,
    raw: Optional[ConstellationScore],
    config: Optional[DetectionConfig] = None,
) -> DetectionState:
    """Hysteresis transition from the current state given a raw detection."""
    config = config or DetectionConfig()

    if raw is None:
        # Drop only if we were already weak
        if current.name is not None and current.score >= config.keep_threshold:
            return current
        return EMPTY_STATE

    if current.name is None:
        if raw.score >= config.adopt_threshold:
            return DetectionState(raw.name, raw.score)
        return EMPTY_STATE

    if raw.name == current.name:
        return DetectionState(current.name, raw.score)

    can_switch = (
        raw.score >= config.switch_threshold
        and raw.score > current.score + config.switch_margin
    )
    return DetectionState(raw.name, raw.score) if can_switch else current


# =============================================================================
# Segments
# =============================================================================


def sky_dome_position(altitude: float, azimuth: float,
                      radius: float = constants.SKY_DOME_RADIUS) -> Tuple[float, float, float]:
    """Point on the render sky dome for an alt/az direction."""
    alt = math.radians(altitude)
    az = math.radians(azimuth)
    return (
        radius * math.cos(alt) * math.sin(az),
        radius * math.sin(alt),
        -radius * math.cos(alt) * math.cos(az),
    )


def build_segments(
    constellations: Iterable[ConstellationDefinition],
    observer: Observer,
    pointing: DevicePointing,
    objects_by_id: Mapping[int, CelestialObject],
    radius_deg: float,
    min_altitude: float = 0.0,
) -> List[LineSegment]:
    """Lines with both endpoints up and at least one within radius_deg of
    the pointing. Lines with unknown endpoint ids are skipped."""
    lst = local_sidereal_time(julian_date(observer.utc), observer.longitude)
    altaz_cache: Dict[int, Tuple[float, float]] = {}

    def altaz_of(obj: CelestialObject) -> Tuple[float, float]:
        if obj.id not in altaz_cache:
            altaz_cache[obj.id] = altaz_at(observer.latitude, lst, obj.ra, obj.dec)
        return altaz_cache[obj.id]

    segments = []
    for constellation in constellations:
        for line in constellation.lines:
            a = objects_by_id.get(line.a_id)
            b = objects_by_id.get(line.b_id)
            if a is None or b is None:
                continue
            alt_a, az_a = altaz_of(a)
            alt_b, az_b = altaz_of(b)
            if alt_a <= min_altitude or alt_b <= min_altitude:
                continue

            near_a = angular_separation(az_a, alt_a, pointing.azimuth, pointing.altitude) < radius_deg
            near_b = angular_separation(az_b, alt_b, pointing.azimuth, pointing.altitude) < radius_deg
            if not (near_a or near_b):
                continue

            segments.append(LineSegment(
                key=f"{constellation.name}:{line.a_id}-{line.b_id}",
                constellation=constellation.name,
                a_id=line.a_id,
                b_id=line.b_id,
                start_altaz=(alt_a, az_a),
                end_altaz=(alt_b, az_b),
                start=sky_dome_position(alt_a, az_a),
                end=sky_dome_position(alt_b, az_b),
            ))
    return segments


def build_detected_segments(
    constellation: ConstellationDefinition,
    observer: Observer,
    pointing: DevicePointing,
    objects_by_id: Mapping[int, CelestialObject],
    radius_deg: float = constants.DETECTED_LINE_RADIUS_DEG,
    min_altitude: float = 0.0,
) -> List[LineSegment]:
    """Lines of the detected constellation on the facing half of the sky."""
    return build_segments([constellation], observer, pointing, objects_by_id,
                          radius_deg, min_altitude)


def build_nearby_segments(
    constellations: Iterable[ConstellationDefinition],
    observer: Observer,
    pointing: DevicePointing,
    objects_by_id: Mapping[int, CelestialObject],
    radius_deg: float = constants.NEARBY_LINE_RADIUS_DEG,
    min_altitude: float = 0.0,
) -> List[LineSegment]:
    """Atlas mode: lines of every constellation near the pointing."""
    return build_segments(constellations, observer, pointing, objects_by_id,
                          radius_deg, min_altitude)


# =============================================================================
# Detector
# =============================================================================


class ConstellationDetector:
    """
    Stateful constellation detector.

    Holds the DetectionState across cycles and throttles recomputation to
    config.detection_interval. A lock is held for exactly one cycle so the
    state has a single writer even if called from several threads.
    """

    def __init__(
        self,
        constellations: Sequence[ConstellationDefinition],
        config: Optional[DetectionConfig] = None,
        interval_sec: float = constants.DETECTION_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
        tolerance_sec: float = constants.DETECTION_CLOCK_TOLERANCE_SEC,
    ):
        self.constellations = tuple(constellations)
        self.config = config or DetectionConfig()
        self.interval_sec = interval_sec
        self.tolerance_sec = tolerance_sec
        self._clock = clock
        self._by_name: Dict[str, ConstellationDefinition] = {c.name: c for c in self.constellations}
        self._state = EMPTY_STATE
        self._last_run: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> DetectionState:
        return self._state

    def get_constellation(self, name: str) -> Optional[ConstellationDefinition]:
        return self._by_name.get(name)

    def reset(self) -> None:
        """Clear the detection state (e.g. when lines are switched off)."""
        with self._lock:
            if self._state.name is not None:
                logger.info(f"Constellation cleared: {self._state.name}")
            self._state = EMPTY_STATE

    def is_due(self, now: Optional[float] = None) -> bool:
        """
        True when a full interval has passed since the last cycle.

        A cycle arriving up to tolerance_sec early still counts, so a caller
        sleeping for exactly interval_sec on its own clock is never skipped.
        """
        now = self._clock() if now is None else now
        if self._last_run is None:
            return True
        return now - self._last_run >= self.interval_sec - self.tolerance_sec

    def _transition(self, raw: Optional[ConstellationScore]) -> DetectionState:
        previous = self._state
        self._state = next_detection_state(previous, raw, self.config)
        if self._state.name != previous.name:
            logger.info(
                f"Constellation changed: {previous.name} -> {self._state.name} "
                f"(score {self._state.score:.2f})"
            )
        return self._state

    def update(
        self,
        visible: Sequence[VisibleObject],
        pointing: DevicePointing,
        now: Optional[float] = None,
    ) -> DetectionState:
        """Run one scoring + hysteresis step if due; return the state."""
        now = self._clock() if now is None else now
        with self._lock:
            if not self.is_due(now):
                return self._state
            raw = score_constellations(visible, pointing, self.constellations, self.config)
            self._last_run = now
            return self._transition(raw)

    def detected_segments(
        self,
        name: str,
        observer: Observer,
        pointing: DevicePointing,
        objects_by_id: Mapping[int, CelestialObject],
        min_altitude: float = 0.0,
    ) -> List[LineSegment]:
        """Segments of one constellation near the pointing."""
        constellation = self.get_constellation(name)
        if constellation is None:
            return []
        return build_detected_segments(constellation, observer, pointing, objects_by_id,
                                       self.config.detected_line_radius_deg, min_altitude)

    def nearby_segments(
        self,
        observer: Observer,
        pointing: DevicePointing,
        objects_by_id: Mapping[int, CelestialObject],
        min_altitude: float = 0.0,
    ) -> List[LineSegment]:
        """Atlas mode: lines of every constellation near the pointing."""
        return build_nearby_segments(self.constellations, observer, pointing, objects_by_id,
                                     self.config.nearby_line_radius_deg, min_altitude)

    def run_cycle(
        self,
        visible: Sequence[VisibleObject],
        observer: Observer,
        pointing: DevicePointing,
        objects_by_id: Mapping[int, CelestialObject],
        mode: Optional[ConstellationDrawMode] = None,
        now: Optional[float] = None,
        min_altitude: float = 0.0,
    ) -> Optional[DetectionResult]:
        """Full detection cycle for a draw mode, or None if not yet due.

        NEARBY bypasses scoring and clears the state. DETECTED and HYBRID
        score and apply hysteresis; HYBRID also returns the other
        constellations' nearby lines as capped secondary segments.
        """
        mode = mode or self.config.draw_mode
        now = self._clock() if now is None else now

        with self._lock:
            if not self.is_due(now):
                return None
            self._last_run = now

            if mode is ConstellationDrawMode.NEARBY:
                self._state = EMPTY_STATE
                primary = self.nearby_segments(observer, pointing, objects_by_id, min_altitude)
                return DetectionResult(state=self._state, raw=None, mode=mode,
                                       primary_segments=primary)

            raw = score_constellations(visible, pointing, self.constellations, self.config)
            state = self._transition(raw)

        primary: List[LineSegment] = []
        if state.name is not None:
            primary = self.detected_segments(state.name, observer, pointing,
                                             objects_by_id, min_altitude)

        secondary: List[LineSegment] = []
        if mode is ConstellationDrawMode.HYBRID:
            nearby = self.nearby_segments(observer, pointing, objects_by_id, min_altitude)
            if state.name is not None:
                nearby = [s for s in nearby if s.constellation != state.name]
            secondary = nearby[: self.config.hybrid_max_segments]

        return DetectionResult(state=state, raw=raw, mode=mode,
                               primary_segments=primary, secondary_segments=secondary)
