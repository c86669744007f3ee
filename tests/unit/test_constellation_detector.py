"""
STARGAZER Unit Tests - Constellation Detector

Tests scoring, the hysteresis transition, segment building, throttling and
draw modes.

Run:
    pytest tests/unit/test_constellation_detector.py -v
"""

import pytest

from stargazer.config import ConstellationDrawMode, DetectionConfig
from services.catalog.loader import load_stars_json
from services.catalog.models import DevicePointing
from services.constellations.catalog import load_constellations
from services.constellations.detector import (
    ConstellationDetector,
    ConstellationScore,
    DetectionState,
    EMPTY_STATE,
    build_detected_segments,
    build_nearby_segments,
    next_detection_state,
    score_constellations,
    sky_dome_position,
)
from services.visibility.visibility_filter import compute_visible
from tests.fixtures import FakeClock, ORION_OBSERVER, aim_at, make_constellation, make_visible


@pytest.fixture(scope="module")
def stars_by_id():
    return {s.id: s for s in load_stars_json()}


@pytest.fixture(scope="module")
def constellations():
    return load_constellations()


@pytest.fixture
def orion_pointing(stars_by_id):
    return aim_at(ORION_OBSERVER, stars_by_id[5])


@pytest.fixture
def orion_visible(stars_by_id, orion_pointing):
    return compute_visible(ORION_OBSERVER, orion_pointing, 60.0, 0.0, stars_by_id.values())


# =============================================================================
# Scoring
# =============================================================================


class TestScoreConstellations:
    """Tests for score_constellations."""

    def test_empty_visible_set(self, constellations):
        assert score_constellations([], DevicePointing(0.0, 0.0), constellations) is None

    def test_full_pattern_at_pointing(self):
        triangle = make_constellation("Triangle", (1, 2), (2, 3), (3, 1))
        visible = [make_visible(1, 100.0, 40.0), make_visible(2, 105.0, 42.0),
                   make_visible(3, 102.0, 46.0)]
        best = score_constellations(visible, DevicePointing(100.0, 40.0), [triangle])
        assert best.name == "Triangle"
        assert best.score == pytest.approx(1.0)
        assert best.fully_visible == 3

    def test_proximity_falloff(self):
        pair = make_constellation("Pair", (1, 2))
        visible = [make_visible(1, 100.0, 40.0), make_visible(2, 110.0, 40.0)]
        # Nearest endpoint 12.5 deg away -> proximity 0.5
        best = score_constellations(visible, DevicePointing(100.0, 27.5), [pair])
        assert best.score == pytest.approx(0.75 + 0.25 * 0.5)

    def test_far_pointing_gets_no_proximity(self):
        pair = make_constellation("Pair", (1, 2))
        visible = [make_visible(1, 100.0, 40.0), make_visible(2, 110.0, 40.0)]
        best = score_constellations(visible, DevicePointing(100.0, -10.0), [pair])
        assert best.score == pytest.approx(0.75)

    def test_requires_two_thirds_of_lines(self):
        """ceil(3 * 0.67) = 3, so two of three lines is not enough."""
        triangle = make_constellation("Triangle", (1, 2), (2, 3), (3, 4))
        visible = [make_visible(1, 100.0, 40.0), make_visible(2, 101.0, 40.0),
                   make_visible(3, 102.0, 40.0)]
        assert score_constellations(visible, DevicePointing(100.0, 40.0), [triangle]) is None

    def test_constellation_without_lines_ignored(self):
        empty = make_constellation("Empty")
        visible = [make_visible(1, 100.0, 40.0)]
        assert score_constellations(visible, DevicePointing(100.0, 40.0), [empty]) is None

    def test_first_maximum_wins(self):
        first = make_constellation("First", (1, 2))
        second = make_constellation("Second", (1, 2))
        visible = [make_visible(1, 100.0, 40.0), make_visible(2, 101.0, 40.0)]
        best = score_constellations(visible, DevicePointing(100.0, 40.0), [first, second])
        assert best.name == "First"

    def test_orion_in_real_sky(self, orion_visible, orion_pointing, constellations):
        best = score_constellations(orion_visible, orion_pointing, constellations)
        assert best.name == "Orion"
        assert best.fully_visible == 8
        assert best.score == pytest.approx(1.0, abs=1e-6)


# =============================================================================
# Hysteresis
# =============================================================================


class TestNextDetectionState:
    """Tests for the pure hysteresis transition."""

    def test_small_improvement_does_not_switch(self):
        state = next_detection_state(DetectionState("A", 0.80), ConstellationScore("B", 0.85))
        assert state == DetectionState("A", 0.80)

    def test_clear_improvement_switches(self):
        state = next_detection_state(DetectionState("A", 0.80), ConstellationScore("B", 0.95))
        assert state == DetectionState("B", 0.95)

    def test_switch_needs_absolute_threshold(self):
        state = next_detection_state(DetectionState("A", 0.50), ConstellationScore("B", 0.70))
        assert state == DetectionState("A", 0.50)

    def test_weak_first_detection_not_adopted(self):
        assert next_detection_state(EMPTY_STATE, ConstellationScore("C", 0.60)) == EMPTY_STATE

    def test_strong_first_detection_adopted(self):
        state = next_detection_state(EMPTY_STATE, ConstellationScore("C", 0.70))
        assert state == DetectionState("C", 0.70)

    def test_same_name_updates_score(self):
        state = next_detection_state(DetectionState("A", 0.90), ConstellationScore("A", 0.30))
        assert state == DetectionState("A", 0.30)

    def test_missing_detection_keeps_strong_state(self):
        state = DetectionState("A", 0.50)
        assert next_detection_state(state, None) is state

    def test_missing_detection_clears_weak_state(self):
        assert next_detection_state(DetectionState("A", 0.40), None) == EMPTY_STATE

    def test_missing_detection_on_empty_state(self):
        assert next_detection_state(EMPTY_STATE, None) == EMPTY_STATE

    def test_custom_thresholds(self):
        config = DetectionConfig(adopt_threshold=0.5)
        state = next_detection_state(EMPTY_STATE, ConstellationScore("C", 0.60), config)
        assert state.name == "C"


# =============================================================================
# Segments
# =============================================================================


class TestSegments:
    """Tests for sky-dome positions and segment building."""

    def test_sky_dome_axes(self):
        assert sky_dome_position(0.0, 0.0) == pytest.approx((0.0, 0.0, -10.0), abs=1e-9)
        assert sky_dome_position(0.0, 90.0) == pytest.approx((10.0, 0.0, 0.0), abs=1e-9)
        assert sky_dome_position(90.0, 0.0) == pytest.approx((0.0, 10.0, 0.0), abs=1e-9)
        assert sky_dome_position(0.0, 180.0, radius=1.0) == pytest.approx((0.0, 0.0, 1.0), abs=1e-9)

    def test_detected_orion_segments(self, constellations, stars_by_id, orion_pointing):
        segments = build_detected_segments(constellations[0], ORION_OBSERVER,
                                           orion_pointing, stars_by_id)
        assert len(segments) == 8
        first = segments[0]
        assert first.key == "Orion:1-8"
        assert (first.a_id, first.b_id) == (1, 8)
        assert first.start_altaz[0] > 0 and first.end_altaz[0] > 0
        assert first.start == pytest.approx(sky_dome_position(*first.start_altaz))

    def test_pointing_away_drops_segments(self, constellations, stars_by_id, orion_pointing):
        away = DevicePointing(orion_pointing.azimuth + 180.0, 10.0)
        assert build_detected_segments(constellations[0], ORION_OBSERVER, away, stars_by_id) == []

    def test_unknown_ids_dropped(self, stars_by_id, orion_pointing):
        pattern = make_constellation("Partial", (1, 8), (1, 99999))
        segments = build_detected_segments(pattern, ORION_OBSERVER, orion_pointing, stars_by_id)
        assert [s.key for s in segments] == ["Partial:1-8"]

    def test_below_horizon_dropped(self, constellations, stars_by_id, orion_pointing):
        """Crux never rises at latitude 40 N."""
        crux = constellations[3]
        assert build_detected_segments(crux, ORION_OBSERVER, orion_pointing, stars_by_id) == []

    def test_nearby_segments_cover_all_patterns(self, constellations, stars_by_id, orion_pointing):
        segments = build_nearby_segments(constellations, ORION_OBSERVER, orion_pointing, stars_by_id)
        names = {s.constellation for s in segments}
        assert "Orion" in names
        assert "Crux" not in names


# =============================================================================
# Detector
# =============================================================================


class TestConstellationDetector:
    """Tests for the stateful, throttled detector."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def detector(self, constellations, clock):
        return ConstellationDetector(constellations, clock=clock)

    def test_initial_state_empty(self, detector):
        assert detector.state == EMPTY_STATE

    def test_update_adopts_orion(self, detector, orion_visible, orion_pointing):
        state = detector.update(orion_visible, orion_pointing)
        assert state.name == "Orion"
        assert detector.state is state

    def test_update_throttled(self, detector, clock, orion_visible, orion_pointing):
        assert detector.update([], orion_pointing) == EMPTY_STATE
        clock.advance(0.2)
        assert detector.update(orion_visible, orion_pointing) == EMPTY_STATE
        assert not detector.is_due()

    def test_update_runs_at_interval_boundary(self, constellations, orion_visible, orion_pointing):
        clock = FakeClock(start=0.0)
        detector = ConstellationDetector(constellations, clock=clock)
        detector.update([], orion_pointing)
        clock.advance(0.45)
        assert detector.is_due()
        assert detector.update(orion_visible, orion_pointing).name == "Orion"

    def test_update_slightly_early_still_runs(self, constellations, orion_visible, orion_pointing):
        clock = FakeClock(start=0.0)
        detector = ConstellationDetector(constellations, clock=clock)
        detector.update([], orion_pointing)
        clock.advance(0.43)
        assert not detector.is_due()
        clock.advance(0.015)
        assert detector.is_due()
        assert detector.update(orion_visible, orion_pointing).name == "Orion"

    def test_zero_tolerance_is_strict(self, constellations, orion_pointing):
        clock = FakeClock(start=0.0)
        detector = ConstellationDetector(constellations, clock=clock, tolerance_sec=0.0)
        detector.update([], orion_pointing)
        clock.advance(0.445)
        assert not detector.is_due()

    def test_strong_state_survives_empty_cycle(self, detector, clock, orion_visible, orion_pointing):
        detector.update(orion_visible, orion_pointing)
        clock.advance(1.0)
        assert detector.update([], orion_pointing).name == "Orion"

    def test_reset(self, detector, orion_visible, orion_pointing):
        detector.update(orion_visible, orion_pointing)
        detector.reset()
        assert detector.state == EMPTY_STATE

    def test_run_cycle_detected_mode(self, detector, orion_visible, orion_pointing, stars_by_id):
        result = detector.run_cycle(orion_visible, ORION_OBSERVER, orion_pointing, stars_by_id,
                                    mode=ConstellationDrawMode.DETECTED)
        assert result.name == "Orion"
        assert result.raw.name == "Orion"
        assert len(result.primary_segments) == 8
        assert result.secondary_segments == []

    def test_run_cycle_throttled_returns_none(self, detector, clock, orion_visible,
                                              orion_pointing, stars_by_id):
        args = (orion_visible, ORION_OBSERVER, orion_pointing, stars_by_id)
        assert detector.run_cycle(*args) is not None
        clock.advance(0.1)
        assert detector.run_cycle(*args) is None
        clock.advance(0.4)
        assert detector.run_cycle(*args) is not None

    def test_run_cycle_nearby_mode_clears_state(self, detector, clock, orion_visible,
                                                orion_pointing, stars_by_id):
        detector.update(orion_visible, orion_pointing)
        clock.advance(1.0)
        result = detector.run_cycle(orion_visible, ORION_OBSERVER, orion_pointing, stars_by_id,
                                    mode=ConstellationDrawMode.NEARBY)
        assert result.state == EMPTY_STATE
        assert detector.state == EMPTY_STATE
        assert result.raw is None
        assert any(s.constellation == "Orion" for s in result.primary_segments)

    def test_run_cycle_hybrid_mode(self, clock, stars_by_id, orion_visible, orion_pointing):
        orion = load_constellations()[0]
        belt = make_constellation("Belt", (4, 5), (5, 6))
        detector = ConstellationDetector([orion, belt],
                                         config=DetectionConfig(hybrid_max_segments=1),
                                         clock=clock)
        result = detector.run_cycle(orion_visible, ORION_OBSERVER, orion_pointing, stars_by_id,
                                    mode=ConstellationDrawMode.HYBRID)
        assert result.name == "Orion"
        assert {s.constellation for s in result.primary_segments} == {"Orion"}
        assert [s.constellation for s in result.secondary_segments] == ["Belt"]

    def test_default_mode_from_config(self, constellations, clock, orion_visible,
                                      orion_pointing, stars_by_id):
        detector = ConstellationDetector(
            constellations,
            config=DetectionConfig(draw_mode=ConstellationDrawMode.NEARBY),
            clock=clock,
        )
        result = detector.run_cycle(orion_visible, ORION_OBSERVER, orion_pointing, stars_by_id)
        assert result.mode is ConstellationDrawMode.NEARBY
