"""
STARGAZER Unit Tests - Sky Engine

Unit tests for stargazer/engine.py: candidate loading, sky entities,
visibility ticks, reticle selection and detection.

Run:
    pytest tests/unit/test_engine.py -v
"""

import pytest

from stargazer.config import ConstellationDrawMode, StargazerConfig
from stargazer.engine import SkyEngine
from services.catalog.models import DevicePointing, ObjectKind
from tests.fixtures import ORION_OBSERVER, ORION_TIME, FakeClock, aim_at, make_star

ALNILAM_ID = 5


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return SkyEngine.from_config(StargazerConfig(), clock=clock)


@pytest.fixture
def index(engine):
    return engine.build_index(engine.load_candidates(ORION_OBSERVER.latitude), ORION_TIME)


@pytest.fixture
def alnilam_pointing(engine):
    return aim_at(ORION_OBSERVER, engine.catalog.get(ALNILAM_ID))


class TestEngineConstruction:
    """Tests for engine construction."""

    def test_from_config_loads_bundled_catalogs(self, engine):
        assert len(engine.catalog) == 44
        assert len(engine.detector.constellations) == 6

    def test_default_engine_is_empty(self):
        engine = SkyEngine()
        assert len(engine.catalog) == 0
        assert engine.detector.constellations == ()


class TestSkyEntities:
    """Tests for candidates and planets."""

    def test_candidates_respect_latitude(self, engine):
        ids = {o.id for o in engine.load_candidates(40.0)}
        assert 61 in ids        # Polaris
        assert 69 not in ids    # Canopus

    def test_planets_added(self, engine):
        entities = engine.build_sky_entities(engine.load_candidates(40.0), ORION_TIME)
        planets = [o for o in entities if o.kind is ObjectKind.PLANET]
        assert len(planets) == 7
        assert entities[0].kind is ObjectKind.STAR

    def test_planets_disabled(self):
        config = StargazerConfig()
        config.catalog.include_planets = False
        engine = SkyEngine.from_config(config)
        entities = engine.build_sky_entities(engine.load_candidates(40.0), ORION_TIME)
        assert all(o.kind is ObjectKind.STAR for o in entities)

    def test_entities_distinct_first_wins(self, engine):
        clash = make_star(-1001, 0.0, 0.0, 5.0, name="Not Mercury")
        entities = engine.build_sky_entities([clash], ORION_TIME)
        by_id = [o for o in entities if o.id == -1001]
        assert len(by_id) == 1
        assert by_id[0].name == "Not Mercury"

    def test_index_contains_entities(self, engine, index):
        assert len(index) == len(engine.load_candidates(40.0)) + 7


class TestTick:
    """Tests for the visibility tick."""

    def test_reticle_on_alnilam(self, engine, index, alnilam_pointing):
        frame = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        assert frame.reticle_id == ALNILAM_ID
        assert set(range(1, 9)) <= set(frame.visible_ids)
        assert frame.using_fallback_location is False

    def test_frame_lookup_covers_catalog_and_planets(self, engine, index, alnilam_pointing):
        frame = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        assert len(frame.objects_by_id) == len(engine.catalog) + 7
        assert all(obj.id in frame.objects_by_id for obj in index.objects)

    def test_frame_lookup_reused_per_index(self, engine, index, alnilam_pointing):
        first = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        second = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        assert second.objects_by_id is first.objects_by_id

        rebuilt = engine.build_index(engine.load_candidates(40.0), ORION_TIME)
        third = engine.tick(ORION_OBSERVER, alnilam_pointing, rebuilt)
        assert third.objects_by_id is not first.objects_by_id

    def test_pointing_at_ground(self, engine, index):
        frame = engine.tick(ORION_OBSERVER, DevicePointing(0.0, -80.0), index)
        assert frame.visible == []
        assert frame.reticle_id is None

    def test_field_of_view_from_config(self, engine, index, alnilam_pointing):
        wide = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        engine.config.view.field_of_view = 5.0
        narrow = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        assert len(narrow.visible) < len(wide.visible)
        assert ALNILAM_ID in narrow.visible_ids


class TestDetect:
    """Tests for detection through the engine."""

    def test_detects_orion(self, engine, index, alnilam_pointing):
        frame = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        result = engine.detect(frame)
        assert result.name == "Orion"
        assert result.raw.fully_visible == 8
        assert len(result.primary_segments) == 8
        assert result.secondary_segments == []

    def test_throttled(self, engine, index, alnilam_pointing, clock):
        frame = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        assert engine.detect(frame) is not None
        clock.advance(0.2)
        assert engine.detect(frame) is None
        clock.advance(0.3)
        assert engine.detect(frame) is not None

    def test_disabled(self, engine, index, alnilam_pointing):
        frame = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        engine.detect(frame)
        engine.config.detection.enabled = False
        result = engine.detect(frame)
        assert result.name is None
        assert result.primary_segments == []
        assert engine.detector.state.is_empty

    def test_set_draw_mode(self, engine, index, alnilam_pointing):
        engine.set_draw_mode(ConstellationDrawMode.NEARBY)
        frame = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        result = engine.detect(frame)
        assert result.mode is ConstellationDrawMode.NEARBY
        assert result.name is None
        assert result.primary_segments

    def test_lines_to_faint_stars_drawn(self, engine, alnilam_pointing):
        engine.config.view.max_magnitude = 2.0
        engine.set_draw_mode(ConstellationDrawMode.NEARBY)
        index = engine.build_index(engine.load_candidates(40.0), ORION_TIME)
        assert {4, 7, 8}.isdisjoint(o.id for o in index.objects)

        frame = engine.tick(ORION_OBSERVER, alnilam_pointing, index)
        result = engine.detect(frame)
        orion = [s for s in result.primary_segments if s.constellation == "Orion"]
        assert len(orion) == 8
        assert any(7 in (s.a_id, s.b_id) for s in orion)
