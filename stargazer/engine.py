"""
STARGAZER Sky Engine

Pipeline facade tying the services together for one observer:

    catalog --(candidate query)--> candidates
    candidates + planets --------> sky entities --(index)--> visible objects
    visible objects -------------> reticle selection
    visible objects -------------> constellation detection + line segments

The engine is synchronous and holds no per-tick state apart from the
detector's DetectionState and the line lookup built for the current index;
the scheduler decides when each stage runs.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from stargazer.config import ConstellationDrawMode, StargazerConfig
from stargazer.logging_config import get_logger
from services.catalog.catalog import StarCatalog
from services.catalog.loader import load_catalog
from services.catalog.models import CelestialObject, DevicePointing, Observer, VisibleObject
from services.constellations.catalog import ConstellationDefinition, load_constellations
from services.constellations.detector import ConstellationDetector, DetectionResult, EMPTY_STATE
from services.ephemeris.planetary import planet_objects
from services.reticle.selector import select_nearest
from services.visibility.candidate_index import CandidateIndex

logger = get_logger("engine")


@dataclass
class SkyFrame:
    """Output of one visibility tick."""
    observer: Observer
    pointing: DevicePointing
    visible: List[VisibleObject]
    objects_by_id: Dict[int, CelestialObject]
    reticle_id: Optional[int] = None
    using_fallback_location: bool = False
    created_at: float = field(default_factory=time.monotonic)

    @property
    def visible_ids(self) -> List[int]:
        return [v.id for v in self.visible]


class SkyEngine:
    """
    Visibility, reticle and constellation pipeline.

    Usage:
        engine = SkyEngine.from_config(load_config())
        candidates = engine.load_candidates(latitude)
        frame = engine.tick(observer, pointing, engine.build_index(candidates, observer.when))
        result = engine.detect(frame)
    """

    def __init__(
        self,
        config: Optional[StargazerConfig] = None,
        catalog: Optional[StarCatalog] = None,
        constellations: Optional[Sequence[ConstellationDefinition]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or StargazerConfig()
        self.catalog = catalog if catalog is not None else StarCatalog()
        self.detector = ConstellationDetector(
            constellations or (),
            config=self.config.detection,
            interval_sec=self.config.scheduler.detection_interval_sec,
            clock=clock,
        )
        self._lookup: Optional[Tuple[CandidateIndex, Dict[int, CelestialObject]]] = None
        logger.info(
            f"Sky engine ready: {len(self.catalog)} catalog objects, "
            f"{len(self.detector.constellations)} constellations"
        )

    @classmethod
    def from_config(cls, config: StargazerConfig, clock: Callable[[], float] = time.monotonic) -> "SkyEngine":
        """Load the catalogs named in the configuration. Raises CatalogError."""
        catalog = load_catalog(
            stars_path=config.catalog.stars_path,
            hyg_csv_path=config.catalog.hyg_csv_path,
            hyg_limit=config.catalog.hyg_limit,
        )
        constellations = load_constellations(config.catalog.constellations_path)
        return cls(config, catalog=catalog, constellations=constellations, clock=clock)

    # =========================================================================
    # Candidates
    # =========================================================================

    def load_candidates(self, latitude: float) -> List[CelestialObject]:
        """Catalog objects bright enough and able to rise at this latitude."""
        return self.catalog.candidates(self.config.view.max_magnitude, latitude)

    def build_sky_entities(self, candidates: Sequence[CelestialObject],
                           when: datetime) -> List[CelestialObject]:
        """Candidates plus the planets at `when`, distinct by id (first wins)."""
        entities: List[CelestialObject] = []
        seen = set()
        extra = planet_objects(when) if self.config.catalog.include_planets else []
        for obj in list(candidates) + extra:
            if obj.id in seen:
                continue
            seen.add(obj.id)
            entities.append(obj)
        return entities

    def build_index(self, candidates: Sequence[CelestialObject], when: datetime) -> CandidateIndex:
        return CandidateIndex.build(self.build_sky_entities(candidates, when))

    def objects_by_id(self, index: CandidateIndex) -> Dict[int, CelestialObject]:
        """
        Id lookup for constellation line endpoints.

        Covers the whole catalog, not just the candidates, so lines to stars
        fainter than view.max_magnitude are still drawn. Index entries win
        on id clashes. Built once per index and reused until it changes.
        """
        if self._lookup is not None and self._lookup[0] is index:
            return self._lookup[1]
        lookup = dict(self.catalog.by_id)
        lookup.update((obj.id, obj) for obj in index.objects)
        self._lookup = (index, lookup)
        return lookup

    # =========================================================================
    # Per-tick pipeline
    # =========================================================================

    def compute_visible(self, observer: Observer, pointing: DevicePointing,
                        index: CandidateIndex) -> List[VisibleObject]:
        view = self.config.view
        return index.compute_visible(observer, pointing, view.field_of_view, view.min_altitude)

    def select_reticle(self, visible: Sequence[VisibleObject],
                       pointing: DevicePointing) -> Optional[int]:
        return select_nearest(visible, pointing, self.config.view.reticle_radius_deg)

    def tick(self, observer: Observer, pointing: DevicePointing, index: CandidateIndex,
             using_fallback_location: bool = False) -> SkyFrame:
        """One visibility tick: visible objects and reticle selection."""
        visible = self.compute_visible(observer, pointing, index)
        return SkyFrame(
            observer=observer,
            pointing=pointing,
            visible=visible,
            objects_by_id=self.objects_by_id(index),
            reticle_id=self.select_reticle(visible, pointing),
            using_fallback_location=using_fallback_location,
        )

    def detect(self, frame: SkyFrame, now: Optional[float] = None) -> Optional[DetectionResult]:
        """Detection cycle over a tick's output. None when throttled."""
        detection = self.config.detection
        if not detection.enabled:
            self.detector.reset()
            return DetectionResult(state=EMPTY_STATE, raw=None, mode=detection.draw_mode)

        return self.detector.run_cycle(
            frame.visible,
            frame.observer,
            frame.pointing,
            frame.objects_by_id,
            mode=detection.draw_mode,
            now=now,
            min_altitude=self.config.view.min_altitude,
        )

    def set_draw_mode(self, mode: ConstellationDrawMode) -> None:
        """Switch how constellation lines are chosen."""
        if mode != self.config.detection.draw_mode:
            logger.info(f"Constellation draw mode: {mode.value}")
        self.config.detection.draw_mode = mode
